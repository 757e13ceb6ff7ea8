"""
Caller-supplied cancellation for multi-step async operations
"""

import asyncio
import time
from typing import Awaitable, Optional, TypeVar

from rag_toolchain.core.exceptions import Cancelled

T = TypeVar("T")


class CancellationScope:
    """
    A deadline and/or cancellation signal observed at every suspension point.

    The deadline is measured from the moment the scope is created. Setting
    the event (``cancel()``) aborts whatever call is currently in flight.

    Args:
        timeout: Seconds until the deadline, or None for no deadline
        event: Optional externally owned event; a private one is created otherwise
    """

    def __init__(self, timeout: Optional[float] = None, event: Optional[asyncio.Event] = None):
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be non-negative")
        self.timeout = timeout
        self.event = event if event is not None else asyncio.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self.event.set()

    @property
    def cancelled(self) -> bool:
        return self.event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when there is no deadline"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise Cancelled if the signal is set or the deadline has passed"""
        if self.event.is_set():
            raise Cancelled("cancellation requested")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise Cancelled("deadline exceeded")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the scope fires first.

        When the scope fires, the in-flight task is cancelled and awaited
        before Cancelled is raised, so no work keeps running in the background.
        """
        task = asyncio.ensure_future(awaitable)
        try:
            self.check()
        except Cancelled:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise

        waiter = asyncio.ensure_future(self.event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        if self.event.is_set():
            raise Cancelled("cancellation requested")
        raise Cancelled("deadline exceeded")


async def guarded(awaitable: Awaitable[T], scope: Optional[CancellationScope]) -> T:
    """Await through ``scope`` when one is given"""
    if scope is None:
        return await awaitable
    return await scope.run(awaitable)
