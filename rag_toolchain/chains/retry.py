"""
Chain-level retry of retriable failures
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from rag_toolchain.core.exceptions import RagToolchainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retriable(error: BaseException) -> bool:
    """Rate limiting, transient provider failures and an unavailable store"""
    return isinstance(error, RagToolchainError) and error.retriable


class RetryPolicy(BaseModel):
    """
    Exponential backoff retry applied to a single chain stage.

    Only errors flagged retriable are retried; everything else, including
    cancellation, is raised on the first occurrence.
    """
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Total attempts including the first")
    multiplier: float = Field(default=1.0, ge=0, description="Backoff multiplier in seconds")
    min_wait: float = Field(default=0.5, ge=0, description="Minimum wait between attempts")
    max_wait: float = Field(default=8.0, ge=0, description="Maximum wait between attempts")

    def retrying(self, sleep: Optional[Callable[[float], Awaitable[None]]] = None) -> AsyncRetrying:
        return AsyncRetrying(
            sleep=sleep or asyncio.sleep,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.multiplier, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception(is_retriable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def call(
        self,
        fn: Callable[[], Awaitable[T]],
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> T:
        """
        Await fn until it succeeds, fails permanently or attempts run out

        Args:
            fn: Zero-argument coroutine factory, called once per attempt
            sleep: Awaits the backoff between attempts, defaults to asyncio.sleep
        """
        async for attempt in self.retrying(sleep):
            with attempt:
                return await fn()
