"""
Prompt assembly and stage execution helpers shared by the chains
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from rag_toolchain.common.cancellation import CancellationScope, guarded
from rag_toolchain.common.types import PromptMessage, Role, SearchResult
from .retry import RetryPolicy
from .types import ChainRun

T = TypeVar("T")

CONTEXT_HEADER = "Here is some supporting information:\n"
EMPTY_CONTEXT_PLACEHOLDER = "No supporting information was found."


def build_context_message(results: Sequence[SearchResult]) -> PromptMessage:
    """
    Format retrieved records into one synthetic human message

    Contents are included verbatim, best-first, one per line after a short
    header. No results yields the empty-context placeholder.

    Args:
        results: Search results ordered best-first

    Returns:
        The context message placed before the user's message
    """
    if not results:
        return PromptMessage.human(EMPTY_CONTEXT_PLACEHOLDER)
    return PromptMessage.human(CONTEXT_HEADER + "".join(f"{r.content}\n" for r in results))


def build_conversation(
    system_prompt: Optional[PromptMessage],
    *messages: PromptMessage,
) -> List[PromptMessage]:
    conversation = [system_prompt] if system_prompt is not None else []
    conversation.extend(messages)
    return conversation


def as_human_message(message) -> PromptMessage:
    if isinstance(message, PromptMessage):
        if message.role != Role.HUMAN:
            raise ValueError(f"user message must have the human role, got {message.role.value}")
        return message
    return PromptMessage.human(message)


def as_system_message(message) -> PromptMessage:
    if isinstance(message, PromptMessage):
        if message.role != Role.SYSTEM:
            raise ValueError(f"system prompt must have the system role, got {message.role.value}")
        return message
    return PromptMessage.system(message)


async def run_stage(
    run: ChainRun,
    call: Callable[[], Awaitable[T]],
    cancellation: Optional[CancellationScope],
    retry: Optional[RetryPolicy],
) -> T:
    """
    Execute the network call of the current stage

    Each attempt is counted on the run and observes the cancellation scope.
    With a retry policy, retriable failures are attempted again; the wait
    between attempts observes the scope as well.
    """
    stage = run.state

    async def attempt() -> T:
        run.attempts[stage] = run.attempts.get(stage, 0) + 1
        return await guarded(call(), cancellation)

    async def backoff(seconds: float) -> None:
        await guarded(asyncio.sleep(seconds), cancellation)

    if retry is None:
        return await attempt()
    return await retry.call(attempt, sleep=backoff)
