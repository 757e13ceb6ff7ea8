"""
Conversational chain that threads prior messages into each completion
"""

import asyncio
import logging
from typing import Iterable, Iterator, List, Optional, Union

from rag_toolchain.clients.base import BaseChatClient
from rag_toolchain.common.cancellation import CancellationScope
from rag_toolchain.common.types import PromptMessage
from rag_toolchain.core.exceptions import Cancelled
from .retry import RetryPolicy
from .types import ChainConfig, ChainRun, ChainState
from .utils import as_human_message, as_system_message, build_conversation, run_stage

logger = logging.getLogger(__name__)


class ChatHistory:
    """Ordered conversation owned by the caller"""

    def __init__(self, messages: Iterable[PromptMessage] = ()):
        self._messages: List[PromptMessage] = list(messages)

    @property
    def messages(self) -> List[PromptMessage]:
        return list(self._messages)

    def append(self, *messages: PromptMessage) -> None:
        self._messages.extend(messages)

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[PromptMessage]:
        return iter(list(self._messages))


class ChatHistoryChain:
    """
    Chat chain without retrieval.

    The whole history is sent with every new user message. The history is
    passed in by the caller, so one chain can serve many conversations; the
    user message and the response are appended to it only when the
    completion succeeds.

    Args:
        chat_client: Client used for completions
        system_prompt: Optional system message sent first on every call
        retry: Optional retry policy for the completion
    """

    def __init__(
        self,
        chat_client: BaseChatClient,
        system_prompt: Optional[Union[str, PromptMessage]] = None,
        retry: Optional[RetryPolicy] = None,
    ):
        if system_prompt is not None:
            system_prompt = as_system_message(system_prompt)
        self.config = ChainConfig(system_prompt=system_prompt, chat_client=chat_client, retry=retry)

    async def invoke(
        self,
        user_message: Union[str, PromptMessage],
        history: ChatHistory,
        *,
        cancellation: Optional[CancellationScope] = None,
    ) -> PromptMessage:
        run = await self.run(user_message, history, cancellation=cancellation)
        return run.response

    async def run(
        self,
        user_message: Union[str, PromptMessage],
        history: ChatHistory,
        *,
        cancellation: Optional[CancellationScope] = None,
    ) -> ChainRun:
        run = ChainRun(user_message=as_human_message(user_message))
        run.conversation = build_conversation(
            self.config.system_prompt, *history.messages, run.user_message
        )
        conversation = run.conversation
        try:
            run.transition(ChainState.COMPLETING)
            response = await run_stage(
                run, lambda: self.config.chat_client.complete(conversation),
                cancellation, self.config.retry,
            )
        except asyncio.CancelledError:
            run.fail(Cancelled("task cancelled"))
            raise
        except Exception as e:
            logger.error(f"Chat history chain failed: {e}")
            raise run.fail(e) from e

        history.append(run.user_message, response)
        run.complete(response)
        return run
