"""
Local chat client that replays scripted responses
"""

import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Iterable, List, Optional, Sequence, Union

from .base import BaseChatClient, ChatConfig
from rag_toolchain.common.types import PromptMessage
from rag_toolchain.core.exceptions import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

ScriptedResponse = Union[str, PromptMessage, BaseException]


class ScriptedChatClient(BaseChatClient):
    """
    Chat client with no backend: each call consumes the next queued response.

    A queued exception is raised instead of answering. Every conversation
    received is recorded in ``calls`` so tests can inspect exactly what a
    chain sent.

    Args:
        responses: Responses (text, AI messages or exceptions) in call order
        delay: Seconds to wait before answering, to simulate latency
        fragment_size: Characters per fragment when streaming
    """

    def __init__(
        self,
        responses: Iterable[ScriptedResponse] = (),
        delay: float = 0.0,
        fragment_size: int = 8,
        config: Optional[ChatConfig] = None,
    ):
        super().__init__(config or ChatConfig(type="scripted", model_name="scripted"))
        self._responses = deque(responses)
        self.delay = delay
        self.fragment_size = max(1, fragment_size)
        self.calls: List[List[PromptMessage]] = []

    def queue(self, *responses: ScriptedResponse) -> "ScriptedChatClient":
        self._responses.extend(responses)
        return self

    @property
    def pending(self) -> int:
        return len(self._responses)

    async def _next_response(self, messages: Sequence[PromptMessage]) -> str:
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self._responses:
            raise ProviderError(ProviderErrorKind.MALFORMED, "scripted: no response left")
        response = self._responses.popleft()
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, PromptMessage):
            return response.content
        return response

    async def complete(self, messages: Sequence[PromptMessage]) -> PromptMessage:
        return PromptMessage.ai(await self._next_response(messages))

    async def _stream_fragments(self, messages: List[PromptMessage]) -> AsyncIterator[str]:
        content = await self._next_response(messages)
        for start in range(0, len(content), self.fragment_size):
            yield content[start:start + self.fragment_size]
            await asyncio.sleep(0)
