"""
Base chat client interface
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, model_validator

from rag_toolchain.common.types import PromptMessage
from rag_toolchain.core.config.settings import settings
from rag_toolchain.core.exceptions import Cancelled

logger = logging.getLogger(__name__)


class ChatConfig(BaseModel):
    """Configuration for chat provider"""
    type: str = Field(default="openai", description="Type of chat provider (openai, anthropic)")
    model_name: Optional[str] = Field(
        default=None, description="Model name; defaults per provider from settings")
    api_key: Optional[str] = Field(
        default=None, description="API key; defaults per provider from settings")
    base_url: Optional[str] = Field(default=None, description="Base URL for API endpoints")
    max_tokens: int = Field(
        default_factory=lambda: settings.DEFAULT_CHAT_MAX_TOKENS,
        description="Maximum number of tokens to generate")
    temperature: Optional[float] = Field(default=None, description="Sampling temperature")
    additional_config: Dict[str, Any] = Field(
        default_factory=dict, description="Extra parameters passed through to every request")
    timeout: float = Field(
        default_factory=lambda: settings.REQUEST_TIMEOUT_SECONDS,
        description="Request timeout in seconds")

    @model_validator(mode='after')
    def apply_provider_defaults(self):
        """Fill model and credentials from settings for the selected provider"""
        if self.type == "anthropic":
            self.model_name = self.model_name or settings.DEFAULT_ANTHROPIC_MODEL
            self.api_key = self.api_key or settings.ANTHROPIC_API_KEY
        elif self.type == "openai":
            self.model_name = self.model_name or settings.DEFAULT_CHAT_MODEL
            self.api_key = self.api_key or settings.OPENAI_API_KEY
            self.base_url = self.base_url or settings.OPENAI_BASE_URL
        return self

    def get(self) -> "BaseChatClient":
        if self.type == "openai":
            from .openai import OpenAIChatClient
            return OpenAIChatClient(self.model_copy())
        elif self.type == "anthropic":
            from .anthropic import AnthropicChatClient
            return AnthropicChatClient(self.model_copy())
        else:
            raise ValueError(f"Invalid chat client type: {self.type}")

    class Config:
        extra = "allow"


class ChatCompletionStream:
    """
    Async iterator over the text fragments of a streamed chat response.

    Once the fragments are exhausted, ``message`` holds the assembled AI
    message. Closing the stream early (``aclose()`` or leaving an
    ``async with`` block) releases the underlying connection.

    Example:
        ```python
        async with client.stream(messages) as stream:
            async for fragment in stream:
                print(fragment, end="")
        print(stream.message.content)
        ```
    """

    def __init__(self, fragments: AsyncIterator[str]):
        self._fragments = fragments
        self._parts: List[str] = []
        self._message: Optional[PromptMessage] = None
        self._closed = False

    @property
    def message(self) -> Optional[PromptMessage]:
        return self._message

    def __aiter__(self) -> "ChatCompletionStream":
        return self

    async def __anext__(self) -> str:
        if self._message is not None or self._closed:
            raise StopAsyncIteration
        try:
            fragment = await self._fragments.__anext__()
        except StopAsyncIteration:
            self._message = PromptMessage.ai("".join(self._parts))
            await self.aclose()
            raise
        except BaseException:
            await self.aclose()
            raise
        self._parts.append(fragment)
        return fragment

    async def collect(self) -> PromptMessage:
        """Drain the remaining fragments and return the assembled message"""
        async for _ in self:
            pass
        if self._message is None:
            raise Cancelled("stream closed before the response completed")
        return self._message

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        aclose = getattr(self._fragments, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "ChatCompletionStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class BaseChatClient(ABC):
    """Base abstract class for chat model providers"""

    def __init__(self, config: ChatConfig):
        self.config = config

    @abstractmethod
    async def complete(self, messages: Sequence[PromptMessage]) -> PromptMessage:
        """
        Send a conversation and wait for the full response

        Args:
            messages: Ordered conversation, system prompt first when present

        Returns:
            The model's reply as an AI message
        """
        raise NotImplementedError

    def stream(self, messages: Sequence[PromptMessage]) -> ChatCompletionStream:
        """
        Send a conversation and stream the response

        The request is made when the stream is first iterated.

        Args:
            messages: Ordered conversation, system prompt first when present

        Returns:
            ChatCompletionStream of text fragments
        """
        return ChatCompletionStream(self._stream_fragments(list(messages)))

    @abstractmethod
    def _stream_fragments(self, messages: List[PromptMessage]) -> AsyncIterator[str]:
        raise NotImplementedError

    def _request_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"max_tokens": self.config.max_tokens}
        if self.config.temperature is not None:
            options["temperature"] = self.config.temperature
        options.update(self.config.additional_config)
        return options
