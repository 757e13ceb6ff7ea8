"""
Anthropic chat client implementation
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from anthropic import AsyncAnthropic

from .base import BaseChatClient, ChatConfig
from .errors import map_anthropic_error
from rag_toolchain.common.types import PromptMessage, Role
from rag_toolchain.core.exceptions import (
    ConfigurationError,
    ErrorKey,
    ProviderError,
    ProviderErrorKind,
)

logger = logging.getLogger(__name__)


def to_anthropic_request(messages: Sequence[PromptMessage]) -> Dict[str, Any]:
    """
    Split a conversation into Anthropic's ``system`` field and message list

    The messages API has no system role; system messages are joined into the
    top-level ``system`` parameter.
    """
    system_parts = [m.content for m in messages if m.role == Role.SYSTEM]
    request: Dict[str, Any] = {
        "messages": [
            {"role": "assistant" if m.role == Role.AI else "user", "content": m.content}
            for m in messages
            if m.role != Role.SYSTEM
        ]
    }
    if system_parts:
        request["system"] = "\n\n".join(system_parts)
    return request


class AnthropicChatClient(BaseChatClient):
    """Chat completions through the Anthropic messages API"""

    def __init__(self, config: ChatConfig, client: Optional[AsyncAnthropic] = None):
        super().__init__(config)
        if client is None:
            if not config.api_key:
                raise ConfigurationError("Anthropic API key is required", ErrorKey.MISSING_API_KEY)
            client_kwargs = {"api_key": config.api_key, "timeout": config.timeout, "max_retries": 0}
            if config.base_url:
                client_kwargs["base_url"] = config.base_url
            client = AsyncAnthropic(**client_kwargs)
        self.client = client
        logger.info(f"Initialized Anthropic chat client with model: {config.model_name}")

    async def complete(self, messages: Sequence[PromptMessage]) -> PromptMessage:
        try:
            response = await self.client.messages.create(
                model=self.config.model_name,
                **to_anthropic_request(messages),
                **self._request_options(),
            )
        except Exception as e:
            raise map_anthropic_error(e) from e

        text_blocks = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not text_blocks:
            raise ProviderError(ProviderErrorKind.MALFORMED, "anthropic: response has no text content")
        return PromptMessage.ai("".join(text_blocks))

    async def _stream_fragments(self, messages: List[PromptMessage]) -> AsyncIterator[str]:
        try:
            async with self.client.messages.stream(
                model=self.config.model_name,
                **to_anthropic_request(messages),
                **self._request_options(),
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except Exception as e:
            raise map_anthropic_error(e) from e

    async def close(self) -> None:
        await self.client.close()
