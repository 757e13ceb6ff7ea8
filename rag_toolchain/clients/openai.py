"""
OpenAI chat client implementation
"""

import logging
from typing import AsyncIterator, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from .base import BaseChatClient, ChatConfig
from .errors import map_openai_error
from rag_toolchain.common.types import PromptMessage, Role
from rag_toolchain.core.exceptions import (
    ConfigurationError,
    ErrorKey,
    ProviderError,
    ProviderErrorKind,
)

logger = logging.getLogger(__name__)

OPENAI_ROLES = {
    Role.SYSTEM: "system",
    Role.HUMAN: "user",
    Role.AI: "assistant",
}


def to_openai_messages(messages: Sequence[PromptMessage]) -> List[Dict[str, str]]:
    return [{"role": OPENAI_ROLES[m.role], "content": m.content} for m in messages]


class OpenAIChatClient(BaseChatClient):
    """Chat completions through the OpenAI API"""

    def __init__(self, config: ChatConfig, client: Optional[AsyncOpenAI] = None):
        super().__init__(config)
        if client is None:
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required", ErrorKey.MISSING_API_KEY)
            client = AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=0,
            )
        self.client = client
        logger.info(f"Initialized OpenAI chat client with model: {config.model_name}")

    async def complete(self, messages: Sequence[PromptMessage]) -> PromptMessage:
        try:
            response = await self.client.chat.completions.create(
                model=self.config.model_name,
                messages=to_openai_messages(messages),
                **self._request_options(),
            )
        except Exception as e:
            raise map_openai_error(e) from e

        if not response.choices or response.choices[0].message.content is None:
            raise ProviderError(ProviderErrorKind.MALFORMED, "openai: response has no message content")
        return PromptMessage.ai(response.choices[0].message.content)

    async def _stream_fragments(self, messages: List[PromptMessage]) -> AsyncIterator[str]:
        try:
            stream = await self.client.chat.completions.create(
                model=self.config.model_name,
                messages=to_openai_messages(messages),
                stream=True,
                **self._request_options(),
            )
        except Exception as e:
            raise map_openai_error(e) from e

        try:
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except Exception as e:
            raise map_openai_error(e) from e
        finally:
            await stream.close()

    async def close(self) -> None:
        await self.client.close()
