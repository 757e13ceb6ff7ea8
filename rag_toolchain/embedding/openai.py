"""
OpenAI embedding provider implementation
"""

import logging
from typing import List, Optional

from openai import AsyncOpenAI

from .base import BaseEmbedder, EmbeddingConfig
from .models import get_model_info
from rag_toolchain.clients.errors import map_openai_error
from rag_toolchain.core.exceptions import ConfigurationError, ErrorKey

logger = logging.getLogger(__name__)


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI embedding provider"""

    def __init__(self, config: EmbeddingConfig, client: Optional[AsyncOpenAI] = None):
        super().__init__(config)
        if client is None:
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required", ErrorKey.MISSING_API_KEY)
            # retries are a chain-level decision
            client = AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=0,
            )
        self.client = client
        logger.info(f"Initialized OpenAI embeddings with model: {config.model_name}")

    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        request = {"model": self.config.model_name, "input": texts}
        # only the v3 models accept a reduced output dimension
        native = get_model_info(self.config.model_name)
        if self.config.dimension is not None and native and native.dimension != self.config.dimension:
            request["dimensions"] = self.config.dimension

        try:
            response = await self.client.embeddings.create(**request)
        except Exception as e:
            raise map_openai_error(e) from e

        data = sorted(response.data, key=lambda item: item.index)
        return [item.embedding for item in data]

    async def close(self) -> None:
        await self.client.close()
