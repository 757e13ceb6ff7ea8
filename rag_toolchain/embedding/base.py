"""
Base embedding interface
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from .models import get_model_info
from rag_toolchain.common.types import Embedding
from rag_toolchain.core.config.settings import settings
from rag_toolchain.core.exceptions import ConfigurationError, ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)


class EmbeddingConfig(BaseModel):
    """Configuration for embedding provider"""
    type: str = Field(default="openai", description="Type of embedding provider (openai, hashing)")
    model_name: str = Field(
        default_factory=lambda: settings.DEFAULT_EMBEDDING_MODEL,
        description="Name of the embedding model")
    dimension: Optional[int] = Field(
        default=None, description="Vector length; overrides the model's native dimension")
    batch_size: int = Field(
        default_factory=lambda: settings.EMBEDDING_BATCH_SIZE,
        description="Number of texts sent per request")
    max_concurrency: int = Field(
        default_factory=lambda: settings.EMBEDDING_MAX_CONCURRENCY,
        description="Maximum number of batch requests in flight")
    api_key: Optional[str] = Field(
        default_factory=lambda: settings.OPENAI_API_KEY,
        description="API key for external services")
    base_url: Optional[str] = Field(
        default_factory=lambda: settings.OPENAI_BASE_URL,
        description="Base URL for API endpoints")
    timeout: float = Field(
        default_factory=lambda: settings.REQUEST_TIMEOUT_SECONDS,
        description="Request timeout in seconds")

    @field_validator('batch_size', 'max_concurrency')
    @classmethod
    def validate_positive(cls, v, info):
        if v < 1:
            raise ValueError(f'{info.field_name} must be at least 1')
        return v

    @field_validator('dimension')
    @classmethod
    def validate_dimension(cls, v):
        if v is not None and v < 1:
            raise ValueError('dimension must be at least 1')
        return v

    def get(self) -> "BaseEmbedder":
        if self.type == "openai":
            from .openai import OpenAIEmbedder
            return OpenAIEmbedder(self.model_copy())
        elif self.type == "hashing":
            from .hashing import HashingEmbedder
            return HashingEmbedder(self.model_copy())
        else:
            raise ValueError(f"Invalid embedding type: {self.type}")

    class Config:
        extra = "allow"


class BaseEmbedder(ABC):
    """Base abstract class for text embedding providers"""

    def __init__(self, config: EmbeddingConfig):
        self.config = config

    @property
    def dimension(self) -> int:
        """Fixed length of every vector this embedder produces"""
        if self.config.dimension is not None:
            return self.config.dimension
        info = get_model_info(self.config.model_name)
        if info is None:
            raise ConfigurationError(
                f"unknown dimension for model {self.config.model_name}; set dimension explicitly"
            )
        return info.dimension

    @abstractmethod
    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Embed one batch with a single backend request

        Args:
            texts: Texts to embed

        Returns:
            One raw vector per text, in input order
        """
        raise NotImplementedError

    async def embed(self, text: str) -> Embedding:
        """
        Generate embedding for a single text

        Args:
            text: Text to embed

        Returns:
            Embedding of the configured dimension
        """
        vectors = await self._embed_batch([text])
        return self._validate(vectors, 1)[0]

    async def embed_many(self, texts: Sequence[str]) -> List[Embedding]:
        """
        Generate embeddings for many texts

        Texts are split into batches of ``batch_size`` which are sent
        concurrently, at most ``max_concurrency`` at a time. Results are
        reassembled by position, so ``embed_many(texts)[i]`` always belongs
        to ``texts[i]`` whatever order the batches complete in. The first batch to
        fail cancels the batches still in flight and its error is raised.

        Args:
            texts: Texts to embed

        Returns:
            List of embeddings, one per text
        """
        if not texts:
            return []

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def run(batch: List[str]) -> List[Embedding]:
            async with semaphore:
                vectors = await self._embed_batch(batch)
            return self._validate(vectors, len(batch))

        batches = self._batch_texts(list(texts))
        tasks = [asyncio.ensure_future(run(batch)) for batch in batches]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            # one failed batch (or the caller's cancellation) stops the rest
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

        logger.debug(f"Embedded {len(texts)} texts in {len(batches)} batches")
        return [embedding for task in tasks for embedding in task.result()]

    def _validate(self, vectors: List[List[float]], expected: int) -> List[Embedding]:
        if len(vectors) != expected:
            raise ProviderError(
                ProviderErrorKind.MALFORMED,
                f"expected {expected} vectors, got {len(vectors)}",
            )
        dimension = self.dimension
        embeddings = []
        for vector in vectors:
            if len(vector) != dimension:
                raise ProviderError(
                    ProviderErrorKind.MALFORMED,
                    f"expected vectors of length {dimension}, got {len(vector)}",
                )
            embeddings.append(Embedding(vector=vector))
        return embeddings

    def _batch_texts(self, texts: List[str]) -> List[List[str]]:
        """Split texts into batches for processing"""
        batch_size = self.config.batch_size
        return [texts[i:i + batch_size] for i in range(0, len(texts), batch_size)]
