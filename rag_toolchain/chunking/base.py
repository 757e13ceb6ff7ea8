"""
Base chunking interface
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional

from pydantic import BaseModel, Field, field_validator

from rag_toolchain.common.types import Chunk
from rag_toolchain.core.config.settings import settings
from rag_toolchain.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ChunkConfig(BaseModel):
    """Configuration for chunking strategy"""
    type: str = Field(default="token", description="Type of chunking strategy (token, character)")
    max_tokens_per_chunk: int = Field(
        default_factory=lambda: settings.DEFAULT_MAX_TOKENS_PER_CHUNK,
        description="Maximum number of tokens (or characters) per chunk")
    chunk_overlap: int = Field(
        default=0, description="Number of tokens shared by consecutive chunks")
    encoding_name: Optional[str] = Field(
        default=None, description="Explicit tiktoken encoding, overrides model_name")
    model_name: Optional[str] = Field(
        default_factory=lambda: settings.DEFAULT_EMBEDDING_MODEL,
        description="Model whose tokenizer measures the chunks")
    max_workers: int = Field(
        default_factory=lambda: settings.CHUNKING_MAX_WORKERS,
        description="Thread pool size used by chunk_many")

    @field_validator('max_tokens_per_chunk', 'max_workers')
    @classmethod
    def validate_positive(cls, v, info):
        if v < 1:
            raise ValueError(f'{info.field_name} must be at least 1')
        return v

    @field_validator('chunk_overlap')
    @classmethod
    def validate_chunk_overlap(cls, v, info):
        if v < 0:
            raise ValueError('chunk_overlap must not be negative')
        if info.data and 'max_tokens_per_chunk' in info.data and v >= info.data['max_tokens_per_chunk']:
            raise ValueError('chunk_overlap must be less than max_tokens_per_chunk')
        return v

    def get(self) -> "BaseChunker":
        """Get the chunker based on the type"""
        if self.type == "token":
            from .token import TokenChunker
            return TokenChunker(self.model_copy())
        elif self.type == "character":
            from .character import CharacterChunker
            return CharacterChunker(self.model_copy())
        else:
            raise ValueError(f"Invalid chunker type: {self.type}")

    class Config:
        extra = "allow"


class ChunkSequence:
    """
    Lazy, restartable sequence of chunks.

    Nothing is computed until the sequence is iterated, and every new
    iteration runs the chunking again from the start of the text.
    """

    def __init__(self, producer: Callable[[], Iterator[Chunk]]):
        self._producer = producer

    def __iter__(self) -> Iterator[Chunk]:
        return self._producer()

    def to_list(self) -> List[Chunk]:
        return list(self)


class BaseChunker(ABC):
    """Base abstract class for text chunking strategies"""

    def __init__(self, config: ChunkConfig):
        self.config = config

    def chunk(self, text: str, max_tokens: Optional[int] = None) -> ChunkSequence:
        """
        Split text into chunks

        Args:
            text: Text to chunk
            max_tokens: Per-call limit, defaults to config.max_tokens_per_chunk

        Returns:
            Lazy ChunkSequence; errors surface while iterating
        """
        limit = max_tokens if max_tokens is not None else self.config.max_tokens_per_chunk
        if limit < 1:
            raise ConfigurationError(f"max_tokens must be at least 1, got {limit}")
        overlap = self.config.chunk_overlap
        if overlap >= limit:
            raise ConfigurationError(
                f"chunk_overlap ({overlap}) must be less than max_tokens ({limit})"
            )
        return ChunkSequence(lambda: self._iter_chunks(text, limit, overlap))

    @abstractmethod
    def _iter_chunks(self, text: str, max_tokens: int, overlap: int) -> Iterator[Chunk]:
        raise NotImplementedError(
            "Subclasses must implement _iter_chunks method")

    async def chunk_many(self, texts: List[str], max_tokens: Optional[int] = None) -> List[List[Chunk]]:
        """
        Chunk independent texts in parallel on a bounded thread pool

        Args:
            texts: Texts to chunk
            max_tokens: Per-call limit, defaults to config.max_tokens_per_chunk

        Returns:
            One list of chunks per input text, in input order
        """
        if not texts:
            return []

        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = [
                loop.run_in_executor(executor, self._chunk_to_list, text, max_tokens)
                for text in texts
            ]
            results = await asyncio.gather(*futures)

        logger.debug(f"Chunked {len(texts)} texts into {sum(len(r) for r in results)} chunks")
        return list(results)

    def _chunk_to_list(self, text: str, max_tokens: Optional[int]) -> List[Chunk]:
        return self.chunk(text, max_tokens).to_list()
