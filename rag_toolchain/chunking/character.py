"""
Character-bounded chunker
"""

from typing import Iterator

from .base import BaseChunker
from rag_toolchain.common.types import Chunk


class CharacterChunker(BaseChunker):
    """Splits text into chunks of at most ``max_tokens`` characters"""

    def _iter_chunks(self, text: str, max_tokens: int, overlap: int) -> Iterator[Chunk]:
        step = max_tokens - overlap
        index = 0
        for start in range(0, len(text), step):
            content = text[start:start + max_tokens]
            yield Chunk(content=content, token_count=len(content), index=index)
            index += 1
            if start + max_tokens >= len(text):
                break
