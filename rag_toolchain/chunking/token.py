"""
Token-bounded chunker
"""

import logging
from itertools import accumulate
from typing import Iterator, List, Optional

from .base import BaseChunker, ChunkConfig
from .tokenizer import BaseTokenizer, TiktokenTokenizer
from rag_toolchain.common.types import Chunk

logger = logging.getLogger(__name__)


def _is_char_boundary(data: bytes, offset: int) -> bool:
    # UTF-8 continuation bytes look like 0b10xxxxxx
    return offset >= len(data) or (data[offset] & 0xC0) != 0x80


class TokenChunker(BaseChunker):
    """
    Splits text into chunks of at most ``max_tokens`` model tokens.

    Tokens are accumulated greedily until the next one would exceed the
    limit. A chunk boundary never falls inside a token, and never inside a
    multi-byte character that the tokenizer split across several tokens:
    such a boundary moves back to the previous character boundary, or
    forward when moving back would leave the chunk empty.
    """

    def __init__(self, config: ChunkConfig, tokenizer: Optional[BaseTokenizer] = None):
        super().__init__(config)
        self.tokenizer = tokenizer or TiktokenTokenizer(
            encoding_name=config.encoding_name, model_name=config.model_name
        )

    def _iter_chunks(self, text: str, max_tokens: int, overlap: int) -> Iterator[Chunk]:
        if not text:
            return

        tokens: List[bytes] = self.tokenizer.tokenize(text)
        data = b"".join(tokens)
        offsets = [0, *accumulate(len(t) for t in tokens)]
        total = len(tokens)

        start = 0
        index = 0
        while start < total:
            end = min(start + max_tokens, total)
            while end > start and not _is_char_boundary(data, offsets[end]):
                end -= 1
            if end == start:
                end = start + 1
                while not _is_char_boundary(data, offsets[end]):
                    end += 1
                logger.debug(f"Chunk {index} extended past limit to keep a character whole")

            yield Chunk(
                content=data[offsets[start]:offsets[end]].decode("utf-8"),
                token_count=end - start,
                index=index,
            )
            index += 1

            if end >= total:
                break
            next_start = end
            if overlap:
                next_start = end - overlap
                while next_start > start and not _is_char_boundary(data, offsets[next_start]):
                    next_start -= 1
                if next_start <= start:
                    next_start = end
            start = next_start
