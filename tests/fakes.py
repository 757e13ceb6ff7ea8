"""
Offline stand-ins for tokenizers, embedders and retrievers used across the suite
"""

import asyncio
import re
from typing import Dict, List, Optional

from rag_toolchain.chunking.tokenizer import BaseTokenizer
from rag_toolchain.common.types import DistanceFunction, Embedding, SearchResult, StoredRecord
from rag_toolchain.core.exceptions import TokenizationError
from rag_toolchain.embedding.base import BaseEmbedder, EmbeddingConfig
from rag_toolchain.retrievers.base import BaseRetriever

_PIECE_RE = re.compile(r" ?[A-Za-z0-9]+|.", re.DOTALL)


class ByteSplittingTokenizer(BaseTokenizer):
    """
    An ASCII word with its leading space is one token, any other ASCII
    character is one token, and non-ASCII characters are split into one
    token per UTF-8 byte, the way BPE tokenizers split rare characters.
    """

    def __init__(self):
        self.calls = 0

    def tokenize(self, text: str) -> List[bytes]:
        self.calls += 1
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise TokenizationError("text is not valid unicode", e) from e
        tokens = []
        for piece in _PIECE_RE.findall(text):
            data = piece.encode("utf-8")
            if piece.isascii():
                tokens.append(data)
            else:
                tokens.extend(bytes([b]) for b in data)
        return tokens


class StaticEmbedder(BaseEmbedder):
    """Returns fixed vectors for known texts"""

    def __init__(self, vectors: Dict[str, List[float]], dimension: int):
        super().__init__(EmbeddingConfig(type="static", model_name="static", dimension=dimension))
        self.vectors = vectors
        self.requests: List[List[str]] = []

    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        self.requests.append(list(texts))
        return [self.vectors[text] for text in texts]


class ListRetriever(BaseRetriever):
    """Returns canned contents as search results, best-first"""

    def __init__(self, contents: List[str], delay: float = 0.0, error: Optional[Exception] = None):
        self.contents = contents
        self.delay = delay
        self.error = error
        self.queries: List[tuple] = []

    async def retrieve(self, query: str, k: int, distance_function: Optional[DistanceFunction] = None) -> List[SearchResult]:
        self.queries.append((query, k))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [
            SearchResult(
                record=StoredRecord(id=str(i + 1), content=content, embedding=Embedding(vector=[1.0])),
                score=1.0 - i * 0.1,
            )
            for i, content in enumerate(self.contents[:k])
        ]


def vector(*values: float) -> Embedding:
    return Embedding(vector=list(values))
