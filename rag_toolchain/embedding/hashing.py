"""
Local feature-hashing embedder
"""

import hashlib
import re
from typing import List

import numpy as np

from .base import BaseEmbedder, EmbeddingConfig

DEFAULT_HASHING_DIMENSION = 256

_WORD_RE = re.compile(r"\w+", re.UNICODE)


class HashingEmbedder(BaseEmbedder):
    """
    Deterministic bag-of-words embedder that needs no network.

    Each lower-cased word is hashed into one of ``dimension`` buckets with a
    hash-derived sign, and the resulting vector is L2 normalised. Texts that
    share words get similar vectors, which is enough for tests, demos and
    offline pipelines.
    """

    def __init__(self, config: EmbeddingConfig):
        if config.dimension is None:
            config = config.model_copy(update={"dimension": DEFAULT_HASHING_DIMENSION})
        super().__init__(config)

    def _vectorize(self, text: str) -> np.ndarray:
        vector = np.zeros(self.dimension, dtype=np.float64)
        for word in _WORD_RE.findall(text.lower()):
            digest = hashlib.blake2b(word.encode("utf-8"), digest_size=8).digest()
            value = int.from_bytes(digest, "little")
            sign = 1.0 if value & 1 else -1.0
            vector[(value >> 1) % self.dimension] += sign
        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector

    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        return [self._vectorize(text).tolist() for text in texts]
