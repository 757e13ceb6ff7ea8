"""
In-memory vector store implementation
"""

import logging
from itertools import count as counter
from typing import Dict, List

import numpy as np

from .base import BaseVectorStore, NewRecord, VectorStoreConfig
from rag_toolchain.common.types import DistanceFunction, Embedding, SearchResult, StoredRecord
from rag_toolchain.core.exceptions import NotFound

logger = logging.getLogger(__name__)


def score_vectors(matrix: np.ndarray, query: np.ndarray, distance_function: DistanceFunction) -> np.ndarray:
    """
    Score every row of ``matrix`` against ``query``

    Returns cosine similarity, raw dot product or euclidean distance.
    Cosine against a zero vector scores 0.
    """
    if distance_function == DistanceFunction.EUCLIDEAN:
        return np.linalg.norm(matrix - query, axis=1)
    dots = matrix @ query
    if distance_function == DistanceFunction.DOT_PRODUCT:
        return dots
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    return np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)


class InMemoryVectorStore(BaseVectorStore):
    """Vector store kept in process memory, records held in insertion order"""

    def __init__(self, config: VectorStoreConfig):
        super().__init__(config)
        self._records: Dict[str, StoredRecord] = {}
        self._ids = counter(1)

    async def _insert(self, records: List[NewRecord]) -> List[str]:
        ids = []
        for record in records:
            record_id = str(next(self._ids))
            self._records[record_id] = StoredRecord(
                id=record_id,
                content=record.content,
                embedding=record.embedding,
                metadata=record.metadata,
            )
            ids.append(record_id)
        logger.debug(f"Inserted {len(ids)} records, store size {len(self._records)}")
        return ids

    async def _search(
        self, query_embedding: Embedding, k: int, distance_function: DistanceFunction
    ) -> List[SearchResult]:
        if not self._records:
            return []

        records = list(self._records.values())
        matrix = np.array([r.embedding.vector for r in records], dtype=np.float64)
        query = np.array(query_embedding.vector, dtype=np.float64)
        scores = score_vectors(matrix, query, distance_function)

        keys = -scores if distance_function.higher_is_better else scores
        # lexsort is stable and sorts on the last key first
        order = np.lexsort((np.arange(len(records)), keys))[:k]
        return [SearchResult(record=records[i], score=float(scores[i])) for i in order]

    async def delete(self, record_id: str) -> None:
        if self._records.pop(record_id, None) is None:
            raise NotFound(record_id)

    async def get(self, record_id: str) -> StoredRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise NotFound(record_id) from None

    async def count(self) -> int:
        return len(self._records)
