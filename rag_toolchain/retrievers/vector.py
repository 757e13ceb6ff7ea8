"""
Retriever binding a vector store to an embedder
"""

import logging
from typing import List, Optional

from .base import BaseRetriever
from rag_toolchain.common.types import DistanceFunction, SearchResult
from rag_toolchain.embedding.base import BaseEmbedder
from rag_toolchain.stores.base import BaseVectorStore

logger = logging.getLogger(__name__)


class VectorStoreRetriever(BaseRetriever):
    """
    Embeds the query with one ``embed`` call and searches the store.

    Embedder and store errors propagate unchanged.
    """

    def __init__(
        self,
        store: BaseVectorStore,
        embedder: BaseEmbedder,
        distance_function: DistanceFunction = DistanceFunction.COSINE,
    ):
        self.store = store
        self.embedder = embedder
        self.distance_function = distance_function

    async def retrieve(
        self,
        query: str,
        k: int,
        distance_function: Optional[DistanceFunction] = None,
    ) -> List[SearchResult]:
        query_embedding = await self.embedder.embed(query)
        results = await self.store.similarity_search(
            query_embedding, k, distance_function or self.distance_function
        )
        logger.debug(f"Retrieved {len(results)} records for k={k}")
        return results
