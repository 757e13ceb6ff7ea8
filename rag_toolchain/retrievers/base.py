"""
Base retriever interface
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from rag_toolchain.common.types import DistanceFunction, SearchResult


class BaseRetriever(ABC):
    """Base abstract class for query-time retrieval"""

    @abstractmethod
    async def retrieve(
        self,
        query: str,
        k: int,
        distance_function: Optional[DistanceFunction] = None,
    ) -> List[SearchResult]:
        """
        Find the stored records most relevant to a query

        Args:
            query: Natural language query
            k: Maximum number of results
            distance_function: Overrides the retriever's default

        Returns:
            Search results ordered best-first
        """
        raise NotImplementedError
