"""
Base vector store interface
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from rag_toolchain.common.types import DistanceFunction, Embedding, SearchResult, StoredRecord
from rag_toolchain.core.config.settings import settings
from rag_toolchain.core.exceptions import DimensionMismatch

if TYPE_CHECKING:
    from rag_toolchain.embedding.base import BaseEmbedder
    from rag_toolchain.retrievers.vector import VectorStoreRetriever

logger = logging.getLogger(__name__)

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class VectorStoreConfig(BaseModel):
    """Configuration for vector store"""
    type: str = Field(default="memory", description="Type of vector store (memory, pgvector)")
    dimension: int = Field(default=1536, description="Dimensionality of every stored embedding")
    distance_function: DistanceFunction = Field(
        default=DistanceFunction.COSINE, description="Default distance function for searches")
    table_name: str = Field(
        default_factory=lambda: settings.VECTOR_STORE_TABLE, description="Backing table name")
    connection_url: Optional[str] = Field(
        default_factory=lambda: settings.POSTGRES_URL,
        description="SQLAlchemy async URL, e.g. postgresql+asyncpg://user:pw@host/db")
    pool_size: int = Field(
        default_factory=lambda: settings.VECTOR_STORE_POOL_SIZE,
        description="Connection pool size")

    @field_validator('dimension', 'pool_size')
    @classmethod
    def validate_positive(cls, v, info):
        if v < 1:
            raise ValueError(f'{info.field_name} must be at least 1')
        return v

    @field_validator('table_name')
    @classmethod
    def validate_table_name(cls, v):
        # interpolated into SQL, so only plain identifiers are allowed
        if not _TABLE_NAME_RE.match(v):
            raise ValueError('table_name must be a plain SQL identifier')
        return v

    def get(self) -> "BaseVectorStore":
        if self.type == "memory":
            from .memory import InMemoryVectorStore
            return InMemoryVectorStore(self.model_copy())
        elif self.type == "pgvector":
            from .pgvector import PgVectorStore
            return PgVectorStore(self.model_copy())
        else:
            raise ValueError(f"Invalid vector store type: {self.type}")

    class Config:
        extra = "allow"


class NewRecord(BaseModel):
    """Content and embedding waiting to be inserted"""
    content: str
    embedding: Embedding
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('metadata', mode='before')
    @classmethod
    def ensure_metadata_dict(cls, v):
        return v or {}


class BaseVectorStore(ABC):
    """Base abstract class for vector store providers"""

    def __init__(self, config: VectorStoreConfig):
        self.config = config

    @property
    def dimension(self) -> int:
        return self.config.dimension

    @property
    def distance_function(self) -> DistanceFunction:
        return self.config.distance_function

    async def initialize(self) -> None:
        """Prepare the backing storage; a no-op for stores that need nothing"""

    async def close(self) -> None:
        """Release connections held by the store"""

    def _check_dimension(self, embedding: Embedding) -> None:
        if embedding.dimensionality != self.dimension:
            raise DimensionMismatch(self.dimension, embedding.dimensionality)

    async def insert(self, content: str, embedding: Embedding, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Store a new record

        Args:
            content: Text of the record
            embedding: Embedding of the text
            metadata: Optional metadata stored alongside

        Returns:
            Identifier assigned by the store
        """
        self._check_dimension(embedding)
        ids = await self._insert([NewRecord(content=content, embedding=embedding, metadata=metadata)])
        return ids[0]

    async def insert_many(self, records: Sequence[NewRecord]) -> List[str]:
        """
        Store several records at once

        Every embedding is checked before anything is written, so a
        dimension mismatch leaves the store untouched.

        Args:
            records: Records to insert

        Returns:
            Identifiers in the same order as ``records``
        """
        if not records:
            return []
        for record in records:
            self._check_dimension(record.embedding)
        return await self._insert(list(records))

    async def similarity_search(
        self,
        query_embedding: Embedding,
        k: int,
        distance_function: Optional[DistanceFunction] = None,
    ) -> List[SearchResult]:
        """
        Find the records closest to a query embedding

        Results are ordered best-first: decreasing similarity for cosine and
        dot product, increasing distance for euclidean. Exact ties keep
        insertion order.

        Args:
            query_embedding: Embedding of the query
            k: Maximum number of results, must be positive
            distance_function: Overrides the store's default

        Returns:
            At most k search results
        """
        if k < 1:
            raise ValueError(f"k must be positive, got {k}")
        self._check_dimension(query_embedding)
        return await self._search(
            query_embedding, k, distance_function or self.distance_function
        )

    def as_retriever(
        self,
        embedder: "BaseEmbedder",
        distance_function: Optional[DistanceFunction] = None,
    ) -> "VectorStoreRetriever":
        """Bind this store to an embedder for query-time retrieval"""
        from rag_toolchain.retrievers.vector import VectorStoreRetriever
        return VectorStoreRetriever(self, embedder, distance_function or self.distance_function)

    @abstractmethod
    async def _insert(self, records: List[NewRecord]) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    async def _search(
        self, query_embedding: Embedding, k: int, distance_function: DistanceFunction
    ) -> List[SearchResult]:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """
        Remove a record

        Raises:
            NotFound: If no record has this identifier
        """
        raise NotImplementedError

    @abstractmethod
    async def get(self, record_id: str) -> StoredRecord:
        """
        Fetch a record by identifier

        Raises:
            NotFound: If no record has this identifier
        """
        raise NotImplementedError

    @abstractmethod
    async def count(self) -> int:
        raise NotImplementedError
