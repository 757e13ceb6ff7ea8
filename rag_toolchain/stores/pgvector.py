"""
PostgreSQL + pgvector store implementation
"""

import asyncio
import json
import math
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .base import BaseVectorStore, NewRecord, VectorStoreConfig
from rag_toolchain.common.types import DistanceFunction, Embedding, SearchResult, StoredRecord
from rag_toolchain.core.exceptions import BackendUnavailable, ConfigurationError, NotFound

logger = logging.getLogger(__name__)

# pgvector distance operators; <#> is the negative inner product
OPERATORS = {
    DistanceFunction.COSINE: "<=>",
    DistanceFunction.EUCLIDEAN: "<->",
    DistanceFunction.DOT_PRODUCT: "<#>",
}

INDEX_OPERATOR_CLASSES = {
    DistanceFunction.COSINE: "vector_cosine_ops",
    DistanceFunction.EUCLIDEAN: "vector_l2_ops",
    DistanceFunction.DOT_PRODUCT: "vector_ip_ops",
}


def to_vector_literal(vector: Sequence[float]) -> str:
    return "[" + ",".join(repr(float(v)) for v in vector) + "]"


def distance_to_score(distance: Optional[float], distance_function: DistanceFunction) -> float:
    """Convert a pgvector operator result into the common score orientation"""
    if distance_function == DistanceFunction.COSINE:
        # pgvector has no cosine distance for a zero vector
        if distance is None or math.isnan(distance):
            return 0.0
        return 1.0 - float(distance)
    if distance_function == DistanceFunction.DOT_PRODUCT:
        return -float(distance)
    return float(distance)


def _is_unavailable(error: BaseException) -> bool:
    if isinstance(error, (OperationalError, InterfaceError, OSError, asyncio.TimeoutError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


class PgVectorStore(BaseVectorStore):
    """
    Vector store backed by a PostgreSQL table with a pgvector column.

    One SQLAlchemy async engine (and its connection pool) is created per
    store and shared by every retriever built from it. Call ``initialize()``
    once to create the extension and table, and ``close()`` to dispose of the
    pool.
    """

    def __init__(self, config: VectorStoreConfig, engine: Optional[AsyncEngine] = None):
        super().__init__(config)
        if engine is None:
            if not config.connection_url:
                raise ConfigurationError("connection_url is required for the pgvector store")
            engine = create_async_engine(
                config.connection_url,
                echo=False,
                pool_size=config.pool_size,
                pool_pre_ping=True,
            )
        self.engine = engine
        self.table = config.table_name

    @asynccontextmanager
    async def _begin(self) -> AsyncIterator[AsyncConnection]:
        try:
            async with self.engine.begin() as conn:
                yield conn
        except Exception as e:
            if _is_unavailable(e):
                logger.error(f"pgvector backend unavailable: {e}")
                raise BackendUnavailable(str(e), e) from e
            raise

    async def initialize(self) -> None:
        """Create the pgvector extension and the backing table if missing"""
        async with self._begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.execute(text(f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id BIGSERIAL PRIMARY KEY,
                    content TEXT NOT NULL,
                    embedding vector({self.dimension}) NOT NULL,
                    metadata JSONB NOT NULL DEFAULT '{{}}'::jsonb
                )
            """))
        logger.info(f"Initialized pgvector table {self.table} ({self.dimension}d)")

    async def create_index(self, distance_function: Optional[DistanceFunction] = None) -> None:
        """Create an HNSW index for the given distance function"""
        distance_function = distance_function or self.distance_function
        ops = INDEX_OPERATOR_CLASSES[distance_function]
        async with self._begin() as conn:
            await conn.execute(text(
                f"CREATE INDEX IF NOT EXISTS {self.table}_embedding_{distance_function.value}_idx "
                f"ON {self.table} USING hnsw (embedding {ops})"
            ))

    async def _insert(self, records: List[NewRecord]) -> List[str]:
        statement = text(f"""
            INSERT INTO {self.table} (content, embedding, metadata)
            VALUES (:content, CAST(:embedding AS vector), CAST(:metadata AS jsonb))
            RETURNING id
        """)
        ids = []
        # one transaction, so a failed batch writes nothing
        async with self._begin() as conn:
            for record in records:
                result = await conn.execute(statement, {
                    "content": record.content,
                    "embedding": to_vector_literal(record.embedding.vector),
                    "metadata": json.dumps(record.metadata),
                })
                ids.append(str(result.scalar_one()))
        return ids

    async def _search(
        self, query_embedding: Embedding, k: int, distance_function: DistanceFunction
    ) -> List[SearchResult]:
        distance = f"embedding {OPERATORS[distance_function]} CAST(:query AS vector)"
        if distance_function == DistanceFunction.COSINE:
            # zero vectors rank as orthogonal, score 0
            distance = f"COALESCE(NULLIF({distance}, 'NaN'::float8), 1.0)"
        async with self._begin() as conn:
            result = await conn.execute(text(f"""
                SELECT id, content, embedding::text AS embedding, metadata,
                       {distance} AS distance
                FROM {self.table}
                ORDER BY distance, id
                LIMIT :k
            """), {"query": to_vector_literal(query_embedding.vector), "k": k})
            rows = result.mappings().all()

        return [
            SearchResult(
                record=self._row_to_record(row),
                score=distance_to_score(row["distance"], distance_function),
            )
            for row in rows
        ]

    async def delete(self, record_id: str) -> None:
        key = self._parse_id(record_id)
        async with self._begin() as conn:
            result = await conn.execute(
                text(f"DELETE FROM {self.table} WHERE id = :id RETURNING id"), {"id": key}
            )
            if result.first() is None:
                raise NotFound(record_id)

    async def get(self, record_id: str) -> StoredRecord:
        key = self._parse_id(record_id)
        async with self._begin() as conn:
            result = await conn.execute(text(f"""
                SELECT id, content, embedding::text AS embedding, metadata
                FROM {self.table}
                WHERE id = :id
            """), {"id": key})
            row = result.mappings().first()
        if row is None:
            raise NotFound(record_id)
        return self._row_to_record(row)

    async def count(self) -> int:
        async with self._begin() as conn:
            result = await conn.execute(text(f"SELECT count(*) FROM {self.table}"))
            return int(result.scalar_one())

    async def close(self) -> None:
        await self.engine.dispose()

    @staticmethod
    def _parse_id(record_id: str) -> int:
        try:
            return int(record_id)
        except (TypeError, ValueError):
            raise NotFound(record_id) from None

    @staticmethod
    def _row_to_record(row: Dict[str, Any]) -> StoredRecord:
        metadata = row["metadata"]
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        return StoredRecord(
            id=str(row["id"]),
            content=row["content"],
            embedding=Embedding(vector=json.loads(row["embedding"])),
            metadata=metadata,
        )
