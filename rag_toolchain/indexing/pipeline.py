"""
Write path: chunk source text, embed the chunks and store them
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from rag_toolchain.chunking.base import BaseChunker, ChunkConfig
from rag_toolchain.common.types import Chunk
from rag_toolchain.core.exceptions import DimensionMismatch
from rag_toolchain.embedding.base import BaseEmbedder, EmbeddingConfig
from rag_toolchain.loaders.single_file import SingleFileLoader
from rag_toolchain.stores.base import BaseVectorStore, NewRecord, VectorStoreConfig

logger = logging.getLogger(__name__)


class IndexingConfig(BaseModel):
    """Complete write-path configuration"""
    chunking: ChunkConfig = Field(default_factory=ChunkConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)

    class Config:
        extra = "allow"


class IndexingPipeline:
    """
    Orchestrates chunking, embedding and storage of source documents

    Every stored record carries the caller's metadata plus ``chunk_index``
    and ``token_count`` of its chunk.
    """

    def __init__(self, chunker: BaseChunker, embedder: BaseEmbedder, store: BaseVectorStore):
        self.chunker = chunker
        self.embedder = embedder
        self.store = store

    @classmethod
    def from_config(cls, config: IndexingConfig) -> "IndexingPipeline":
        return cls(config.chunking.get(), config.embedding.get(), config.store.get())

    async def initialize(self) -> None:
        """Check the embedder and store agree on dimension and prepare the store"""
        if self.embedder.dimension != self.store.dimension:
            raise DimensionMismatch(self.store.dimension, self.embedder.dimension)
        await self.store.initialize()
        logger.info(f"Indexing pipeline ready ({self.store.dimension}d)")

    async def ingest(self, text: str, metadata: Optional[Dict[str, Any]] = None) -> List[str]:
        """
        Chunk, embed and store one document

        Args:
            text: Document text
            metadata: Optional metadata copied onto every chunk record

        Returns:
            Identifiers of the stored chunk records, in chunk order
        """
        chunks = self.chunker.chunk(text).to_list()
        if not chunks:
            logger.warning("No chunks created, nothing to index")
            return []
        return await self._store_chunks(chunks, metadata)

    async def ingest_many(
        self,
        texts: Sequence[str],
        metadatas: Optional[Sequence[Optional[Dict[str, Any]]]] = None,
    ) -> List[List[str]]:
        """
        Chunk, embed and store several documents

        Documents are chunked in parallel and all chunks are embedded
        together, so batches are filled across document boundaries.

        Returns:
            One list of record identifiers per document
        """
        if metadatas is not None and len(metadatas) != len(texts):
            raise ValueError("metadatas must have one entry per text")
        chunk_lists = await self.chunker.chunk_many(list(texts))

        flat: List[Chunk] = [chunk for chunks in chunk_lists for chunk in chunks]
        embeddings = await self.embedder.embed_many([chunk.content for chunk in flat])

        records = []
        position = 0
        for doc_index, chunks in enumerate(chunk_lists):
            metadata = metadatas[doc_index] if metadatas is not None else None
            for chunk in chunks:
                records.append(self._to_record(chunk, embeddings[position], metadata))
                position += 1

        ids = await self.store.insert_many(records)

        grouped = []
        offset = 0
        for chunks in chunk_lists:
            grouped.append(ids[offset:offset + len(chunks)])
            offset += len(chunks)
        logger.info(f"Indexed {len(texts)} documents as {len(ids)} records")
        return grouped

    async def ingest_file(self, path: Union[str, Path], metadata: Optional[Dict[str, Any]] = None) -> List[str]:
        """Load a text file and index it, recording its path as ``source``"""
        text = await SingleFileLoader(path).load()
        return await self.ingest(text, {"source": str(path), **(metadata or {})})

    async def _store_chunks(self, chunks: List[Chunk], metadata: Optional[Dict[str, Any]]) -> List[str]:
        embeddings = await self.embedder.embed_many([chunk.content for chunk in chunks])
        records = [
            self._to_record(chunk, embedding, metadata)
            for chunk, embedding in zip(chunks, embeddings)
        ]
        ids = await self.store.insert_many(records)
        logger.info(f"Indexed {len(ids)} chunks")
        return ids

    @staticmethod
    def _to_record(chunk: Chunk, embedding, metadata: Optional[Dict[str, Any]]) -> NewRecord:
        return NewRecord(
            content=chunk.content,
            embedding=embedding,
            metadata={**(metadata or {}), "chunk_index": chunk.index, "token_count": chunk.token_count},
        )
