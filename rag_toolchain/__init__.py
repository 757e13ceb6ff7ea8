from rag_toolchain.common.types import (
    Chunk,
    Embedding,
    StoredRecord,
    SearchResult,
    DistanceFunction,
    Role,
    PromptMessage,
)
from rag_toolchain.common.cancellation import CancellationScope
from rag_toolchain.chunking import ChunkConfig, TokenChunker, CharacterChunker
from rag_toolchain.embedding import EmbeddingConfig, HashingEmbedder
from rag_toolchain.clients import ChatConfig, ScriptedChatClient
from rag_toolchain.stores import VectorStoreConfig, InMemoryVectorStore
from rag_toolchain.retrievers import VectorStoreRetriever
from rag_toolchain.chains import (
    RAGChain,
    ChatHistoryChain,
    ChatHistory,
    ChainState,
    RetryPolicy,
)
from rag_toolchain.indexing import IndexingConfig, IndexingPipeline

__version__ = "0.3.0"

__all__ = [
    "Chunk",
    "Embedding",
    "StoredRecord",
    "SearchResult",
    "DistanceFunction",
    "Role",
    "PromptMessage",
    "CancellationScope",
    "ChunkConfig",
    "TokenChunker",
    "CharacterChunker",
    "EmbeddingConfig",
    "HashingEmbedder",
    "ChatConfig",
    "ScriptedChatClient",
    "VectorStoreConfig",
    "InMemoryVectorStore",
    "VectorStoreRetriever",
    "RAGChain",
    "ChatHistoryChain",
    "ChatHistory",
    "ChainState",
    "RetryPolicy",
    "IndexingConfig",
    "IndexingPipeline",
]
