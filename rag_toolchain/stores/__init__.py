from .base import VectorStoreConfig, BaseVectorStore, NewRecord
from .memory import InMemoryVectorStore, score_vectors

__all__ = [
    "VectorStoreConfig",
    "BaseVectorStore",
    "NewRecord",
    "InMemoryVectorStore",
    "score_vectors",
]
