from .types import (
    Chunk,
    Embedding,
    StoredRecord,
    SearchResult,
    RetrievedContext,
    DistanceFunction,
    Role,
    PromptMessage,
)
from .cancellation import CancellationScope, guarded

__all__ = [
    "Chunk",
    "Embedding",
    "StoredRecord",
    "SearchResult",
    "RetrievedContext",
    "DistanceFunction",
    "Role",
    "PromptMessage",
    "CancellationScope",
    "guarded",
]
