from .base import EmbeddingConfig, BaseEmbedder
from .models import EMBEDDING_MODELS, EmbeddingModelInfo, get_model_info
from .hashing import HashingEmbedder

__all__ = [
    "EmbeddingConfig",
    "BaseEmbedder",
    "EMBEDDING_MODELS",
    "EmbeddingModelInfo",
    "get_model_info",
    "HashingEmbedder",
]
