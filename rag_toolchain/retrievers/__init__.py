from .base import BaseRetriever
from .vector import VectorStoreRetriever

__all__ = ["BaseRetriever", "VectorStoreRetriever"]
