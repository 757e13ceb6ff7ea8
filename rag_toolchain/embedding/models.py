"""
Known embedding models and their fixed properties
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class EmbeddingModelInfo(BaseModel):
    dimension: int = Field(description="Length of every vector the model returns")
    max_tokens: int = Field(description="Maximum input length in tokens")
    encoding: str = Field(description="tiktoken encoding used to count input tokens")


EMBEDDING_MODELS: Dict[str, EmbeddingModelInfo] = {
    "text-embedding-ada-002": EmbeddingModelInfo(dimension=1536, max_tokens=8192, encoding="cl100k_base"),
    "text-embedding-3-small": EmbeddingModelInfo(dimension=1536, max_tokens=8191, encoding="cl100k_base"),
    "text-embedding-3-large": EmbeddingModelInfo(dimension=3072, max_tokens=8191, encoding="cl100k_base"),
}


def get_model_info(model_name: str) -> Optional[EmbeddingModelInfo]:
    return EMBEDDING_MODELS.get(model_name)
