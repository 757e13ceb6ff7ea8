"""
Shared domain types used across chunking, embedding, storage and chains
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Chunk(BaseModel):
    """A bounded, contiguous slice of source text"""
    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Text content of the chunk")
    token_count: int = Field(ge=0, description="Number of tokens in the chunk")
    index: int = Field(default=0, ge=0, description="Position of the chunk in its source text")


class Embedding(BaseModel):
    """Fixed-length vector representation of a piece of text"""
    model_config = ConfigDict(frozen=True)

    vector: List[float] = Field(description="Embedding values")

    @field_validator("vector", mode="before")
    @classmethod
    def coerce_floats(cls, v):
        # numpy arrays and tuples are accepted
        return [float(x) for x in v]

    @property
    def dimensionality(self) -> int:
        return len(self.vector)


class StoredRecord(BaseModel):
    """A record owned by a vector store"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Identifier assigned by the store at insert time")
    content: str
    embedding: Embedding
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def ensure_metadata_dict(cls, v):
        return v or {}


class SearchResult(BaseModel):
    """A stored record paired with its score against a query"""
    model_config = ConfigDict(frozen=True)

    record: StoredRecord
    score: float = Field(description="Similarity (cosine, dot product) or distance (euclidean)")

    @property
    def content(self) -> str:
        return self.record.content


# Ordered best-first; transient, produced per query
RetrievedContext = List[SearchResult]


class DistanceFunction(str, Enum):
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dot_product"

    @property
    def higher_is_better(self) -> bool:
        """Cosine and dot product are similarities, euclidean is a distance"""
        return self is not DistanceFunction.EUCLIDEAN


class Role(str, Enum):
    SYSTEM = "system"
    HUMAN = "human"
    AI = "ai"


class PromptMessage(BaseModel):
    """A role-tagged message in a conversation"""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "PromptMessage":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def human(cls, content: str) -> "PromptMessage":
        return cls(role=Role.HUMAN, content=content)

    @classmethod
    def ai(cls, content: str) -> "PromptMessage":
        return cls(role=Role.AI, content=content)
