import pytest

from fakes import ByteSplittingTokenizer
from rag_toolchain.chunking.base import ChunkConfig
from rag_toolchain.chunking.token import TokenChunker
from rag_toolchain.clients.scripted import ScriptedChatClient
from rag_toolchain.embedding.base import EmbeddingConfig
from rag_toolchain.stores.base import VectorStoreConfig
from rag_toolchain.stores.memory import InMemoryVectorStore


@pytest.fixture
def tokenizer():
    """Offline tokenizer that splits non-ASCII characters into byte tokens"""
    return ByteSplittingTokenizer()


@pytest.fixture
def token_chunker(tokenizer):
    """TokenChunker backed by the offline tokenizer, 4 tokens per chunk"""
    return TokenChunker(ChunkConfig(max_tokens_per_chunk=4), tokenizer=tokenizer)


@pytest.fixture
def hashing_embedder():
    return EmbeddingConfig(type="hashing", model_name="hashing", dimension=64).get()


@pytest.fixture
def memory_store():
    """Two-dimensional cosine store"""
    return InMemoryVectorStore(VectorStoreConfig(type="memory", dimension=2))


@pytest.fixture
def hashing_store():
    """Store sized for the hashing embedder"""
    return InMemoryVectorStore(VectorStoreConfig(type="memory", dimension=64))


@pytest.fixture
def scripted_client():
    return ScriptedChatClient()
