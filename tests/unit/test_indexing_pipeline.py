import pytest

from rag_toolchain.chains.rag import RAGChain
from rag_toolchain.chunking.base import ChunkConfig
from rag_toolchain.chunking.character import CharacterChunker
from rag_toolchain.clients.scripted import ScriptedChatClient
from rag_toolchain.core.exceptions import DimensionMismatch
from rag_toolchain.embedding.base import EmbeddingConfig
from rag_toolchain.indexing.pipeline import IndexingConfig, IndexingPipeline
from rag_toolchain.loaders.single_file import SingleFileLoader
from rag_toolchain.stores.base import VectorStoreConfig
from rag_toolchain.stores.memory import InMemoryVectorStore


@pytest.fixture
def pipeline(token_chunker, hashing_embedder, hashing_store):
    return IndexingPipeline(token_chunker, hashing_embedder, hashing_store)


@pytest.mark.asyncio
async def test_initialize_rejects_dimension_mismatch(token_chunker, hashing_embedder, memory_store):
    pipeline = IndexingPipeline(token_chunker, hashing_embedder, memory_store)

    with pytest.raises(DimensionMismatch) as exc_info:
        await pipeline.initialize()

    assert (exc_info.value.expected, exc_info.value.actual) == (2, 64)


@pytest.mark.asyncio
async def test_ingest_stores_one_record_per_chunk(pipeline, hashing_store, token_chunker):
    text = "one two three four five six seven eight nine"
    await pipeline.initialize()

    ids = await pipeline.ingest(text, {"title": "numbers"})

    chunks = token_chunker.chunk(text).to_list()
    assert len(ids) == len(chunks) == await hashing_store.count()
    for record_id, chunk in zip(ids, chunks):
        record = await hashing_store.get(record_id)
        assert record.content == chunk.content
        assert record.metadata == {
            "title": "numbers",
            "chunk_index": chunk.index,
            "token_count": chunk.token_count,
        }


@pytest.mark.asyncio
async def test_ingest_empty_text_stores_nothing(pipeline, hashing_store):
    assert await pipeline.ingest("") == []
    assert await hashing_store.count() == 0


@pytest.mark.asyncio
async def test_ingest_many_groups_ids_per_document(pipeline, hashing_store):
    texts = ["alpha beta gamma delta epsilon", "", "zeta eta"]

    grouped = await pipeline.ingest_many(texts, [{"doc": 0}, {"doc": 1}, None])

    assert [len(ids) for ids in grouped] == [2, 0, 1]
    first = await hashing_store.get(grouped[0][1])
    assert first.metadata["doc"] == 0
    assert first.metadata["chunk_index"] == 1
    last = await hashing_store.get(grouped[2][0])
    assert last.content == "zeta eta"
    assert "doc" not in last.metadata


@pytest.mark.asyncio
async def test_ingest_many_rejects_mismatched_metadata(pipeline):
    with pytest.raises(ValueError):
        await pipeline.ingest_many(["a", "b"], [{}])


@pytest.mark.asyncio
async def test_ingest_file_records_source(pipeline, hashing_store, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("café notes about vectors", encoding="utf-8")

    ids = await pipeline.ingest_file(path, {"author": "ops"})

    record = await hashing_store.get(ids[0])
    assert record.metadata["source"] == str(path)
    assert record.metadata["author"] == "ops"


@pytest.mark.asyncio
async def test_loader_reads_file_and_rejects_missing(tmp_path):
    path = tmp_path / "doc.txt"
    path.write_text("line one\nline two\n", encoding="utf-8")

    assert await SingleFileLoader(path).load() == "line one\nline two\n"
    with pytest.raises(FileNotFoundError):
        await SingleFileLoader(tmp_path / "missing.txt").load()


@pytest.mark.asyncio
async def test_indexed_documents_feed_a_rag_chain():
    config = IndexingConfig(
        chunking=ChunkConfig(type="character", max_tokens_per_chunk=200),
        embedding=EmbeddingConfig(type="hashing", model_name="hashing", dimension=512),
        store=VectorStoreConfig(type="memory", dimension=512),
    )
    pipeline = IndexingPipeline.from_config(config)
    assert isinstance(pipeline.chunker, CharacterChunker)
    assert isinstance(pipeline.store, InMemoryVectorStore)

    await pipeline.initialize()
    await pipeline.ingest_many([
        "The staging database runs postgres 16 with the pgvector extension.",
        "Lunch is served in the cafeteria at noon.",
    ])

    client = ScriptedChatClient(["Postgres 16."])
    chain = (
        RAGChain.builder()
        .system_prompt("Answer from the supporting information.")
        .chat_client(client)
        .retriever(pipeline.store.as_retriever(pipeline.embedder))
        .build()
    )

    run = await chain.run("Which postgres version does the staging database run?", k=1)

    assert run.response.content == "Postgres 16."
    assert run.context[0].content.startswith("The staging database")
    assert "pgvector extension" in client.calls[0][1].content
