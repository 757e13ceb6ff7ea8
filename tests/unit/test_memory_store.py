import math

import pytest
from pydantic import ValidationError

from fakes import vector
from rag_toolchain.common.types import DistanceFunction
from rag_toolchain.core.exceptions import DimensionMismatch, NotFound
from rag_toolchain.stores.base import NewRecord, VectorStoreConfig
from rag_toolchain.stores.memory import InMemoryVectorStore


def at_cosine(similarity: float):
    """Unit vector whose cosine similarity with (1, 0) is ``similarity``"""
    return vector(similarity, math.sqrt(1 - similarity ** 2))


@pytest.mark.asyncio
async def test_cosine_ties_keep_insertion_order(memory_store):
    a = await memory_store.insert("A", at_cosine(0.9))
    await memory_store.insert("B", at_cosine(0.5))
    c = await memory_store.insert("C", at_cosine(0.9))

    results = await memory_store.similarity_search(vector(1.0, 0.0), k=2)

    assert [r.record.id for r in results] == [a, c]
    assert [r.content for r in results] == ["A", "C"]
    assert results[0].score == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_insert_then_search_returns_record_with_maximal_score(memory_store):
    await memory_store.insert("other", vector(0.0, 1.0))
    record_id = await memory_store.insert("target", vector(3.0, 4.0), {"source": "doc"})

    results = await memory_store.similarity_search(vector(3.0, 4.0), k=1)

    assert len(results) == 1
    assert results[0].record.id == record_id
    assert results[0].record.metadata == {"source": "doc"}
    assert results[0].score == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_euclidean_orders_by_increasing_distance(memory_store):
    await memory_store.insert("far", vector(10.0, 0.0))
    await memory_store.insert("near", vector(1.0, 1.0))
    await memory_store.insert("mid", vector(4.0, 0.0))

    results = await memory_store.similarity_search(
        vector(0.0, 0.0), k=3, distance_function=DistanceFunction.EUCLIDEAN
    )

    assert [r.content for r in results] == ["near", "mid", "far"]
    assert results[0].score == pytest.approx(math.sqrt(2))


@pytest.mark.asyncio
async def test_dot_product_uses_raw_scores(memory_store):
    await memory_store.insert("small", vector(1.0, 0.0))
    await memory_store.insert("large", vector(5.0, 0.0))

    results = await memory_store.similarity_search(
        vector(2.0, 0.0), k=2, distance_function=DistanceFunction.DOT_PRODUCT
    )

    assert [r.content for r in results] == ["large", "small"]
    assert [r.score for r in results] == [pytest.approx(10.0), pytest.approx(2.0)]


@pytest.mark.asyncio
async def test_search_returns_at_most_k(memory_store):
    for i in range(3):
        await memory_store.insert(f"r{i}", vector(1.0, float(i)))

    assert len(await memory_store.similarity_search(vector(1.0, 0.0), k=10)) == 3
    assert len(await memory_store.similarity_search(vector(1.0, 0.0), k=2)) == 2


@pytest.mark.asyncio
async def test_search_on_empty_store(memory_store):
    assert await memory_store.similarity_search(vector(1.0, 0.0), k=3) == []


@pytest.mark.asyncio
async def test_k_must_be_positive(memory_store):
    with pytest.raises(ValueError):
        await memory_store.similarity_search(vector(1.0, 0.0), k=0)


@pytest.mark.asyncio
async def test_zero_vector_scores_zero_under_cosine(memory_store):
    await memory_store.insert("zero", vector(0.0, 0.0))

    results = await memory_store.similarity_search(vector(1.0, 0.0), k=1)

    assert results[0].score == 0.0


@pytest.mark.asyncio
async def test_dimension_mismatch_on_insert_and_search(memory_store):
    with pytest.raises(DimensionMismatch) as exc_info:
        await memory_store.insert("bad", vector(1.0, 2.0, 3.0))
    assert (exc_info.value.expected, exc_info.value.actual) == (2, 3)

    with pytest.raises(DimensionMismatch):
        await memory_store.similarity_search(vector(1.0), k=1)


@pytest.mark.asyncio
async def test_insert_many_validates_everything_first(memory_store):
    records = [
        NewRecord(content="ok", embedding=vector(1.0, 0.0)),
        NewRecord(content="bad", embedding=vector(1.0)),
    ]

    with pytest.raises(DimensionMismatch):
        await memory_store.insert_many(records)

    assert await memory_store.count() == 0


@pytest.mark.asyncio
async def test_insert_many_returns_ids_in_order(memory_store):
    ids = await memory_store.insert_many([
        NewRecord(content="first", embedding=vector(1.0, 0.0)),
        NewRecord(content="second", embedding=vector(0.0, 1.0), metadata=None),
    ])

    assert len(set(ids)) == 2
    assert (await memory_store.get(ids[0])).content == "first"
    assert (await memory_store.get(ids[1])).metadata == {}


@pytest.mark.asyncio
async def test_inserting_same_content_appends(memory_store):
    first = await memory_store.insert("same", vector(1.0, 0.0))
    second = await memory_store.insert("same", vector(1.0, 0.0))

    assert first != second
    assert await memory_store.count() == 2


@pytest.mark.asyncio
async def test_delete_and_not_found(memory_store):
    record_id = await memory_store.insert("gone", vector(1.0, 0.0))

    await memory_store.delete(record_id)

    assert await memory_store.count() == 0
    with pytest.raises(NotFound):
        await memory_store.delete(record_id)
    with pytest.raises(NotFound):
        await memory_store.get(record_id)


@pytest.mark.asyncio
async def test_ids_are_not_reused_after_delete(memory_store):
    first = await memory_store.insert("a", vector(1.0, 0.0))
    await memory_store.delete(first)
    second = await memory_store.insert("b", vector(1.0, 0.0))

    assert first != second


def test_config_factory_and_validation():
    assert isinstance(VectorStoreConfig(type="memory", dimension=3).get(), InMemoryVectorStore)
    with pytest.raises(ValueError):
        VectorStoreConfig(type="chroma").get()
    with pytest.raises(ValidationError):
        VectorStoreConfig(table_name="embeddings; DROP TABLE users")
    with pytest.raises(ValidationError):
        VectorStoreConfig(dimension=0)
