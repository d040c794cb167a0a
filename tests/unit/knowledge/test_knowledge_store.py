"""
Tests for KnowledgeStore.

Uses an in-memory Chroma client; each test gets its own collection prefix.
"""

import uuid
from unittest.mock import MagicMock

import chromadb
import pytest
import pytest_asyncio
from chromadb.config import Settings

from sitechat.knowledge.embeddings import EmbeddingDimensionError
from sitechat.knowledge.store import KnowledgeStore, KnowledgeStoreError, collection_name_for

QUERY = [1.0, 0.0, 0.0]
CLOSE = [0.8, 0.6, 0.0]  # similarity 0.8
CLOSER = [0.96, 0.28, 0.0]  # similarity 0.96
FAR = [0.0, 1.0, 0.0]  # similarity 0.0


@pytest.fixture(scope="module")
def chroma_client():
    return chromadb.EphemeralClient(settings=Settings(anonymized_telemetry=False))


def _store(client, model="test-embed"):
    return KnowledgeStore(
        client,
        embedding_model=model,
        dimension=3,
        collection_prefix=f"t{uuid.uuid4().hex[:12]}",
    )


@pytest_asyncio.fixture
async def store(chroma_client):
    knowledge_store = _store(chroma_client)
    await knowledge_store.initialize()
    return knowledge_store


class TestCollectionName:
    """Collection naming."""

    def test_slugifies_model(self):
        assert collection_name_for("chunks", "models/text-embedding-004") == "chunks_models-text-embedding-004"

    def test_truncates_to_chroma_limit(self):
        assert len(collection_name_for("chunks", "x" * 200)) <= 63


class TestSearch:
    """Similarity search."""

    @pytest.mark.asyncio
    async def test_empty_store_returns_nothing(self, store):
        assert await store.search("proj_1", QUERY) == []

    @pytest.mark.asyncio
    async def test_threshold_and_ordering(self, store):
        await store.store(
            "doc-1",
            "proj_1",
            [("close", CLOSE), ("far", FAR), ("closer", CLOSER)],
            source_url="https://example.com",
        )

        assert await store.search("proj_1", QUERY, threshold=0.7, limit=5) == ["closer", "close"]
        assert await store.search("proj_1", QUERY, threshold=0.9, limit=5) == ["closer"]

    @pytest.mark.asyncio
    async def test_threshold_is_strict(self, store):
        """A 0.8 match clears 0.79 but not 0.81, allowing for float32 distances."""
        await store.store("doc-1", "proj_1", [("close", CLOSE)])

        assert await store.search("proj_1", QUERY, threshold=0.79, limit=5) == ["close"]
        assert await store.search("proj_1", QUERY, threshold=0.81, limit=5) == []

    @pytest.mark.asyncio
    async def test_similarity_equal_to_threshold_is_excluded(self):
        knowledge_store = KnowledgeStore(MagicMock(), embedding_model="test-embed", dimension=3)
        knowledge_store.collection = MagicMock()
        knowledge_store.collection.count.return_value = 2
        knowledge_store.collection.query.return_value = {
            "documents": [["at threshold", "above"]],
            "distances": [[0.25, 0.1]],
        }

        assert await knowledge_store.search("proj_1", QUERY, threshold=0.75) == ["above"]

    @pytest.mark.asyncio
    async def test_limit(self, store):
        await store.store("doc-1", "proj_1", [("close", CLOSE), ("closer", CLOSER)])

        assert await store.search("proj_1", QUERY, limit=1) == ["closer"]
        assert await store.search("proj_1", QUERY, limit=0) == []

    @pytest.mark.asyncio
    async def test_projects_are_isolated(self, store):
        """Chunks of one project never surface for another."""
        await store.store("doc-a", "proj_a", [("secret of a", CLOSER)])
        await store.store("doc-b", "proj_b", [("public of b", CLOSE)])

        assert await store.search("proj_b", QUERY) == ["public of b"]
        assert await store.search("proj_c", QUERY) == []

    @pytest.mark.asyncio
    async def test_query_dimension_checked(self, store):
        with pytest.raises(EmbeddingDimensionError):
            await store.search("proj_1", [1.0, 0.0])


class TestStore:
    """Chunk insertion."""

    @pytest.mark.asyncio
    async def test_returns_count_and_records_metadata(self, store):
        stored = await store.store(
            "doc-1",
            "proj_1",
            [("one", CLOSE), ("two", FAR)],
            source_url="https://example.com/about",
            chunk_indexes=[0, 2],
        )

        assert stored == 2
        records = store.collection.get(ids=["doc-1:0", "doc-1:2"], include=["metadatas"])
        metadata = {m["chunk_index"]: m for m in records["metadatas"]}
        assert metadata[2]["project_id"] == "proj_1"
        assert metadata[2]["source_url"] == "https://example.com/about"
        assert metadata[0]["embedding_model"] == "test-embed"

    @pytest.mark.asyncio
    async def test_empty_batch(self, store):
        assert await store.store("doc-1", "proj_1", []) == 0

    @pytest.mark.asyncio
    async def test_wrong_dimension_rejected(self, store):
        with pytest.raises(EmbeddingDimensionError):
            await store.store("doc-1", "proj_1", [("bad", [1.0, 0.0, 0.0, 0.0])])

        assert await store.search("proj_1", QUERY) == []

    @pytest.mark.asyncio
    async def test_requires_initialize(self, chroma_client):
        with pytest.raises(KnowledgeStoreError):
            await _store(chroma_client).store("doc-1", "proj_1", [("x", CLOSE)])


class TestEmbeddingModels:
    """Vectors of different models live in different collections."""

    @pytest.mark.asyncio
    async def test_other_model_not_searched(self, chroma_client):
        prefix = f"t{uuid.uuid4().hex[:12]}"
        first = KnowledgeStore(chroma_client, "model-a", 3, collection_prefix=prefix)
        second = KnowledgeStore(chroma_client, "model-b", 3, collection_prefix=prefix)
        await first.initialize()
        await second.initialize()

        await first.store("doc-1", "proj_1", [("from a", CLOSER)])

        assert first.collection_name != second.collection_name
        assert await second.search("proj_1", QUERY) == []
        assert await first.search("proj_1", QUERY) == ["from a"]
