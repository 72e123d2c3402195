"""Tests for the SQLite knowledge base store."""

from pathlib import Path

import pytest

from context_layer.models import Chunk, ChunkMetadata, Enrichment, KnowledgeBaseSettings
from context_layer.storage.knowledge_base import (
    KnowledgeBaseNotFoundError,
    KnowledgeBaseStore,
    cosine_similarity,
    generate_kb_id,
)

SOURCE_URL = "https://docs.example.com/guide"


@pytest.fixture
def store(tmp_path: Path) -> KnowledgeBaseStore:
    return KnowledgeBaseStore(tmp_path / "kb.db")


@pytest.fixture
def settings() -> KnowledgeBaseSettings:
    return KnowledgeBaseSettings(chunk_size=500, chunk_overlap=50)


def _chunk(
    n: int, content: str, tokens: int = 3, embedding: list[float] | None = None
) -> Chunk:
    return Chunk(
        id=f"chunk-{n:04d}",
        content=content,
        token_count=tokens,
        metadata=ChunkMetadata(
            source_url=SOURCE_URL, title="Guide", section="Intro", chunk_index=n
        ),
        embedding=embedding,
    )


class TestHelpers:
    def test_kb_id_is_stable(self) -> None:
        kb_id = generate_kb_id(SOURCE_URL)
        assert kb_id == generate_kb_id(SOURCE_URL)
        assert len(kb_id) == 12
        assert kb_id != generate_kb_id("https://other.example.com")

    def test_cosine_similarity(self) -> None:
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_cosine_similarity_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_cosine_similarity_dimension_mismatch(self) -> None:
        with pytest.raises(ValueError, match="dimension mismatch"):
            cosine_similarity([1.0], [1.0, 2.0])


class TestKnowledgeBaseCrud:
    def test_create_and_get(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        assert kb.id == generate_kb_id(SOURCE_URL)
        assert kb.name == "docs.example.com"
        assert kb.status == "processing"

        loaded = store.get(kb.id)
        assert loaded is not None
        assert loaded.source_url == SOURCE_URL
        assert loaded.settings.chunk_size == 500
        assert loaded.stats.chunk_count == 0

    def test_get_missing_returns_none(self, store: KnowledgeBaseStore) -> None:
        assert store.get("missing") is None

    def test_list_all(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        store.create(SOURCE_URL, settings)
        store.create("https://api.example.org", settings)
        names = {kb.name for kb in store.list_all()}
        assert names == {"docs.example.com", "api.example.org"}

    def test_update_status(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.update_status(kb.id, "ready")
        loaded = store.get(kb.id)
        assert loaded is not None
        assert loaded.status == "ready"

    def test_update_missing_raises(self, store: KnowledgeBaseStore) -> None:
        with pytest.raises(KnowledgeBaseNotFoundError):
            store.update_status("missing", "failed")

    def test_update_stats_partial(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.update_stats(kb.id, page_count=4)
        loaded = store.get(kb.id)
        assert loaded is not None
        assert loaded.stats.page_count == 4
        assert loaded.stats.chunk_count == 0

    def test_delete_removes_chunks(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.save_chunks(kb.id, [_chunk(0, "alpha")])
        store.delete(kb.id)

        assert store.get(kb.id) is None
        assert store.get_chunks(kb.id) == ([], 0)

    def test_recreate_resets_chunks(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.save_chunks(kb.id, [_chunk(0, "alpha"), _chunk(1, "beta")])

        store.create(SOURCE_URL, settings)
        chunks, total = store.get_chunks(kb.id)
        assert chunks == []
        assert total == 0


class TestChunkStorage:
    def test_save_and_get_chunks(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        saved = [
            _chunk(0, "alpha", tokens=2),
            _chunk(1, "beta", tokens=5, embedding=[0.5, 0.5]),
        ]
        saved[0] = saved[0].with_enrichment(
            Enrichment(summary="First.", questions=["What is alpha?"])
        )
        store.save_chunks(kb.id, saved)

        chunks, total = store.get_chunks(kb.id)
        assert total == 2
        assert chunks == saved

        loaded = store.get(kb.id)
        assert loaded is not None
        assert loaded.stats.chunk_count == 2
        assert loaded.stats.total_tokens == 7

    def test_save_accumulates_stats(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.save_chunks(kb.id, [_chunk(0, "alpha", tokens=2)])
        store.save_chunks(kb.id, [_chunk(1, "beta", tokens=3)])

        loaded = store.get(kb.id)
        assert loaded is not None
        assert loaded.stats.chunk_count == 2
        assert loaded.stats.total_tokens == 5

    def test_save_to_missing_kb_raises(self, store: KnowledgeBaseStore) -> None:
        with pytest.raises(KnowledgeBaseNotFoundError):
            store.save_chunks("missing", [_chunk(0, "alpha")])

    def test_get_chunks_paginates(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.save_chunks(kb.id, [_chunk(n, f"text {n}") for n in range(5)])

        chunks, total = store.get_chunks(kb.id, offset=2, limit=2)
        assert total == 5
        assert [c.id for c in chunks] == ["chunk-0002", "chunk-0003"]


class TestSearch:
    def test_substring_search_is_case_insensitive(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.save_chunks(
            kb.id,
            [
                _chunk(0, "Configure the Rate Limiter."),
                _chunk(1, "Unrelated text."),
                _chunk(2, "rate limits apply per key."),
            ],
        )

        results = store.search(kb.id, "RATE LIMIT")
        assert [c.id for c in results] == ["chunk-0000", "chunk-0002"]
        assert len(store.search(kb.id, "rate", limit=1)) == 1

    def test_semantic_search_ranks_by_similarity(
        self, store: KnowledgeBaseStore, settings: KnowledgeBaseSettings
    ) -> None:
        kb = store.create(SOURCE_URL, settings)
        store.save_chunks(
            kb.id,
            [
                _chunk(0, "far", embedding=[0.0, 1.0]),
                _chunk(1, "no vector"),
                _chunk(2, "near", embedding=[1.0, 0.1]),
                _chunk(3, "middle", embedding=[1.0, 1.0]),
            ],
        )

        results = store.semantic_search(kb.id, [1.0, 0.0], limit=2)
        assert [r.chunk.content for r in results] == ["near", "middle"]
        assert results[0].similarity > results[1].similarity
