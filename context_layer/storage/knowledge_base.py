"""SQLite-backed knowledge base storage for chunks."""

import hashlib
import json
import logging
import math
import sqlite3
from datetime import datetime
from pathlib import Path
from urllib.parse import urlparse

from context_layer.models.chunk import Chunk, ChunkMetadata, Enrichment
from context_layer.models.knowledge_base import (
    KnowledgeBase,
    KnowledgeBaseSettings,
    KnowledgeBaseStats,
    KnowledgeBaseStatus,
    SearchResult,
)
from context_layer.storage.database import get_connection, initialize_database

logger = logging.getLogger(__name__)


class KnowledgeBaseNotFoundError(LookupError):
    """Raised when an operation targets a knowledge base that does not exist."""

    def __init__(self, kb_id: str) -> None:
        super().__init__(f"Knowledge base not found: {kb_id}")
        self.kb_id = kb_id


def generate_kb_id(source_url: str) -> str:
    """Derive a stable 12-character hex id from the crawled URL."""
    return hashlib.md5(source_url.encode("utf-8")).hexdigest()[:12]


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero length.

    Raises:
        ValueError: If the vectors have different dimensions.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector dimension mismatch: {len(a)} vs {len(b)}")

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    denominator = norm_a * norm_b
    if denominator == 0:
        return 0.0
    return dot / denominator


def _hostname(url: str) -> str:
    return urlparse(url).hostname or url


class KnowledgeBaseStore:
    """CRUD and search over knowledge bases kept in one SQLite file.

    Args:
        db_path: Path to the SQLite database; the schema is created on first use.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path
        initialize_database(db_path)

    # ── Knowledge bases ──────────────────────────────────────────────────────

    def create(
        self, source_url: str, settings: KnowledgeBaseSettings
    ) -> KnowledgeBase:
        """Create (or reset) the knowledge base for ``source_url``."""
        now = datetime.now()
        kb = KnowledgeBase(
            id=generate_kb_id(source_url),
            name=_hostname(source_url),
            source_url=source_url,
            created_at=now,
            updated_at=now,
            settings=settings,
        )

        conn = get_connection(self._db_path)
        try:
            # Deleting first cascades to the chunks of a previous run
            conn.execute("DELETE FROM knowledge_bases WHERE id = ?", (kb.id,))
            conn.execute(
                """
                INSERT INTO knowledge_bases (
                    id, name, source_url, created_at, updated_at, status,
                    page_count, chunk_count, total_tokens,
                    chunk_size, chunk_overlap, output_format,
                    has_embeddings, has_enrichment
                ) VALUES (?, ?, ?, ?, ?, ?, 0, 0, 0, ?, ?, ?, ?, ?)
                """,
                (
                    kb.id,
                    kb.name,
                    kb.source_url,
                    kb.created_at.isoformat(),
                    kb.updated_at.isoformat(),
                    kb.status,
                    settings.chunk_size,
                    settings.chunk_overlap,
                    settings.output_format,
                    int(settings.has_embeddings),
                    int(settings.has_enrichment),
                ),
            )
            conn.commit()
        finally:
            conn.close()

        logger.info("Created knowledge base %s for %s", kb.id, source_url)
        return kb

    def get(self, kb_id: str) -> KnowledgeBase | None:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT * FROM knowledge_bases WHERE id = ?", (kb_id,)
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_kb(row) if row else None

    def list_all(self) -> list[KnowledgeBase]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT * FROM knowledge_bases ORDER BY created_at, id"
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_kb(row) for row in rows]

    def update_status(self, kb_id: str, status: KnowledgeBaseStatus) -> None:
        """Set the status of a knowledge base.

        Raises:
            KnowledgeBaseNotFoundError: If ``kb_id`` does not exist.
        """
        self._update(kb_id, {"status": status})

    def update_stats(
        self,
        kb_id: str,
        page_count: int | None = None,
        chunk_count: int | None = None,
        total_tokens: int | None = None,
    ) -> None:
        """Overwrite the given stats fields, leaving the others untouched.

        Raises:
            KnowledgeBaseNotFoundError: If ``kb_id`` does not exist.
        """
        fields = {
            "page_count": page_count,
            "chunk_count": chunk_count,
            "total_tokens": total_tokens,
        }
        self._update(kb_id, {k: v for k, v in fields.items() if v is not None})

    def delete(self, kb_id: str) -> None:
        """Delete a knowledge base together with all of its chunks."""
        conn = get_connection(self._db_path)
        try:
            conn.execute("DELETE FROM knowledge_bases WHERE id = ?", (kb_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Deleted knowledge base %s", kb_id)

    # ── Chunks ───────────────────────────────────────────────────────────────

    def save_chunks(self, kb_id: str, chunks: list[Chunk]) -> None:
        """Append chunks to a knowledge base and bump its counters.

        Raises:
            KnowledgeBaseNotFoundError: If ``kb_id`` does not exist.
        """
        if not chunks:
            return

        kb = self.get(kb_id)
        if kb is None:
            raise KnowledgeBaseNotFoundError(kb_id)

        conn = get_connection(self._db_path)
        try:
            conn.executemany(
                """
                INSERT INTO kb_chunks (
                    kb_id, chunk_id, content, token_count,
                    metadata_json, enrichment_json, embedding_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [self._chunk_to_row(kb_id, chunk) for chunk in chunks],
            )
            conn.commit()
        finally:
            conn.close()

        self.update_stats(
            kb_id,
            chunk_count=kb.stats.chunk_count + len(chunks),
            total_tokens=kb.stats.total_tokens + sum(c.token_count for c in chunks),
        )
        logger.info("Saved %d chunks to knowledge base %s", len(chunks), kb_id)

    def get_chunks(
        self, kb_id: str, offset: int = 0, limit: int = 100
    ) -> tuple[list[Chunk], int]:
        """Return one page of chunks in insertion order and the total count."""
        conn = get_connection(self._db_path)
        try:
            total = conn.execute(
                "SELECT COUNT(*) FROM kb_chunks WHERE kb_id = ?", (kb_id,)
            ).fetchone()[0]
            rows = conn.execute(
                "SELECT * FROM kb_chunks WHERE kb_id = ? ORDER BY seq LIMIT ? OFFSET ?",
                (kb_id, limit, offset),
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_chunk(row) for row in rows], total

    def search(self, kb_id: str, query: str, limit: int = 10) -> list[Chunk]:
        """Case-insensitive substring search over chunk content."""
        needle = query.lower()
        results: list[Chunk] = []

        conn = get_connection(self._db_path)
        try:
            cursor = conn.execute(
                "SELECT * FROM kb_chunks WHERE kb_id = ? ORDER BY seq", (kb_id,)
            )
            for row in cursor:
                if needle in row["content"].lower():
                    results.append(self._row_to_chunk(row))
                    if len(results) >= limit:
                        break
        finally:
            conn.close()

        return results

    def semantic_search(
        self, kb_id: str, query_embedding: list[float], limit: int = 10
    ) -> list[SearchResult]:
        """Rank embedded chunks by cosine similarity to ``query_embedding``.

        Chunks stored without an embedding are skipped.
        """
        scored: list[SearchResult] = []

        conn = get_connection(self._db_path)
        try:
            cursor = conn.execute(
                "SELECT * FROM kb_chunks WHERE kb_id = ? ORDER BY seq", (kb_id,)
            )
            for row in cursor:
                chunk = self._row_to_chunk(row)
                if not chunk.embedding:
                    continue
                scored.append(
                    SearchResult(
                        chunk=chunk,
                        similarity=cosine_similarity(query_embedding, chunk.embedding),
                    )
                )
        finally:
            conn.close()

        scored.sort(key=lambda r: r.similarity, reverse=True)
        return scored[:limit]

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _update(self, kb_id: str, fields: dict[str, object]) -> None:
        fields = {**fields, "updated_at": datetime.now().isoformat()}
        assignments = ", ".join(f"{name} = ?" for name in fields)

        conn = get_connection(self._db_path)
        try:
            cursor = conn.execute(
                f"UPDATE knowledge_bases SET {assignments} WHERE id = ?",
                (*fields.values(), kb_id),
            )
            updated = cursor.rowcount
            conn.commit()
        finally:
            conn.close()

        if updated == 0:
            raise KnowledgeBaseNotFoundError(kb_id)

    def _row_to_kb(self, row: sqlite3.Row) -> KnowledgeBase:
        return KnowledgeBase(
            id=row["id"],
            name=row["name"],
            source_url=row["source_url"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            status=row["status"],
            stats=KnowledgeBaseStats(
                page_count=row["page_count"],
                chunk_count=row["chunk_count"],
                total_tokens=row["total_tokens"],
            ),
            settings=KnowledgeBaseSettings(
                chunk_size=row["chunk_size"],
                chunk_overlap=row["chunk_overlap"],
                output_format=row["output_format"],
                has_embeddings=bool(row["has_embeddings"]),
                has_enrichment=bool(row["has_enrichment"]),
            ),
        )

    def _chunk_to_row(self, kb_id: str, chunk: Chunk) -> tuple:
        return (
            kb_id,
            chunk.id,
            chunk.content,
            chunk.token_count,
            chunk.metadata.model_dump_json(),
            chunk.enrichment.model_dump_json() if chunk.enrichment else None,
            json.dumps(chunk.embedding) if chunk.embedding is not None else None,
        )

    def _row_to_chunk(self, row: sqlite3.Row) -> Chunk:
        enrichment_json = row["enrichment_json"]
        embedding_json = row["embedding_json"]
        return Chunk(
            id=row["chunk_id"],
            content=row["content"],
            token_count=row["token_count"],
            metadata=ChunkMetadata.model_validate_json(row["metadata_json"]),
            enrichment=(
                Enrichment.model_validate_json(enrichment_json)
                if enrichment_json
                else None
            ),
            embedding=json.loads(embedding_json) if embedding_json else None,
        )
