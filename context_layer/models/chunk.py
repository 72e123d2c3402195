"""Chunk data model."""

from pydantic import BaseModel, Field

CHUNK_ID_PREFIX = "chunk-"


def format_chunk_id(sequence: int) -> str:
    """Render a run-wide chunk sequence number, e.g. 7 -> ``chunk-0007``."""
    return f"{CHUNK_ID_PREFIX}{sequence:04d}"


class ChunkMetadata(BaseModel):
    """Where a chunk came from and where it sits within its page."""

    source_url: str = ""
    title: str = ""
    section: str = ""
    chunk_index: int = 0
    total_chunks: int = 1


class Enrichment(BaseModel):
    """LLM-generated additions attached to a chunk."""

    summary: str | None = None
    questions: list[str] | None = None


class Chunk(BaseModel):
    """A token-bounded slice of page content.

    ``enrichment`` and ``embedding`` are unset when the chunker creates the
    record; later stages return copies with them filled in.
    """

    id: str
    content: str
    token_count: int = 0
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)
    enrichment: Enrichment | None = None
    embedding: list[float] | None = None

    def with_enrichment(self, enrichment: Enrichment) -> "Chunk":
        return self.model_copy(update={"enrichment": enrichment})

    def with_embedding(self, embedding: list[float]) -> "Chunk":
        return self.model_copy(update={"embedding": list(embedding)})
