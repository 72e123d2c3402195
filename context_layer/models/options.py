"""Chunking option models."""

from enum import Enum

from pydantic import BaseModel, Field

from context_layer.models.chunk import Chunk


class OutputFormat(str, Enum):
    RAG = "rag"
    FINETUNE_OPENAI = "finetune-openai"
    FINETUNE_ALPACA = "finetune-alpaca"
    MARKDOWN = "markdown"


# Tokens per chunk when no explicit size is requested
DEFAULT_CHUNK_SIZES: dict[str, int] = {
    OutputFormat.RAG.value: 500,
    OutputFormat.FINETUNE_OPENAI.value: 1000,
    OutputFormat.FINETUNE_ALPACA.value: 1000,
    OutputFormat.MARKDOWN.value: 2000,
}
FALLBACK_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 50


def default_chunk_size(output_format: str) -> int:
    """Return the recommended chunk size in tokens for an output format.

    RAG favours small chunks for precise retrieval, fine-tuning medium ones
    for context, and markdown large ones for readability. Unknown formats
    fall back to the RAG size.
    """
    return DEFAULT_CHUNK_SIZES.get(output_format, FALLBACK_CHUNK_SIZE)


class ChunkOptions(BaseModel):
    """Options controlling how pages are chunked."""

    chunk_size: int = Field(default=0, ge=0)  # 0 = format default
    chunk_overlap: int = Field(default=DEFAULT_CHUNK_OVERLAP, ge=0)
    output_format: str = OutputFormat.RAG.value

    def resolved_chunk_size(self) -> int:
        return self.chunk_size or default_chunk_size(self.output_format)


class ChunkingResult(BaseModel):
    """Chunks produced by one assembly call and the next unused id."""

    chunks: list[Chunk] = Field(default_factory=list)
    next_id: int = 0
