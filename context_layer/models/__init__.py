"""Data models for the Context Layer pipeline."""

from context_layer.models.chunk import (
    Chunk,
    ChunkMetadata,
    Enrichment,
    format_chunk_id,
)
from context_layer.models.knowledge_base import (
    KnowledgeBase,
    KnowledgeBaseSettings,
    KnowledgeBaseStats,
    SearchResult,
)
from context_layer.models.options import (
    ChunkingResult,
    ChunkOptions,
    OutputFormat,
    default_chunk_size,
)
from context_layer.models.page import ExtractedPage

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ChunkOptions",
    "ChunkingResult",
    "Enrichment",
    "ExtractedPage",
    "KnowledgeBase",
    "KnowledgeBaseSettings",
    "KnowledgeBaseStats",
    "OutputFormat",
    "SearchResult",
    "default_chunk_size",
    "format_chunk_id",
]
