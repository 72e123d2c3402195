"""Page ingestion: loading, token counting and chunking."""

from context_layer.ingestion.chunker import (
    ContentChunker,
    chunk_content,
    chunk_text,
    get_overlap_text,
)
from context_layer.ingestion.loader import PageLoader
from context_layer.ingestion.tokens import TokenCounter, count_tokens, get_default_counter

__all__ = [
    "ContentChunker",
    "PageLoader",
    "TokenCounter",
    "chunk_content",
    "chunk_text",
    "count_tokens",
    "get_default_counter",
    "get_overlap_text",
]
