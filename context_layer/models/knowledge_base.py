"""Knowledge base data models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from context_layer.models.chunk import Chunk

KnowledgeBaseStatus = Literal["processing", "ready", "failed"]


class KnowledgeBaseStats(BaseModel):
    page_count: int = 0
    chunk_count: int = 0
    total_tokens: int = 0


class KnowledgeBaseSettings(BaseModel):
    """Processing settings a knowledge base was built with."""

    chunk_size: int
    chunk_overlap: int
    output_format: str = "rag"
    has_embeddings: bool = False
    has_enrichment: bool = False


class KnowledgeBase(BaseModel):
    """A stored collection of chunks derived from one crawled source."""

    id: str
    name: str
    source_url: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    status: KnowledgeBaseStatus = "processing"
    stats: KnowledgeBaseStats = Field(default_factory=KnowledgeBaseStats)
    settings: KnowledgeBaseSettings


class SearchResult(BaseModel):
    """A stored chunk scored against a query embedding."""

    chunk: Chunk
    similarity: float
