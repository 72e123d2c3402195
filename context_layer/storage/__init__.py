"""Persistent storage for knowledge bases."""

from context_layer.storage.database import get_connection, initialize_database
from context_layer.storage.knowledge_base import (
    KnowledgeBaseNotFoundError,
    KnowledgeBaseStore,
    cosine_similarity,
    generate_kb_id,
)

__all__ = [
    "KnowledgeBaseNotFoundError",
    "KnowledgeBaseStore",
    "cosine_similarity",
    "generate_kb_id",
    "get_connection",
    "initialize_database",
]
