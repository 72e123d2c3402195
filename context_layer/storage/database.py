"""SQLite database initialization and connection management."""

import sqlite3
from pathlib import Path


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Create a connection to the SQLite database.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A sqlite3 Connection with row_factory set to Row.
    """
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the knowledge base schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS knowledge_bases (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                source_url TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                status TEXT DEFAULT 'processing',
                page_count INTEGER DEFAULT 0,
                chunk_count INTEGER DEFAULT 0,
                total_tokens INTEGER DEFAULT 0,
                chunk_size INTEGER NOT NULL,
                chunk_overlap INTEGER NOT NULL,
                output_format TEXT DEFAULT 'rag',
                has_embeddings INTEGER DEFAULT 0,
                has_enrichment INTEGER DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS kb_chunks (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                kb_id TEXT NOT NULL
                    REFERENCES knowledge_bases(id) ON DELETE CASCADE,
                chunk_id TEXT NOT NULL,
                content TEXT NOT NULL,
                token_count INTEGER DEFAULT 0,
                metadata_json TEXT NOT NULL,
                enrichment_json TEXT,
                embedding_json TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_kb_chunks_kb_id ON kb_chunks(kb_id);
            """
        )
        conn.commit()
    finally:
        conn.close()
