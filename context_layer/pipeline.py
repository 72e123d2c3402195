"""Pipeline orchestration: chunk pages, then optionally enrich and embed them."""

import logging
from collections.abc import Callable

from pydantic import BaseModel, Field

from context_layer.ingestion.chunker import ContentChunker
from context_layer.models.chunk import Chunk, Enrichment
from context_layer.models.options import ChunkOptions
from context_layer.models.page import ExtractedPage

logger = logging.getLogger(__name__)

# Enrichment and embedding are supplied by callers (LLM / embedding clients).
Enricher = Callable[[Chunk], Enrichment]
Embedder = Callable[[list[str]], list[list[float]]]

ENRICH_BATCH_SIZE = 5
EMBED_BATCH_SIZE = 20


class PipelineStats(BaseModel):
    pages_processed: int = 0
    chunks_created: int = 0
    total_tokens: int = 0
    enrichment_applied: bool = False
    embeddings_generated: bool = False


class PipelineOutput(BaseModel):
    chunks: list[Chunk] = Field(default_factory=list)
    pages: list[ExtractedPage] = Field(default_factory=list)
    stats: PipelineStats = Field(default_factory=PipelineStats)


def enrich_chunks(
    chunks: list[Chunk], enricher: Enricher, batch_size: int = ENRICH_BATCH_SIZE
) -> list[Chunk]:
    """Attach enrichment to each chunk.

    A chunk whose enrichment fails is logged and passed through unchanged.
    """
    enriched: list[Chunk] = []
    for start in range(0, len(chunks), batch_size):
        for chunk in chunks[start : start + batch_size]:
            try:
                enriched.append(chunk.with_enrichment(enricher(chunk)))
            except Exception as e:
                logger.warning("Failed to enrich chunk %s: %s", chunk.id, e)
                enriched.append(chunk)
        logger.info(
            "Enriched %d/%d chunks", min(start + batch_size, len(chunks)), len(chunks)
        )
    return enriched


def embed_chunks(
    chunks: list[Chunk], embedder: Embedder, batch_size: int = EMBED_BATCH_SIZE
) -> list[Chunk]:
    """Attach an embedding vector to each chunk, one embedder call per batch.

    A failing batch is logged and its chunks are passed through without vectors.
    """
    embedded: list[Chunk] = []
    for start in range(0, len(chunks), batch_size):
        batch = chunks[start : start + batch_size]
        try:
            vectors = embedder([chunk.content for chunk in batch])
            if len(vectors) != len(batch):
                raise ValueError(
                    f"embedder returned {len(vectors)} vectors for {len(batch)} texts"
                )
        except Exception:
            logger.exception("Failed to embed batch starting at %d", start)
            embedded.extend(batch)
            continue

        embedded.extend(
            chunk.with_embedding(vector) for chunk, vector in zip(batch, vectors)
        )
        logger.info(
            "Embedded chunks %d to %d of %d", start + 1, start + len(batch), len(chunks)
        )
    return embedded


def run_pipeline(
    pages: list[ExtractedPage],
    options: ChunkOptions,
    *,
    enricher: Enricher | None = None,
    embedder: Embedder | None = None,
    chunker: ContentChunker | None = None,
) -> PipelineOutput:
    """Run chunking and the optional enrichment and embedding stages.

    Args:
        pages: Extracted pages in crawl order.
        options: Chunking options for this run.
        enricher: Produces enrichment for one chunk; stage skipped if None.
        embedder: Embeds a batch of texts; stage skipped if None.
        chunker: Chunker to use; a default one if omitted.

    Returns:
        PipelineOutput with the final chunks, the input pages and run stats.
    """
    if not pages:
        logger.warning("No pages to process")
        return PipelineOutput()

    chunker = chunker or ContentChunker()

    logger.info("Stage 1: Chunking %d pages...", len(pages))
    chunks = chunker.chunk_pages(pages, options).chunks

    enrichment_applied = False
    if enricher is not None:
        logger.info("Stage 2: Enriching chunks...")
        chunks = enrich_chunks(chunks, enricher)
        enrichment_applied = True
    else:
        logger.info("Stage 2: Skipping enrichment (not configured)")

    embeddings_generated = False
    if embedder is not None:
        logger.info("Stage 3: Generating embeddings...")
        chunks = embed_chunks(chunks, embedder)
        embeddings_generated = True
    else:
        logger.info("Stage 3: Skipping embeddings (not configured)")

    return PipelineOutput(
        chunks=chunks,
        pages=pages,
        stats=PipelineStats(
            pages_processed=len(pages),
            chunks_created=len(chunks),
            total_tokens=sum(chunk.token_count for chunk in chunks),
            enrichment_applied=enrichment_applied,
            embeddings_generated=embeddings_generated,
        ),
    )
