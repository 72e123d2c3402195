"""Entry point: chunk a file of extracted pages and write the formatted output."""

import logging
from pathlib import Path

import click

from context_layer.config import load_config
from context_layer.ingestion.chunker import ContentChunker
from context_layer.ingestion.loader import PageLoader
from context_layer.ingestion.tokens import TokenCounter
from context_layer.models.knowledge_base import KnowledgeBaseSettings
from context_layer.models.options import OutputFormat
from context_layer.output.formatter import write_output
from context_layer.pipeline import run_pipeline
from context_layer.storage.knowledge_base import KnowledgeBaseStore

logger = logging.getLogger("context_layer")


@click.command()
@click.argument(
    "pages_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=None,
    help="Output format (defaults to the configured one).",
)
@click.option("--chunk-size", type=click.IntRange(min=0), default=None)
@click.option("--chunk-overlap", type=click.IntRange(min=0), default=None)
@click.option("--config", "config_path", default="config.yaml", show_default=True)
@click.option(
    "--save-kb",
    "source_url",
    default=None,
    help="Store chunks in the knowledge base for this URL.",
)
def main(
    pages_file: Path,
    output_format: str | None,
    chunk_size: int | None,
    chunk_overlap: int | None,
    config_path: str,
    source_url: str | None,
) -> None:
    """Chunk PAGES_FILE and write the result to the output directory."""
    config = load_config(config_path)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
    )

    chunking = config.chunking.model_copy(
        update={
            k: v
            for k, v in {
                "output_format": output_format,
                "chunk_size": chunk_size,
                "chunk_overlap": chunk_overlap,
            }.items()
            if v is not None
        }
    )
    options = chunking.to_options()

    pages = PageLoader(config.extraction.min_content_length).load(pages_file)
    if not pages:
        raise click.ClickException(f"No pages with content found in {pages_file}")

    chunker = ContentChunker(chunking, TokenCounter(config.tokenizer.model))
    result = run_pipeline(pages, options, chunker=chunker)

    path = write_output(
        result.chunks, options.output_format, config.enrichment, config.storage.output_dir
    )
    click.echo(
        f"{result.stats.chunks_created} chunks from {result.stats.pages_processed} pages -> {path}"
    )

    if source_url:
        store = KnowledgeBaseStore(config.storage.sqlite_path)
        # Re-running for the same URL replaces the previous chunks
        kb_id = store.create(
            source_url,
            KnowledgeBaseSettings(
                chunk_size=options.resolved_chunk_size(),
                chunk_overlap=options.chunk_overlap,
                output_format=options.output_format,
            ),
        ).id

        try:
            store.save_chunks(kb_id, result.chunks)
            store.update_stats(kb_id, page_count=result.stats.pages_processed)
        except Exception:
            logger.exception("Failed to save knowledge base %s", kb_id)
            store.update_status(kb_id, "failed")
            raise
        store.update_status(kb_id, "ready")
        click.echo(f"Knowledge base saved: {kb_id}")


if __name__ == "__main__":
    main()
