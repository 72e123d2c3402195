"""Render chunks as RAG records, fine-tuning datasets or a Markdown document."""

import json
import logging
from pathlib import Path
from typing import Any

from context_layer.config import EnrichmentConfig
from context_layer.models.chunk import Chunk
from context_layer.models.options import OutputFormat

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant."

MARKDOWN_FILENAME = "context_layer.md"
JSONL_FILENAME = "training_data.jsonl"
DATASET_FILENAME = "dataset.json"


def _questions(chunk: Chunk, enrichment: EnrichmentConfig) -> list[str]:
    if enrichment.enabled and chunk.enrichment and chunk.enrichment.questions:
        return chunk.enrichment.questions
    return []


def _fallback_prompt(chunk: Chunk) -> str:
    return f"Explain: {chunk.metadata.title}"


def format_rag(chunks: list[Chunk]) -> list[dict[str, Any]]:
    """Vector-DB ready records; ``embedding`` only when one was generated."""
    records = []
    for chunk in chunks:
        record: dict[str, Any] = {
            "id": chunk.id,
            "content": chunk.content,
            "metadata": chunk.metadata.model_dump(),
            "enrichment": (
                chunk.enrichment.model_dump(exclude_none=True)
                if chunk.enrichment
                else {}
            ),
        }
        if chunk.embedding:
            record["embedding"] = chunk.embedding
        records.append(record)
    return records


def generate_openai_format(
    chunks: list[Chunk], enrichment: EnrichmentConfig
) -> list[dict[str, Any]]:
    """Chat-style fine-tuning records.

    One record per generated question when enrichment produced questions,
    otherwise a single ``Explain: <title>`` record per chunk.
    """
    records = []
    for chunk in chunks:
        prompts = _questions(chunk, enrichment) or [_fallback_prompt(chunk)]
        for prompt in prompts:
            records.append(
                {
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                        {"role": "assistant", "content": chunk.content},
                    ]
                }
            )
    return records


def generate_alpaca_format(
    chunks: list[Chunk], enrichment: EnrichmentConfig
) -> list[dict[str, Any]]:
    """Instruction/input/output fine-tuning records."""
    records = []
    for chunk in chunks:
        prompts = _questions(chunk, enrichment) or [_fallback_prompt(chunk)]
        for prompt in prompts:
            records.append({"instruction": prompt, "input": "", "output": chunk.content})
    return records


def generate_markdown_document(
    chunks: list[Chunk], enrichment: EnrichmentConfig
) -> str:
    """Build a readable document, one section per source page.

    Pages appear in the order their first chunk does; chunks within a page
    are ordered by ``chunk_index``.
    """
    pages: dict[str, list[Chunk]] = {}
    for chunk in chunks:
        pages.setdefault(chunk.metadata.source_url, []).append(chunk)

    lines: list[str] = []
    for url, page_chunks in pages.items():
        page_chunks = sorted(page_chunks, key=lambda c: c.metadata.chunk_index)
        title = page_chunks[0].metadata.title or "Untitled"

        lines.extend([f"# {title}", "", f"> **Source:** {url}", ""])

        for chunk in page_chunks:
            lines.extend([chunk.content, ""])

            if enrichment.enabled and chunk.enrichment:
                if chunk.enrichment.summary:
                    lines.extend([f"> **Summary:** {chunk.enrichment.summary}", ""])
                if chunk.enrichment.questions:
                    lines.append("**Related Questions:**")
                    lines.extend(f"- {q}" for q in chunk.enrichment.questions)
                    lines.append("")

        lines.extend(["---", ""])

    return "\n".join(lines)


def format_output(
    chunks: list[Chunk], output_format: str, enrichment: EnrichmentConfig
) -> list[dict[str, Any]]:
    """Format chunks as dataset records for ``output_format``.

    Markdown output is a single document (see ``generate_markdown_document``),
    so it yields no records here. Unknown formats return plain chunk dumps.
    """
    if output_format == OutputFormat.RAG.value:
        return format_rag(chunks)
    if output_format == OutputFormat.FINETUNE_OPENAI.value:
        return generate_openai_format(chunks, enrichment)
    if output_format == OutputFormat.FINETUNE_ALPACA.value:
        return generate_alpaca_format(chunks, enrichment)
    if output_format == OutputFormat.MARKDOWN.value:
        return []
    return [chunk.model_dump(exclude_none=True) for chunk in chunks]


def write_output(
    chunks: list[Chunk],
    output_format: str,
    enrichment: EnrichmentConfig,
    output_dir: str | Path,
) -> Path:
    """Write formatted chunks to ``output_dir`` and return the file path.

    Markdown goes to ``context_layer.md``, fine-tuning formats to
    ``training_data.jsonl`` and everything else to ``dataset.json``.
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    if output_format == OutputFormat.MARKDOWN.value:
        path = out_dir / MARKDOWN_FILENAME
        path.write_text(generate_markdown_document(chunks, enrichment), encoding="utf-8")
        logger.info("Saved Markdown document to %s", path)
        return path

    records = format_output(chunks, output_format, enrichment)
    if output_format.startswith("finetune"):
        path = out_dir / JSONL_FILENAME
        path.write_text(
            "\n".join(json.dumps(r, ensure_ascii=False) for r in records),
            encoding="utf-8",
        )
    else:
        path = out_dir / DATASET_FILENAME
        path.write_text(
            json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    logger.info("Saved %d %s records to %s", len(records), output_format, path)
    return path
