"""Token-aware text chunker for extracted documentation pages."""

import logging
import re

from context_layer.config import ChunkingConfig
from context_layer.ingestion.tokens import TokenCounter, get_default_counter
from context_layer.models.chunk import Chunk, ChunkMetadata, format_chunk_id
from context_layer.models.options import (
    DEFAULT_CHUNK_OVERLAP,
    FALLBACK_CHUNK_SIZE,
    ChunkingResult,
    ChunkOptions,
)
from context_layer.models.page import ExtractedPage

logger = logging.getLogger(__name__)

# One or more blank lines separate paragraphs.
PARAGRAPH_BREAK = re.compile(r"\n\n+")

# Whitespace after terminal punctuation; the punctuation stays with the
# preceding sentence. Abbreviations like "Dr." are split too.
SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def split_paragraphs(text: str) -> list[str]:
    return PARAGRAPH_BREAK.split(text)


def split_sentences(paragraph: str) -> list[str]:
    return [s for s in SENTENCE_BREAK.split(paragraph) if s]


def get_overlap_text(
    text: str, overlap_tokens: int, counter: TokenCounter | None = None
) -> str:
    """Take whole words from the end of ``text`` worth ``overlap_tokens``.

    Words are added from the end until the joined tail reaches the budget.
    The word that crosses the budget is kept, so the result may run over
    by up to one word.

    Args:
        text: Text to take the tail from.
        overlap_tokens: Target number of tokens.
        counter: Token counter; the default GPT-4 counter if omitted.

    Returns:
        Space-joined trailing words, or an empty string for a zero budget.
    """
    if overlap_tokens <= 0:
        return ""
    counter = counter or get_default_counter()

    tail: list[str] = []
    tokens = 0
    for word in reversed(text.split()):
        if tokens >= overlap_tokens:
            break
        tail.insert(0, word)
        tokens = counter.count(" ".join(tail))

    return " ".join(tail)


def _join(head: str, tail: str, separator: str) -> str:
    return f"{head}{separator}{tail}" if head else tail


def _clamp_overlap(chunk_size: int, overlap: int) -> int:
    if overlap >= chunk_size:
        clamped = chunk_size - 1
        logger.warning(
            "Chunk overlap %d is not smaller than chunk size %d; using %d",
            overlap,
            chunk_size,
            clamped,
        )
        return clamped
    return max(overlap, 0)


def chunk_content(
    content: str,
    chunk_size: int,
    overlap: int,
    counter: TokenCounter | None = None,
) -> list[str]:
    """Split content into chunks at paragraph and sentence boundaries.

    Algorithm:
    1. Split on blank lines into paragraphs and pack them greedily.
    2. A paragraph larger than ``chunk_size`` is split into sentences,
       which are packed the same way.
    3. Each new chunk starts with the tail of the chunk just emitted,
       ``overlap`` tokens long, for continuity.

    A single sentence larger than ``chunk_size`` is kept whole rather
    than truncated.

    Args:
        content: Text to split.
        chunk_size: Maximum tokens per chunk (target, see above).
        overlap: Tokens carried over from the previous chunk. Values not
            smaller than ``chunk_size`` are clamped to ``chunk_size - 1``.
        counter: Token counter; the default GPT-4 counter if omitted.

    Returns:
        Trimmed, non-empty chunk strings in document order.

    Raises:
        ValueError: If ``chunk_size`` is not positive.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    counter = counter or get_default_counter()

    if not content.strip():
        return []

    overlap = _clamp_overlap(chunk_size, overlap)

    if counter.count(content) <= chunk_size:
        return [content.strip()]

    chunks: list[str] = []
    current = ""
    current_tokens = 0

    def flush(text: str) -> None:
        stripped = text.strip()
        if stripped:
            chunks.append(stripped)

    for paragraph in split_paragraphs(content):
        paragraph_tokens = counter.count(paragraph)

        if paragraph_tokens > chunk_size:
            if current:
                flush(current)
                current = ""
                current_tokens = 0

            for sentence in split_sentences(paragraph):
                sentence_tokens = counter.count(sentence)
                if current and current_tokens + sentence_tokens > chunk_size:
                    flush(current)
                    overlap_text = get_overlap_text(current, overlap, counter)
                    current = _join(overlap_text, sentence, " ")
                    current_tokens = counter.count(current)
                else:
                    current = _join(current, sentence, " ")
                    current_tokens += sentence_tokens

        elif current_tokens + paragraph_tokens > chunk_size:
            flush(current)
            overlap_text = get_overlap_text(current, overlap, counter)
            current = _join(overlap_text, paragraph, "\n\n")
            current_tokens = counter.count(current)

        else:
            current = _join(current, paragraph, "\n\n")
            current_tokens += paragraph_tokens

    flush(current)
    return chunks


class ContentChunker:
    """Turns extracted pages into ``Chunk`` records with metadata.

    Chunk ids come from one counter that runs across every page passed to
    ``chunk_pages``. Callers chunking in several calls continue numbering
    by passing the returned ``next_id`` as ``start_id``.

    Args:
        config: ChunkingConfig supplying default size, overlap and format.
        counter: Token counter shared by every call; the default GPT-4
                 counter if omitted.
    """

    def __init__(
        self,
        config: ChunkingConfig | None = None,
        counter: TokenCounter | None = None,
    ) -> None:
        self._config = config or ChunkingConfig()
        self._counter = counter or get_default_counter()

    @property
    def counter(self) -> TokenCounter:
        return self._counter

    def chunk_pages(
        self,
        pages: list[ExtractedPage],
        options: ChunkOptions | None = None,
        start_id: int = 0,
    ) -> ChunkingResult:
        """Chunk every page, in order, into a single flat list.

        Args:
            pages: Extracted pages in crawl order.
            options: Chunking options; the configured defaults if omitted.
            start_id: Sequence number of the first chunk id.

        Returns:
            ChunkingResult with the chunks and the next unused sequence number.
        """
        options = options or self._config.to_options()
        chunk_size = options.resolved_chunk_size()
        overlap = options.chunk_overlap

        chunks: list[Chunk] = []
        next_id = start_id

        for page in pages:
            texts = chunk_content(page.content, chunk_size, overlap, self._counter)
            logger.debug("%s -> %d chunk(s)", page.url or "<text>", len(texts))

            for index, text in enumerate(texts):
                chunks.append(
                    Chunk(
                        id=format_chunk_id(next_id),
                        content=text,
                        token_count=self._counter.count(text),
                        metadata=ChunkMetadata(
                            source_url=page.url,
                            title=page.title,
                            section=page.section,
                            chunk_index=index,
                            total_chunks=len(texts),
                        ),
                    )
                )
                next_id += 1

        logger.info("Created %d chunks from %d pages", len(chunks), len(pages))
        return ChunkingResult(chunks=chunks, next_id=next_id)

    def chunk_text(
        self,
        text: str,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> list[Chunk]:
        """Chunk a bare string as a single source-less page.

        Defaults to 500-token chunks with 50 tokens of overlap, independent
        of the configured output format. Ids start at ``chunk-0000``.
        """
        options = ChunkOptions(
            chunk_size=chunk_size or FALLBACK_CHUNK_SIZE,
            chunk_overlap=(
                DEFAULT_CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap
            ),
        )
        page = ExtractedPage(url="", title="", content=text)
        return self.chunk_pages([page], options).chunks


def chunk_text(
    text: str,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
    counter: TokenCounter | None = None,
) -> list[Chunk]:
    """Chunk arbitrary text without page metadata."""
    return ContentChunker(counter=counter).chunk_text(text, chunk_size, chunk_overlap)
