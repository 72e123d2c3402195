"""Loader for already-extracted pages stored as JSON, JSONL, Markdown or text."""

import json
import logging
import re
from pathlib import Path

import chardet
from pydantic import ValidationError

from context_layer.models.page import ExtractedPage

logger = logging.getLogger(__name__)

# Supported file extensions mapped to format identifiers
SUPPORTED_FORMATS: dict[str, str] = {
    ".json": "json",
    ".jsonl": "jsonl",
    ".md": "text",
    ".markdown": "text",
    ".txt": "text",
}

MARKDOWN_HEADING = re.compile(
    r"^[ \t]{0,3}#{1,6}[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE
)


class PageLoader:
    """Loads extracted page records into ExtractedPage models.

    JSON files hold a list of page records (or an object with a ``pages``
    list), JSONL files one record per line. Markdown and text files become
    a single page. Pages with less than ``min_content_length`` characters
    of content are dropped.
    """

    def __init__(self, min_content_length: int = 100) -> None:
        self._min_content_length = min_content_length

    def load(self, file_path: str | Path) -> list[ExtractedPage]:
        """Load the pages stored in a file.

        Args:
            file_path: Path to the page file.

        Returns:
            Pages in file order, short pages removed.

        Raises:
            FileNotFoundError: If file_path does not exist.
            ValueError: If the format is unsupported or a record is malformed.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        file_format = self._detect_format(path)

        dispatch = {
            "json": self._load_json,
            "jsonl": self._load_jsonl,
            "text": self._load_text,
        }
        pages = dispatch[file_format](path)

        kept = [page for page in pages if self._has_enough_content(page)]
        logger.info("Loaded %d of %d pages from %s", len(kept), len(pages), path)
        return kept

    def _detect_format(self, file_path: Path) -> str:
        ext = file_path.suffix.lower()
        if ext not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported file format: '{ext}'. "
                f"Supported: {', '.join(SUPPORTED_FORMATS.keys())}"
            )
        return SUPPORTED_FORMATS[ext]

    def _has_enough_content(self, page: ExtractedPage) -> bool:
        if len(page.content.strip()) < self._min_content_length:
            logger.debug("Skipping short page: %s", page.url)
            return False
        return True

    def _load_json(self, file_path: Path) -> list[ExtractedPage]:
        data = json.loads(self._read_text(file_path))
        if isinstance(data, dict):
            data = data.get("pages", [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of pages in {file_path}")
        return [self._to_page(record, file_path) for record in data]

    def _load_jsonl(self, file_path: Path) -> list[ExtractedPage]:
        pages = []
        for line in self._read_text(file_path).splitlines():
            if line.strip():
                pages.append(self._to_page(json.loads(line), file_path))
        return pages

    def _load_text(self, file_path: Path) -> list[ExtractedPage]:
        text = self._read_text(file_path)
        headings = [m.group(1).strip() for m in MARKDOWN_HEADING.finditer(text)]
        return [
            ExtractedPage(
                url=file_path.resolve().as_uri(),
                title=self._extract_title(text, headings, file_path),
                content=text,
                headings=headings,
            )
        ]

    def _to_page(self, record: object, file_path: Path) -> ExtractedPage:
        try:
            return ExtractedPage.model_validate(record)
        except ValidationError as e:
            raise ValueError(f"Invalid page record in {file_path}: {e}") from e

    def _read_text(self, file_path: Path) -> str:
        """Read a file with encoding detection.

        Tries UTF-8 first, then uses chardet for fallback detection.

        Args:
            file_path: Path to the file.

        Returns:
            The file content as a string.
        """
        try:
            return file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            pass

        raw_bytes = file_path.read_bytes()
        detected = chardet.detect(raw_bytes)
        encoding = detected.get("encoding") or "utf-8"
        confidence = detected.get("confidence") or 0

        if confidence < 0.7:
            logger.warning(
                "Low confidence encoding detection for %s: %s (%.0f%%)",
                file_path,
                encoding,
                confidence * 100,
            )

        try:
            return raw_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.error("Failed to decode file: %s", file_path)
            return raw_bytes.decode("utf-8", errors="replace")

    def _extract_title(
        self, text: str, headings: list[str], file_path: Path
    ) -> str:
        """Pick a page title: first heading, else a short first line, else the stem."""
        if headings:
            return headings[0]

        for line in text.strip().split("\n")[:5]:
            stripped = line.strip()
            if stripped and len(stripped) <= 100:
                return stripped

        return file_path.stem
