"""Tests for the page loader."""

import json
from pathlib import Path

import pytest

from context_layer.ingestion.loader import PageLoader

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "sample_pages"

LONG_TEXT = (
    "Webhooks deliver events to an HTTPS endpoint that you register. "
    "Each delivery is signed so the receiver can verify its origin."
)


@pytest.fixture
def loader() -> PageLoader:
    return PageLoader()


class TestLoadJson:
    def test_load_fixture_filters_short_pages(self, loader: PageLoader) -> None:
        pages = loader.load(FIXTURES_DIR / "docs_pages.json")
        assert [p.url for p in pages] == [
            "https://docs.example.com/getting-started",
            "https://docs.example.com/authentication",
        ]
        assert pages[0].headings == ["Getting Started", "Installation", "First steps"]
        assert pages[0].section == "Getting Started"

    def test_keeps_short_pages_when_threshold_is_zero(self) -> None:
        pages = PageLoader(min_content_length=0).load(FIXTURES_DIR / "docs_pages.json")
        assert len(pages) == 3

    def test_object_with_pages_key(self, loader: PageLoader, tmp_path: Path) -> None:
        file_path = tmp_path / "crawl.json"
        file_path.write_text(
            json.dumps({"pages": [{"url": "https://x/a", "content": LONG_TEXT}]})
        )
        pages = loader.load(file_path)
        assert len(pages) == 1
        assert pages[0].title == ""
        assert pages[0].headings == []

    def test_non_list_payload_rejected(
        self, loader: PageLoader, tmp_path: Path
    ) -> None:
        file_path = tmp_path / "crawl.json"
        file_path.write_text(json.dumps("just a string"))
        with pytest.raises(ValueError, match="Expected a list"):
            loader.load(file_path)

    def test_invalid_record_rejected(self, loader: PageLoader, tmp_path: Path) -> None:
        file_path = tmp_path / "crawl.json"
        file_path.write_text(json.dumps([{"title": "No url or content"}]))
        with pytest.raises(ValueError, match="Invalid page record"):
            loader.load(file_path)


class TestLoadJsonl:
    def test_one_record_per_line(self, loader: PageLoader, tmp_path: Path) -> None:
        file_path = tmp_path / "crawl.jsonl"
        lines = [
            json.dumps({"url": "https://x/a", "content": LONG_TEXT}),
            "",
            json.dumps({"url": "https://x/b", "title": "B", "content": LONG_TEXT}),
            "   ",
        ]
        file_path.write_text("\n".join(lines))

        pages = loader.load(file_path)
        assert [p.url for p in pages] == ["https://x/a", "https://x/b"]
        assert pages[1].title == "B"


class TestLoadText:
    def test_markdown_headings_and_title(self, loader: PageLoader) -> None:
        file_path = FIXTURES_DIR / "rate_limits.md"
        pages = loader.load(file_path)

        assert len(pages) == 1
        page = pages[0]
        assert page.title == "Rate limits"
        assert page.headings == ["Rate limits", "Handling 429 responses"]
        assert page.url == file_path.resolve().as_uri()
        assert "Retry-After" in page.content

    def test_text_title_from_first_line(
        self, loader: PageLoader, tmp_path: Path
    ) -> None:
        file_path = tmp_path / "webhooks.txt"
        file_path.write_text("Webhooks overview\n\n" + LONG_TEXT)

        page = loader.load(file_path)[0]
        assert page.title == "Webhooks overview"
        assert page.headings == []

    def test_title_falls_back_to_stem(self, tmp_path: Path) -> None:
        file_path = tmp_path / "notes.txt"
        file_path.write_text("x" * 150)

        page = PageLoader(min_content_length=0).load(file_path)[0]
        assert page.title == "notes"

    def test_utf16_file(self, loader: PageLoader, tmp_path: Path) -> None:
        file_path = tmp_path / "encoded.txt"
        file_path.write_bytes(("Encoded page\n\n" + LONG_TEXT).encode("utf-16"))

        page = loader.load(file_path)[0]
        assert page.title == "Encoded page"
        assert "Webhooks deliver events" in page.content

    def test_short_text_dropped(self, loader: PageLoader, tmp_path: Path) -> None:
        file_path = tmp_path / "tiny.md"
        file_path.write_text("# Tiny\n\nToo short.")
        assert loader.load(file_path) == []


class TestLoaderErrors:
    def test_file_not_found(self, loader: PageLoader) -> None:
        with pytest.raises(FileNotFoundError):
            loader.load("/nonexistent/pages.json")

    def test_unsupported_format(self, loader: PageLoader, tmp_path: Path) -> None:
        file_path = tmp_path / "pages.xml"
        file_path.write_text("<pages/>")
        with pytest.raises(ValueError, match="Unsupported file format"):
            loader.load(file_path)
