"""Extracted page data model."""

from pydantic import BaseModel, Field


class ExtractedPage(BaseModel):
    """A crawled page after markup and boilerplate have been stripped."""

    url: str
    title: str = ""
    content: str
    headings: list[str] = Field(default_factory=list)

    @property
    def section(self) -> str:
        """First heading of the page, used as the section of its chunks."""
        return self.headings[0] if self.headings else ""
