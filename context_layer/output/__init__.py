"""Output formatting for chunk datasets."""

from context_layer.output.formatter import (
    format_output,
    generate_alpaca_format,
    generate_markdown_document,
    generate_openai_format,
    write_output,
)

__all__ = [
    "format_output",
    "generate_alpaca_format",
    "generate_markdown_document",
    "generate_openai_format",
    "write_output",
]
