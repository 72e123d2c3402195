"""Context Layer: token-bounded chunking of extracted documentation pages."""

__version__ = "1.0.0"
