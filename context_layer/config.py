"""Configuration loader for the Context Layer pipeline."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from context_layer.models.options import ChunkOptions


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Context Layer"
    version: str = "1.0.0"


class TokenizerConfig(BaseModel):
    """Tokenizer used for all token budgets."""

    model: str = "gpt-4"


class ChunkingConfig(BaseModel):
    """Text chunking configuration.

    ``chunk_size`` of 0 selects the default for ``output_format``.
    """

    chunk_size: int = Field(default=0, ge=0)
    chunk_overlap: int = Field(default=50, ge=0)
    output_format: str = "rag"

    def to_options(self) -> ChunkOptions:
        return ChunkOptions(
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            output_format=self.output_format,
        )


class ExtractionConfig(BaseModel):
    """Filtering applied to pages before chunking."""

    min_content_length: int = 100


class EnrichmentConfig(BaseModel):
    """Which enrichment fields downstream stages generate."""

    generate_qa: bool = False
    generate_summary: bool = False
    questions_per_chunk: int = 3

    @property
    def enabled(self) -> bool:
        return self.generate_qa or self.generate_summary


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/context_layer.db"
    output_dir: str = "./output"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    log_level: str = "INFO"


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Environment overrides
    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        config.log_level = log_level.upper()
    db_path = os.getenv("CONTEXT_LAYER_DB")
    if db_path:
        config.storage.sqlite_path = db_path

    return config
