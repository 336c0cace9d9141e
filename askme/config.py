"""
Configuration settings for askme.

Uses Pydantic Settings for environment variable management with .env file support.
Every option can be overridden with an ASKME_ prefixed variable, e.g.
ASKME_DATA_DIR=/tmp/cards or ASKME_INDEX_PARSING=strict.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import EnvironmentSetupError


def _default_data_dir() -> Path:
    try:
        return Path.home() / ".askme"
    except RuntimeError as e:
        raise EnvironmentSetupError(f"Unable to determine the current user's home directory: {e}") from e


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ASKME_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directory holding the index and one file per item",
    )
    index_filename: str = Field(
        default="index.csv",
        description="Index file name inside data_dir",
    )
    index_parsing: Literal["lenient", "strict"] = Field(
        default="lenient",
        description="lenient: bad numeric/timestamp fields load as zero; strict: reject the index",
    )

    # ========================================
    # SM-2 Scheduling
    # ========================================
    initial_easiness: float = Field(
        default=2.5,
        description="Easiness factor given to newly created items",
    )
    minimum_easiness: float = Field(
        default=1.3,
        description="Floor applied to the easiness factor after each update",
    )
    easiness_formula: Literal["multiplicative", "additive"] = Field(
        default="multiplicative",
        description="multiplicative: EF * delta (index-compatible); additive: textbook EF + delta",
    )
    interval_unit_hours: float = Field(
        default=1.0,
        gt=0,
        description="Length of one interval unit, in hours",
    )

    # ========================================
    # Terminal
    # ========================================
    render_width: int = Field(
        default=100,
        description="Maximum width of rendered item content",
    )
    editor_extension: str = Field(
        default=".md",
        description="File extension for new items (also used by `scan`)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    @property
    def index_path(self) -> Path:
        """Full path of the index file."""
        return self.data_dir.expanduser() / self.index_filename


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
