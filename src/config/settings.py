# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for session storage, registry, grid, oracle and
selection tuning.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Session storage ===
    output_root: Path = Path(".output")

    # === Image registry ===
    registry_backend: Literal["json", "sqlite", "memory"] = "json"
    registry_cross_category_policy: Literal["keep_first", "reject"] = "keep_first"

    # === Network ===
    download_timeout_s: float = 30.0
    fetch_timeout_s: float = 20.0
    http_user_agent: str = "Mozilla/5.0 (compatible; designscout/0.1)"

    # === Grid ===
    grid_cell_size: int = 256
    grid_columns: int = 3
    grid_page_size: int = 9

    # === Selection ===
    search_default_limit: int = 9
    tournament_max_rounds: int = 3
    tournament_keep_ratio: float = 0.5
    per_source_candidates: int = 9
    per_source_top_k: int = 4
    selection_round_timeout_s: float | None = None

    # === Ranking oracle ===
    oracle_provider: str = "anthropic"
    oracle_model: str = "claude-sonnet-4-20250514"
    oracle_max_tokens: int = 2048

    # Provider API keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("grid_cell_size", "grid_columns", "grid_page_size", "search_default_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("tournament_keep_ratio")
    @classmethod
    def validate_keep_ratio(cls, v: float) -> float:  # noqa: N805
        if not 0.0 < v <= 1.0:
            raise ValueError("tournament_keep_ratio must be in (0, 1]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.grid_page_size > self.grid_columns * self.grid_columns:
            errors.append(
                "GRID_PAGE_SIZE must fit in a square grid of GRID_COLUMNS columns"
            )

        if self.per_source_top_k > self.per_source_candidates:
            errors.append("PER_SOURCE_TOP_K must be <= PER_SOURCE_CANDIDATES")

        if self.per_source_candidates > self.grid_page_size:
            errors.append("PER_SOURCE_CANDIDATES must be <= GRID_PAGE_SIZE")

        if self.tournament_max_rounds < 1:
            errors.append("TOURNAMENT_MAX_ROUNDS must be >= 1")

        if (
            self.selection_round_timeout_s is not None
            and self.selection_round_timeout_s <= 0
        ):
            errors.append("SELECTION_ROUND_TIMEOUT_S must be > 0 when set")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-session config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
