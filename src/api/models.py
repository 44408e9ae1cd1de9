# src/api/models.py — v1
"""API-level models: per-session setting overrides."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SelectionOverrides(BaseModel):
    """Per-session overrides — validated subset of Settings."""

    grid_page_size: int | None = Field(default=None, gt=0)
    search_default_limit: int | None = Field(default=None, gt=0)
    tournament_max_rounds: int | None = Field(default=None, ge=1)
    tournament_keep_ratio: float | None = Field(default=None, gt=0.0, le=1.0)
    per_source_candidates: int | None = Field(default=None, gt=0)
    per_source_top_k: int | None = Field(default=None, gt=0)
    selection_round_timeout_s: float | None = Field(default=None, gt=0.0)
    registry_backend: str | None = None
    oracle_provider: str | None = None
    oracle_model: str | None = None
