# src/registry/models.py — v1
"""Registry-side result models: DownloadResult, CleanupReport."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DownloadResult(BaseModel):
    """Outcome of fetching one remote reference to session storage."""

    original_url: str
    local_path: str = ""
    success: bool
    error: str | None = None
    size_bytes: int = 0


class CleanupReport(BaseModel):
    """Outcome of localizing still-remote references."""

    checked: int = 0
    downloaded: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)


class CleanupSummary(BaseModel):
    """How many registered images still point at remote references."""

    total_images: int
    needs_download: int
    already_local: int
