# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ImageKind = Literal["reference", "generated"]
ImageCategory = Literal["inspiration", "draft", "medium", "final"]
GridAspect = Literal["square", "landscape", "portrait"]

IMAGE_CATEGORIES: tuple[ImageCategory, ...] = ("inspiration", "draft", "medium", "final")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# === CANDIDATES ===


class CandidateImage(BaseModel):
    """A single raw image reference produced by one source for one query."""

    page_url: str
    title: str | None = None
    thumbnail_ref: str | None = None
    screenshot_ref: str | None = None
    source: str | None = None
    query: str | None = None

    @property
    def image_ref(self) -> str | None:
        """Best available image reference (full resolution first)."""
        return self.screenshot_ref or self.thumbnail_ref

    @property
    def canonical_key(self) -> str:
        """Deduplication key: two candidates with equal keys are the same image."""
        return self.screenshot_ref or self.thumbnail_ref or self.page_url


class SearchConfig(BaseModel):
    """One (source, query) pair requested by the caller."""

    source: str
    query: str
    limit: int | None = Field(default=None, gt=0)


class SourceSearchResult(BaseModel):
    """Outcome of one source search.

    ``error`` is set when the source failed; an empty candidate list with no
    error means the source genuinely found nothing.
    """

    source: str
    query: str
    candidates: list[CandidateImage] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# === REGISTRY ===


class RegisteredImage(BaseModel):
    """An image reference with a durable session-scoped numeric identity."""

    id: int
    path: str
    kind: ImageKind
    category: ImageCategory
    title: str | None = None
    original_ref: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class GridCacheEntry(BaseModel):
    """A composed grid render keyed by the set of ids it shows."""

    render_path: str
    source_image_ids: list[int]
    grid_label: str
    content_hash: str
    timestamp: datetime = Field(default_factory=utc_now)
    # Row-major order of the drawn ids; source_image_ids is sorted.
    cell_order: list[int] = Field(default_factory=list)


class RegistrySnapshot(BaseModel):
    """Persisted registry document: counter plus the two logical tables."""

    model_config = ConfigDict(populate_by_name=True)

    next_id: int = Field(default=1, alias="nextId")
    images: list[tuple[int, RegisteredImage]] = Field(default_factory=list)
    grid_cache: list[tuple[str, GridCacheEntry]] = Field(
        default_factory=list, alias="gridCache"
    )


# === GRID ===


class GridImageSource(BaseModel):
    """An image requested for a grid cell."""

    ref: str
    title: str | None = None
    data_url: str | None = None


class GridCell(BaseModel):
    """Placement of one drawn image inside a grid render."""

    position: int  # 1-based, row-major
    image_id: int
    label: str
    x: int
    y: int
    width: int
    height: int


class GridRender(BaseModel):
    """A composed grid raster and the ids it shows, in cell order."""

    path: str
    grid_label: str
    image_ids: list[int]
    cells: list[GridCell] = Field(default_factory=list)
    aspect: GridAspect = "square"
    rows: int = 0
    cols: int = 3
    cached: bool = False

    @property
    def count(self) -> int:
        return len(self.image_ids)

    def id_at(self, position: int) -> int | None:
        """Registry id shown at a 1-based grid position."""
        if 1 <= position <= len(self.image_ids):
            return self.image_ids[position - 1]
        return None


# === ORACLE ===


class OraclePick(BaseModel):
    """One grid position chosen by the ranking oracle."""

    number: int
    reason: str = ""


class GridSelection(BaseModel):
    """Canonical response schema requested from the ranking oracle."""

    best_images: list[OraclePick] = Field(default_factory=list)
