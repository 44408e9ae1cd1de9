# src/grid/compositor.py — v1
"""Numbered grid compositor.

Lays out up to nine images, three per row, into one PNG whose cells carry a
``#<id>`` badge with the image's registry id. Cells whose image cannot be
loaded are dropped entirely, so badges and positions only ever refer to
images that were actually drawn. Renders are cached in the registry keyed by
the drawn id set. Resizing, drawing and PNG encoding run in a worker thread
so the pages of a round render concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from PIL import Image, ImageDraw, ImageFont

from designscout.core.models import (
    GridAspect,
    GridCacheEntry,
    GridCell,
    GridImageSource,
    GridRender,
    ImageCategory,
)
from designscout.grid.image_loader import load_image
from designscout.registry.downloader import needs_download

if TYPE_CHECKING:
    from designscout.registry.image_registry import ImageRegistry

logger = logging.getLogger(__name__)

BADGE_HEIGHT = 28
BADGE_MIN_WIDTH = 40
BADGE_FONT_SIZE = 18
_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


class NoRenderableImagesError(RuntimeError):
    """Raised when not a single image of a grid could be loaded."""


def cell_dimensions(aspect: GridAspect, base: int = 256) -> tuple[int, int]:
    """(width, height) of one cell for an aspect class."""
    if aspect == "landscape":
        return round(base * 1.5), base
    if aspect == "portrait":
        return base, round(base * 1.5)
    return base, base


def badge_width(image_id: int) -> int:
    """Badge width grows with the number of digits in the id."""
    return max(BADGE_MIN_WIDTH, len(str(image_id)) * 12 + 16)


def _load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for name in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def _safe_label(grid_label: str) -> str:
    return re.sub(r"[^\w.-]+", "_", grid_label).strip("_") or "grid"


class GridCompositor:
    """Compose labelled grids for the ranking oracle."""

    def __init__(
        self,
        registry: ImageRegistry,
        grids_dir: Path,
        cell_size: int = 256,
        columns: int = 3,
        max_images: int = 9,
        fetch_timeout_s: float = 20.0,
        user_agent: str = "Mozilla/5.0 (compatible; designscout/0.1)",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._registry = registry
        self._grids_dir = Path(grids_dir)
        self._cell_size = cell_size
        self._columns = columns
        self._max_images = max_images
        self._fetch_timeout = fetch_timeout_s
        self._user_agent = user_agent
        self._transport = transport

    async def compose(
        self,
        images: Sequence[GridImageSource],
        grid_label: str = "grid",
        aspect: GridAspect = "square",
        category: ImageCategory = "inspiration",
    ) -> GridRender:
        """Render ``images`` into one numbered grid and return its layout.

        Raises:
            ValueError: More images than fit in one grid.
            NoRenderableImagesError: No image given, or none could be loaded.
        """
        sources = self._unique_sources(images)
        if not sources:
            raise NoRenderableImagesError("No valid images to create grid from")
        if len(sources) > self._max_images:
            raise ValueError(
                f"A grid holds at most {self._max_images} images, got {len(sources)}"
            )

        image_ids = await self._resolve_ids(sources, category)
        if not image_ids:
            raise NoRenderableImagesError("No image of the grid could be registered")
        requested = [source for source, _ in image_ids]
        ids = [image_id for _, image_id in image_ids]

        cached = self._registry.get_cached_grid_entry(ids, grid_label)
        if cached is not None:
            logger.info("Using cached grid %s: %s", grid_label, cached.render_path)
            return self._from_cache(cached, aspect)

        loaded = await self._load_all(requested, ids)
        if not loaded:
            raise NoRenderableImagesError(
                f"No images could be loaded for grid {grid_label}"
            )
        logger.info(
            "Loaded %d of %d images for grid %s", len(loaded), len(requested), grid_label,
        )

        drawn_ids = [image_id for image_id, _ in loaded]
        if len(drawn_ids) != len(ids):
            cached = self._registry.get_cached_grid_entry(drawn_ids, grid_label)
            if cached is not None:
                logger.info("Using cached grid %s for loaded subset", grid_label)
                return self._from_cache(cached, aspect)

        render = await asyncio.to_thread(self._render, loaded, grid_label, aspect)
        self._registry.cache_grid(render.path, drawn_ids, grid_label, cell_order=drawn_ids)
        return render

    # --- Internal helpers ---

    @staticmethod
    def _unique_sources(images: Sequence[GridImageSource]) -> list[GridImageSource]:
        seen: set[str] = set()
        unique: list[GridImageSource] = []
        for source in images:
            ref = source.ref.strip() if source.ref else ""
            if not ref:
                continue
            if ref in seen:
                logger.debug("Skipping duplicate grid ref: %s", ref)
                continue
            seen.add(ref)
            unique.append(source.model_copy(update={"ref": ref}))
        return unique

    async def _resolve_ids(
        self, sources: list[GridImageSource], category: ImageCategory
    ) -> list[tuple[GridImageSource, int]]:
        resolved: list[tuple[GridImageSource, int]] = []
        for source in sources:
            image_id = self._registry.get_id_by_ref(source.ref)
            if image_id is None:
                kind = (
                    "reference"
                    if needs_download(source.ref) or category == "inspiration"
                    else "generated"
                )
                try:
                    image_id = await self._registry.register_image(
                        source.ref, kind, category, source.title
                    )
                except Exception:
                    logger.warning("Failed to register %s, retrying without download", source.ref, exc_info=True)
                    image_id = self._registry.register_image_sync(
                        source.ref, kind, category, source.title
                    )
            resolved.append((source, image_id))
        return resolved

    async def _load_all(
        self, sources: list[GridImageSource], ids: list[int]
    ) -> list[tuple[int, Image.Image]]:
        async with httpx.AsyncClient(
            timeout=self._fetch_timeout,
            follow_redirects=True,
            headers={"User-Agent": self._user_agent},
            transport=self._transport,
        ) as client:
            results = await asyncio.gather(
                *(
                    load_image(source, client, self._working_path(image_id))
                    for source, image_id in zip(sources, ids)
                )
            )
        return [(image_id, img) for image_id, img in zip(ids, results) if img is not None]

    def _working_path(self, image_id: int) -> str | None:
        image = self._registry.get_image(image_id)
        return image.path if image else None

    def _cells(
        self, ids: list[int], aspect: GridAspect
    ) -> tuple[list[GridCell], int, int, int]:
        cell_w, cell_h = cell_dimensions(aspect, self._cell_size)
        rows = math.ceil(len(ids) / self._columns)
        cells = [
            GridCell(
                position=index + 1,
                image_id=image_id,
                label=f"#{image_id}",
                x=(index % self._columns) * cell_w,
                y=(index // self._columns) * cell_h,
                width=cell_w,
                height=cell_h,
            )
            for index, image_id in enumerate(ids)
        ]
        return cells, rows, cell_w, cell_h

    def _from_cache(self, entry: GridCacheEntry, aspect: GridAspect) -> GridRender:
        ids = entry.cell_order or entry.source_image_ids
        cells, rows, _, _ = self._cells(ids, aspect)
        return GridRender(
            path=entry.render_path,
            grid_label=entry.grid_label,
            image_ids=list(ids),
            cells=cells,
            aspect=aspect,
            rows=rows,
            cols=self._columns,
            cached=True,
        )

    def _render(
        self,
        loaded: list[tuple[int, Image.Image]],
        grid_label: str,
        aspect: GridAspect,
    ) -> GridRender:
        ids = [image_id for image_id, _ in loaded]
        cells, rows, cell_w, cell_h = self._cells(ids, aspect)

        canvas = Image.new("RGB", (self._columns * cell_w, rows * cell_h), (255, 255, 255))
        draw = ImageDraw.Draw(canvas)
        font = _load_font(BADGE_FONT_SIZE)

        for cell, (_, img) in zip(cells, loaded):
            # Fill the cell width; crop the bottom of tall images, centre short ones.
            scaled_h = max(1, round(cell_w * img.height / img.width))
            scaled = img.resize((cell_w, scaled_h), Image.LANCZOS)
            if scaled_h > cell_h:
                scaled = scaled.crop((0, 0, cell_w, cell_h))
                dest_y = cell.y
            else:
                dest_y = cell.y + (cell_h - scaled_h) // 2
            canvas.paste(scaled, (cell.x, dest_y))

            width = badge_width(cell.image_id)
            draw.rectangle(
                (cell.x, cell.y, cell.x + width - 1, cell.y + BADGE_HEIGHT - 1),
                fill=(0, 0, 0),
            )
            draw.text((cell.x + 8, cell.y + 4), cell.label, fill=(255, 255, 255), font=font)

        self._grids_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-")
        filename = f"{_safe_label(grid_label)}_{timestamp}_{uuid.uuid4().hex[:8]}.png"
        path = self._grids_dir / filename
        canvas.save(path, format="PNG")
        logger.info("Saved grid %s with images %s to %s", grid_label, ids, path)

        return GridRender(
            path=str(path),
            grid_label=grid_label,
            image_ids=ids,
            cells=cells,
            aspect=aspect,
            rows=rows,
            cols=self._columns,
        )
