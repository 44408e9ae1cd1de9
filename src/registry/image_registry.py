# src/registry/image_registry.py — v1
"""Session image registry: stable numeric ids, reference localization, grid cache.

One registry is created per design session and passed explicitly to the
components that need it. Ids start at 1 and only grow; a ref string maps to
exactly one id. Every mutation flushes a full snapshot to the backing store.

Id reservation is synchronous: the counter is read, incremented and the
record inserted before any await, so concurrent registrations under asyncio
never share an id and a ref registered while its download is in flight
resolves to the id already reserved for it.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from designscout.core.models import (
    IMAGE_CATEGORIES,
    GridCacheEntry,
    ImageCategory,
    ImageKind,
    RegisteredImage,
    RegistrySnapshot,
)
from designscout.registry.downloader import expected_local_path, needs_download
from designscout.registry.fingerprint import grid_content_hash, normalize_id_set
from designscout.registry.memory_store import MemoryRegistryStore

if TYPE_CHECKING:
    from designscout.registry.base_registry_store import BaseRegistryStore
    from designscout.registry.downloader import ReferenceDownloader

logger = logging.getLogger(__name__)

CrossCategoryPolicy = Literal["keep_first", "reject"]


class CategoryConflictError(ValueError):
    """Raised when a ref is re-registered under another category (reject policy)."""

    def __init__(self, ref: str, image_id: int, existing: str, requested: str) -> None:
        self.ref = ref
        self.image_id = image_id
        self.existing = existing
        self.requested = requested
        super().__init__(
            f"Image #{image_id} ({ref}) is registered as {existing}, "
            f"cannot re-register as {requested}"
        )


class ImageRegistry:
    """Tracks every image of a session under a durable integer id."""

    def __init__(
        self,
        store: BaseRegistryStore | None = None,
        reference_dir: Path | None = None,
        downloader: ReferenceDownloader | None = None,
        cross_category_policy: CrossCategoryPolicy = "keep_first",
    ) -> None:
        self._store = store if store is not None else MemoryRegistryStore()
        self._reference_dir = Path(reference_dir) if reference_dir else None
        self._downloader = downloader
        self._policy = cross_category_policy

        self._images: dict[int, RegisteredImage] = {}
        self._ref_to_id: dict[str, int] = {}
        self._grid_cache: dict[str, GridCacheEntry] = {}
        self._next_id = 1

    @classmethod
    def load(
        cls,
        store: BaseRegistryStore,
        reference_dir: Path | None = None,
        downloader: ReferenceDownloader | None = None,
        cross_category_policy: CrossCategoryPolicy = "keep_first",
    ) -> ImageRegistry:
        """Rebuild a registry from the last snapshot in ``store``."""
        registry = cls(store, reference_dir, downloader, cross_category_policy)
        try:
            snapshot = store.load()
        except Exception:
            logger.error("Failed to load image registry", exc_info=True)
            snapshot = None
        if snapshot is not None:
            registry._restore(snapshot)
            logger.info("Loaded registry with %d images", len(registry._images))
        return registry

    # --- Registration ---

    async def register_image(
        self,
        ref: str,
        kind: ImageKind,
        category: ImageCategory,
        title: str | None = None,
    ) -> int:
        """Register ``ref`` and return its id, localizing references.

        Remote references are downloaded to ``<reference_dir>/<id><ext>``;
        local reference files are copied there. On failure the original ref
        stays the working path.
        """
        existing = self._existing_id(ref, category)
        if existing is not None:
            return existing

        image_id = self._reserve(ref, kind, category, title)

        if kind == "reference":
            local_path = await self._localize(ref, image_id)
            if local_path is not None and local_path != ref:
                self.relocate(image_id, local_path)

        return image_id

    def register_image_sync(
        self,
        ref: str,
        kind: ImageKind,
        category: ImageCategory,
        title: str | None = None,
    ) -> int:
        """Register ``ref`` without any download or copy."""
        existing = self._existing_id(ref, category)
        if existing is not None:
            return existing
        return self._reserve(ref, kind, category, title)

    def relocate(self, image_id: int, new_path: str) -> None:
        """Point ``image_id`` at a local copy, remembering the original ref."""
        image = self._images[image_id]
        if image.path == new_path:
            return
        original = image.original_ref or image.path
        self._images[image_id] = image.model_copy(
            update={"path": new_path, "original_ref": original}
        )
        self._ref_to_id[new_path] = image_id
        self._ref_to_id.setdefault(original, image_id)
        self._persist()
        logger.info("Image #%d localized: %s -> %s", image_id, original, new_path)

    # --- Lookups ---

    def get_image(self, image_id: int) -> RegisteredImage | None:
        return self._images.get(image_id)

    def get_id_by_ref(self, ref: str) -> int | None:
        return self._ref_to_id.get(ref)

    def get_images_by_category(self, category: ImageCategory) -> list[RegisteredImage]:
        """All images of ``category`` in ascending id order."""
        return sorted(
            (img for img in self._images.values() if img.category == category),
            key=lambda img: img.id,
        )

    @property
    def images(self) -> list[RegisteredImage]:
        return [self._images[i] for i in sorted(self._images)]

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._images)

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._images

    def get_grid_mapping(self, category: ImageCategory) -> dict[int, int]:
        """1-based grid position → id for a category, by ascending id."""
        return {
            position: img.id
            for position, img in enumerate(self.get_images_by_category(category), start=1)
        }

    def get_summary(self) -> str:
        """Human-readable listing of registered images per category."""
        lines = ["=== Image Registry Summary ===", ""]
        for category in IMAGE_CATEGORIES:
            images = self.get_images_by_category(category)
            if not images:
                continue
            lines.append(f"{category.upper()} ({len(images)} images):")
            for img in images:
                line = f"  #{img.id}: {Path(img.path).name}"
                if img.title:
                    line += f' - "{img.title}"'
                lines.append(line)
            lines.append("")
        return "\n".join(lines)

    # --- Grid cache ---

    def get_cached_grid_entry(
        self, image_ids: Iterable[int], grid_label: str
    ) -> GridCacheEntry | None:
        """Cache entry for this id set and label whose render still exists."""
        content_hash = grid_content_hash(grid_label, image_ids)
        entry = self._grid_cache.get(content_hash)
        if entry is None:
            return None
        if not Path(entry.render_path).exists():
            logger.debug("Cached grid %s is gone from storage: %s", grid_label, entry.render_path)
            return None
        return entry

    def get_cached_grid(self, image_ids: Iterable[int], grid_label: str) -> str | None:
        """Path of the cached render for this id set and label, if still on disk."""
        entry = self.get_cached_grid_entry(image_ids, grid_label)
        return entry.render_path if entry else None

    def cache_grid(
        self,
        render_path: str,
        image_ids: Iterable[int],
        grid_label: str,
        cell_order: Iterable[int] | None = None,
    ) -> GridCacheEntry:
        """Upsert the render for this id set and label."""
        ids = list(image_ids)
        entry = GridCacheEntry(
            render_path=str(render_path),
            source_image_ids=normalize_id_set(ids),
            grid_label=grid_label,
            content_hash=grid_content_hash(grid_label, ids),
            cell_order=list(cell_order) if cell_order is not None else ids,
        )
        self._grid_cache[entry.content_hash] = entry
        self._persist()
        logger.debug("Cached grid %s with images %s", grid_label, entry.source_image_ids)
        return entry

    # --- Lifecycle ---

    def clear(self) -> None:
        """Reset all state for a new session; the next id is 1 again."""
        self._images.clear()
        self._ref_to_id.clear()
        self._grid_cache.clear()
        self._next_id = 1
        try:
            self._store.reset()
        except Exception:
            logger.error("Failed to reset registry store", exc_info=True)
        self._persist()
        logger.info("Registry cleared")

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(
            next_id=self._next_id,
            images=[(i, self._images[i]) for i in sorted(self._images)],
            grid_cache=list(self._grid_cache.items()),
        )

    # --- Internal helpers ---

    def _existing_id(self, ref: str, category: ImageCategory) -> int | None:
        image_id = self._ref_to_id.get(ref)
        if image_id is None:
            return None
        existing = self._images[image_id].category
        if existing != category:
            if self._policy == "reject":
                raise CategoryConflictError(ref, image_id, existing, category)
            logger.warning(
                "Image #%d already registered as %s; ignoring category %s for %s",
                image_id, existing, category, ref,
            )
        return image_id

    def _reserve(
        self,
        ref: str,
        kind: ImageKind,
        category: ImageCategory,
        title: str | None,
    ) -> int:
        image_id = self._next_id
        self._next_id += 1
        self._images[image_id] = RegisteredImage(
            id=image_id, path=ref, kind=kind, category=category, title=title,
        )
        self._ref_to_id[ref] = image_id
        self._persist()
        logger.info("Registered %s %s image #%d: %s", kind, category, image_id, Path(ref).name)
        return image_id

    async def _localize(self, ref: str, image_id: int) -> str | None:
        if needs_download(ref):
            if self._downloader is None:
                return None
            result = await self._downloader.download(ref, image_id)
            if not result.success:
                logger.warning(
                    "Keeping remote ref for #%d, download failed: %s", image_id, result.error,
                )
                return None
            return result.local_path

        if self._reference_dir is None or ref.startswith("data:"):
            return None
        source = Path(ref)
        try:
            if not source.is_file() or source.parent.resolve() == self._reference_dir.resolve():
                return None
        except OSError:
            return None
        target = expected_local_path(self._reference_dir, image_id, ref)
        if source.suffix:
            target = target.with_suffix(source.suffix.lower())
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as e:
            logger.warning("Failed to copy reference #%d from %s: %s", image_id, ref, e)
            return None
        return str(target)

    def _restore(self, snapshot: RegistrySnapshot) -> None:
        self._next_id = snapshot.next_id
        for image_id, image in snapshot.images:
            self._images[image_id] = image
            self._ref_to_id[image.path] = image_id
            if image.original_ref:
                self._ref_to_id.setdefault(image.original_ref, image_id)
        for content_hash, entry in snapshot.grid_cache:
            self._grid_cache[content_hash] = entry

    def _persist(self) -> None:
        try:
            self._store.save(self.snapshot())
        except Exception:
            logger.error("Failed to persist image registry", exc_info=True)
