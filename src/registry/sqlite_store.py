# src/registry/sqlite_store.py — v1
"""SQLite-based registry store (REGISTRY_BACKEND=sqlite).

Uses stdlib sqlite3 — no external dependency. The two logical tables map to
``images`` and ``grid_cache``; the id counter lives in ``meta``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from designscout.core.models import GridCacheEntry, RegisteredImage, RegistrySnapshot
from designscout.registry.base_registry_store import BaseRegistryStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS images (
    id INTEGER PRIMARY KEY,
    path TEXT NOT NULL,
    category TEXT NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_images_path ON images(path);
CREATE INDEX IF NOT EXISTS idx_images_category ON images(category);
CREATE TABLE IF NOT EXISTS grid_cache (
    hash TEXT PRIMARY KEY,
    render_path TEXT NOT NULL,
    data TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SqliteRegistryStore(BaseRegistryStore):
    """SQLite-backed registry store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def load(self) -> RegistrySnapshot | None:
        row = self._conn.execute(
            "SELECT value FROM meta WHERE key = 'next_id'"
        ).fetchone()
        if row is None:
            return None

        images: list[tuple[int, RegisteredImage]] = []
        for image_id, data in self._conn.execute(
            "SELECT id, data FROM images ORDER BY id"
        ):
            try:
                images.append((image_id, RegisteredImage(**json.loads(data))))
            except ValueError as e:
                logger.warning("Skipping unreadable image row %s: %s", image_id, e)

        grid_cache: list[tuple[str, GridCacheEntry]] = []
        for content_hash, data in self._conn.execute(
            "SELECT hash, data FROM grid_cache"
        ):
            try:
                grid_cache.append((content_hash, GridCacheEntry(**json.loads(data))))
            except ValueError as e:
                logger.warning("Skipping unreadable grid row %s: %s", content_hash, e)

        return RegistrySnapshot(
            next_id=int(row[0]), images=images, grid_cache=grid_cache
        )

    def save(self, snapshot: RegistrySnapshot) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM images")
            self._conn.execute("DELETE FROM grid_cache")
            self._conn.executemany(
                "INSERT INTO images (id, path, category, data) VALUES (?, ?, ?, ?)",
                [
                    (image_id, image.path, image.category, image.model_dump_json())
                    for image_id, image in snapshot.images
                ],
            )
            self._conn.executemany(
                "INSERT INTO grid_cache (hash, render_path, data) VALUES (?, ?, ?)",
                [
                    (content_hash, entry.render_path, entry.model_dump_json())
                    for content_hash, entry in snapshot.grid_cache
                ],
            )
            self._conn.execute(
                "INSERT OR REPLACE INTO meta (key, value) VALUES ('next_id', ?)",
                (str(snapshot.next_id),),
            )

    def reset(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM images")
            self._conn.execute("DELETE FROM grid_cache")
            self._conn.execute("DELETE FROM meta")

    def close(self) -> None:
        self._conn.close()

    @property
    def backend_name(self) -> str:
        return "sqlite"
