# src/registry/json_store.py — v1
"""JSON file registry store (default REGISTRY_BACKEND=json).

Writes one document per session:
    {"nextId": N, "images": [[id, image], ...], "gridCache": [[hash, entry], ...]}
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from designscout.core.models import RegistrySnapshot
from designscout.registry.base_registry_store import BaseRegistryStore

logger = logging.getLogger(__name__)


class JsonRegistryStore(BaseRegistryStore):
    """Snapshot store backed by a single JSON document."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> RegistrySnapshot | None:
        if not self._path.exists():
            return None
        try:
            return RegistrySnapshot.model_validate_json(
                self._path.read_text(encoding="utf-8")
            )
        except ValueError as e:
            logger.warning("Failed to read registry %s: %s", self._path, e)
            return None

    def save(self, snapshot: RegistrySnapshot) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(
            snapshot.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        os.replace(tmp_path, self._path)

    def reset(self) -> None:
        if self._path.exists():
            self._path.unlink()

    @property
    def backend_name(self) -> str:
        return "json"
