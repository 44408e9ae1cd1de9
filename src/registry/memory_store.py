# src/registry/memory_store.py — v1
"""In-memory registry store (REGISTRY_BACKEND=memory).

Keeps the last snapshot as a deep copy; useful for tests and for callers
that persist the registry themselves.
"""

from __future__ import annotations

from designscout.core.models import RegistrySnapshot
from designscout.registry.base_registry_store import BaseRegistryStore


class MemoryRegistryStore(BaseRegistryStore):
    """Snapshot store that never touches disk."""

    def __init__(self) -> None:
        self._snapshot: RegistrySnapshot | None = None
        self.save_count = 0

    def load(self) -> RegistrySnapshot | None:
        if self._snapshot is None:
            return None
        return self._snapshot.model_copy(deep=True)

    def save(self, snapshot: RegistrySnapshot) -> None:
        self._snapshot = snapshot.model_copy(deep=True)
        self.save_count += 1

    def reset(self) -> None:
        self._snapshot = None

    @property
    def backend_name(self) -> str:
        return "memory"
