# src/registry/base_registry_store.py — v1
"""Abstract key-value store behind the image registry.

A store holds two logical tables (``images`` keyed by id, ``grid_cache``
keyed by content hash) plus the id counter. The registry flushes a full
snapshot after every mutation, so backends only need snapshot semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from designscout.core.models import RegistrySnapshot


class BaseRegistryStore(ABC):
    """Unified interface for registry persistence backends."""

    @abstractmethod
    def load(self) -> RegistrySnapshot | None:
        """Return the last saved snapshot, or None if nothing was saved."""

    @abstractmethod
    def save(self, snapshot: RegistrySnapshot) -> None:
        """Durably replace the stored state with ``snapshot``."""

    @abstractmethod
    def reset(self) -> None:
        """Drop all stored state."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier (json, sqlite, memory)."""
