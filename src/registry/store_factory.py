# src/registry/store_factory.py — v1
"""Factory for registry store instantiation."""

from __future__ import annotations

from designscout.config.settings import Settings
from designscout.registry.base_registry_store import BaseRegistryStore
from designscout.storage.layout import SessionPaths


def create_registry_store(
    settings: Settings | None = None,
    paths: SessionPaths | None = None,
) -> BaseRegistryStore:
    """Instantiate the configured registry backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.
        paths: Session paths; required by the file-backed stores.

    Returns:
        Configured BaseRegistryStore implementation.
    """
    backend = "json" if settings is None else settings.registry_backend

    if backend == "memory":
        from designscout.registry.memory_store import MemoryRegistryStore
        return MemoryRegistryStore()

    if paths is None:
        raise ValueError(f"Session paths are required for the {backend!r} registry backend")

    if backend == "json":
        from designscout.registry.json_store import JsonRegistryStore
        return JsonRegistryStore(paths.registry_json_path)

    if backend == "sqlite":
        from designscout.registry.sqlite_store import SqliteRegistryStore
        return SqliteRegistryStore(paths.registry_db_path)

    raise ValueError(f"Unsupported registry backend: {backend!r}")
