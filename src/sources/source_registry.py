# src/sources/source_registry.py — v1
"""Registry of image sources addressable by name."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from designscout.sources.base_source import BaseImageSource

logger = logging.getLogger(__name__)


class UnknownSourceError(ValueError):
    """Raised when a search names a source that is not registered."""

    def __init__(self, name: str, available: Iterable[str]) -> None:
        self.name = name
        self.available = sorted(available)
        super().__init__(
            f"Unknown image source: {name!r}. Available: {', '.join(self.available) or '(none)'}"
        )


class SourceRegistry:
    """Name -> adapter lookup for one session."""

    def __init__(self, sources: Iterable[BaseImageSource] = ()) -> None:
        self._sources: dict[str, BaseImageSource] = {}
        for source in sources:
            self.register(source)

    def register(self, source: BaseImageSource) -> None:
        """Register an adapter under its ``name``."""
        if source.name in self._sources:
            logger.warning("Overwriting existing image source: %s", source.name)
        self._sources[source.name] = source

    def get(self, name: str) -> BaseImageSource:
        """Adapter registered as ``name``.

        Raises:
            UnknownSourceError: If nothing is registered under that name.
        """
        try:
            return self._sources[name]
        except KeyError:
            raise UnknownSourceError(name, self._sources) from None

    @property
    def names(self) -> list[str]:
        return sorted(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)
