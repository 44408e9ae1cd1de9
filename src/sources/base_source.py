# src/sources/base_source.py — v1
"""Abstract image source interface.

A source turns a query into candidate images. Scraping and API details live
in the concrete adapters; the selection core only sees CandidateImage lists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from designscout.core.models import CandidateImage


class BaseImageSource(ABC):
    """Unified interface for candidate image providers."""

    @abstractmethod
    async def search(self, query: str, limit: int) -> list[CandidateImage]:
        """Return up to ``limit`` candidates for ``query``.

        Implementations may raise on transport failure; callers record the
        failure per source instead of substituting placeholders.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Source identifier used in SearchConfig.source."""


class StaticImageSource(BaseImageSource):
    """Source backed by a fixed list of candidates, filtered by query terms.

    Useful for pre-fetched result sets and offline runs. An empty query
    matches everything.
    """

    def __init__(self, name: str, candidates: Iterable[CandidateImage]) -> None:
        self._name = name
        self._candidates = list(candidates)

    @property
    def name(self) -> str:
        return self._name

    async def search(self, query: str, limit: int) -> list[CandidateImage]:
        terms = [t for t in query.lower().split() if t]
        matches = []
        for candidate in self._candidates:
            haystack = f"{candidate.title or ''} {candidate.page_url}".lower()
            if all(term in haystack for term in terms):
                matches.append(
                    candidate.model_copy(update={"source": self._name, "query": query})
                )
            if len(matches) >= limit:
                break
        return matches
