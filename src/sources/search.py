# src/sources/search.py — v1
"""Concurrent fan-out of (source, query) searches.

Every search is its own failure domain: an exception in one adapter becomes
an ``error`` on that search's result and never delays or fails the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from designscout.core.models import SearchConfig, SourceSearchResult
from designscout.sources.base_source import BaseImageSource
from designscout.sources.source_registry import SourceRegistry

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 9


async def _search_one(
    config: SearchConfig, source: BaseImageSource, limit: int
) -> SourceSearchResult:
    try:
        candidates = await source.search(config.query, limit)
    except Exception as e:
        logger.warning("Source %s failed for %r: %s", config.source, config.query, e)
        return SourceSearchResult(
            source=config.source, query=config.query, error=f"{type(e).__name__}: {e}"
        )
    logger.info("Source %s returned %d candidates for %r", config.source, len(candidates), config.query)
    return SourceSearchResult(
        source=config.source,
        query=config.query,
        candidates=[
            c if c.source else c.model_copy(update={"source": config.source, "query": config.query})
            for c in candidates[:limit]
        ],
    )


async def search_sources(
    configs: Sequence[SearchConfig],
    sources: SourceRegistry,
    limit: int = DEFAULT_LIMIT,
) -> list[SourceSearchResult]:
    """Run every search concurrently; results follow ``configs`` order.

    Raises:
        UnknownSourceError: If a config names an unregistered source
            (checked before any search starts).
    """
    adapters = [sources.get(config.source) for config in configs]
    if not adapters:
        return []
    return list(
        await asyncio.gather(
            *(
                _search_one(config, adapter, config.limit or limit)
                for config, adapter in zip(configs, adapters)
            )
        )
    )
