# src/api/facade.py — v1
"""Public API facade — the two selection entry points.

Usage:
    from designscout.api.facade import select_images
    session = DesignSession.create(settings)
    shortlist = await select_images(configs, 3, session=session, sources=sources)

Both entry points degrade to fewer results (down to ``[]``) when sources
are empty or the oracle cannot be understood; they raise only for malformed
input.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from designscout.aggregation.aggregator import aggregate_candidates
from designscout.core.models import CandidateImage, SearchConfig
from designscout.logging.context import clear_context, set_session_context
from designscout.sources.search import search_sources

if TYPE_CHECKING:
    from designscout.api.session import DesignSession
    from designscout.sources.source_registry import SourceRegistry

logger = logging.getLogger(__name__)


async def select_images(
    search_configs: Sequence[SearchConfig],
    final_count: int = 3,
    *,
    session: DesignSession,
    sources: SourceRegistry,
    context: str = "",
    criteria: str | None = None,
) -> list[CandidateImage]:
    """Search every (source, query) pair and narrow the pool by tournament.

    Args:
        search_configs: Searches to run; empty means no work at all.
        final_count: Size of the shortlist.
        session: Session providing registry, compositor and oracle.
        sources: Adapters addressable by SearchConfig.source.
        context: What the images are for, passed to the oracle.
        criteria: Extra judging guidance for the oracle.

    Returns:
        At most ``final_count`` candidates, in selection order.

    Raises:
        ValueError: If final_count is not positive.
        UnknownSourceError: If a config names an unregistered source.
    """
    _check_final_count(final_count)
    if not search_configs:
        return []

    set_session_context(session.session_id)
    try:
        results = await search_sources(
            search_configs, sources, limit=session.settings.search_default_limit,
        )
        pool = aggregate_candidates(result.candidates for result in results)
        shortlist = await session.tournament().select(pool, final_count, context, criteria)
    finally:
        clear_context()

    logger.info("Tournament selection: %d of %d pooled candidates", len(shortlist), len(pool))
    return shortlist


async def select_images_per_source(
    search_configs: Sequence[SearchConfig],
    final_count: int = 9,
    criteria: str | None = None,
    *,
    session: DesignSession,
    sources: SourceRegistry,
    context: str = "",
) -> list[CandidateImage]:
    """Rank each source's first results on their own, then cut the union.

    Each search contributes ``per_source_candidates`` candidates regardless of
    its SearchConfig.limit.

    Raises:
        ValueError: If final_count is not positive.
        UnknownSourceError: If a config names an unregistered source.
    """
    _check_final_count(final_count)
    if not search_configs:
        return []

    per_source = session.settings.per_source_candidates
    forced = [config.model_copy(update={"limit": per_source}) for config in search_configs]

    set_session_context(session.session_id)
    try:
        results = await search_sources(forced, sources, limit=per_source)
        shortlist = await session.per_source().select(results, final_count, context, criteria)
    finally:
        clear_context()

    logger.info("Per-source selection: %d candidates from %d searches", len(shortlist), len(results))
    return shortlist


def _check_final_count(final_count: int) -> None:
    if final_count <= 0:
        raise ValueError(f"final_count must be > 0, got {final_count}")
