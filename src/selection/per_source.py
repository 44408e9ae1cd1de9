# src/selection/per_source.py — v1
"""Per-source selector: guaranteed representation before a final cut.

Every source contributes its first candidates (one grid's worth), each
source's grid is ranked on its own for a top-k, and only the union of those
top picks competes in a single cross-source round when it exceeds the target.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from designscout.aggregation.aggregator import aggregate_candidates, dedupe_candidates
from designscout.core.models import CandidateImage, SourceSearchResult
from designscout.selection.base_selector import BaseSelector, paginate

if TYPE_CHECKING:
    from designscout.config.settings import Settings
    from designscout.grid.compositor import GridCompositor
    from designscout.oracle.selection_oracle import SelectionOracle
    from designscout.registry.image_registry import ImageRegistry

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATES_PER_SOURCE = 9
DEFAULT_TOP_K = 4


class PerSourceSelector(BaseSelector):
    """Rank each source independently, then cut the union to the target."""

    strategy = "per_source"

    def __init__(
        self,
        registry: ImageRegistry,
        compositor: GridCompositor,
        oracle: SelectionOracle,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(registry, compositor, oracle, settings)
        self._per_source = (
            settings.per_source_candidates if settings else DEFAULT_CANDIDATES_PER_SOURCE
        )
        self._top_k = settings.per_source_top_k if settings else DEFAULT_TOP_K

    def source_pools(
        self, source_results: Sequence[SourceSearchResult]
    ) -> list[list[CandidateImage]]:
        """First valid, unique candidates of each source; empty sources skipped."""
        pools = []
        for result in source_results:
            pool = aggregate_candidates([result.candidates])[: self._per_source]
            if pool:
                pools.append(pool)
            else:
                logger.info(
                    "Source %s (%r) has no candidates%s",
                    result.source, result.query,
                    f": {result.error}" if result.error else "",
                )
        return pools

    async def select(
        self,
        source_results: Sequence[SourceSearchResult],
        final_count: int,
        context: str = "",
        criteria: str | None = None,
    ) -> list[CandidateImage]:
        """Shortlist at most ``final_count`` candidates across sources.

        Raises:
            ValueError: If final_count is not positive.
        """
        if final_count <= 0:
            raise ValueError(f"final_count must be > 0, got {final_count}")

        pools = self.source_pools(source_results)
        if not pools:
            return []

        first = await self._run_round(
            1, pools, [min(self._top_k, len(pool)) for pool in pools], context, criteria,
        )
        union = dedupe_candidates(first.winners)
        logger.info("Per-source round: %d sources -> %d unique picks", len(pools), len(union))
        if len(union) <= final_count:
            return union

        pages = paginate(union, self._page_size)
        per_page = math.ceil(final_count / len(pages))
        final = await self._run_round(
            2, pages, [min(len(page), per_page) for page in pages], context, criteria,
        )
        return final.winners[:final_count]
