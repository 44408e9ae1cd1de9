# src/selection/tournament.py — v1
"""Tournament selector: multi-round merit-based narrowing of a pool.

Each round pages the pool by grid size, keeps the oracle's winners of every
page and feeds their union into the next round, until the pool fits the
target or the round cap is reached. The result is the first ``final_count``
survivors in page-then-position order.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from designscout.core.models import CandidateImage
from designscout.selection.base_selector import BaseSelector, paginate

if TYPE_CHECKING:
    from designscout.config.settings import Settings
    from designscout.grid.compositor import GridCompositor
    from designscout.oracle.selection_oracle import SelectionOracle
    from designscout.registry.image_registry import ImageRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 3
DEFAULT_KEEP_RATIO = 0.5


def winners_per_page(page_len: int, final_count: int, page_count: int, keep_ratio: float = DEFAULT_KEEP_RATIO) -> int:
    """Winners requested from one page of a round."""
    return min(math.ceil(page_len * keep_ratio), math.ceil(final_count / page_count) + 1)


class TournamentSelector(BaseSelector):
    """Reduce a pool to ``final_count`` over at most ``max_rounds`` rounds."""

    strategy = "tournament"

    def __init__(
        self,
        registry: ImageRegistry,
        compositor: GridCompositor,
        oracle: SelectionOracle,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(registry, compositor, oracle, settings)
        self._max_rounds = settings.tournament_max_rounds if settings else DEFAULT_MAX_ROUNDS
        self._keep_ratio = settings.tournament_keep_ratio if settings else DEFAULT_KEEP_RATIO

    async def select(
        self,
        pool: Sequence[CandidateImage],
        final_count: int,
        context: str = "",
        criteria: str | None = None,
    ) -> list[CandidateImage]:
        """Narrow ``pool`` to at most ``final_count`` candidates.

        Raises:
            ValueError: If final_count is not positive.
        """
        if final_count <= 0:
            raise ValueError(f"final_count must be > 0, got {final_count}")

        current = list(pool)
        if len(current) <= final_count:
            logger.info("Pool of %d already fits %d, no ranking needed", len(current), final_count)
            return current

        for round_number in range(1, self._max_rounds + 1):
            if len(current) <= final_count:
                break
            pages = paginate(current, self._page_size)
            pick_counts = [
                winners_per_page(len(page), final_count, len(pages), self._keep_ratio)
                for page in pages
            ]
            logger.info(
                "Tournament round %d: %d candidates in %d pages, picks %s",
                round_number, len(current), len(pages), pick_counts,
            )
            result = await self._run_round(round_number, pages, pick_counts, context, criteria)
            current = result.winners

        if len(current) > final_count:
            logger.info("Round cap reached with %d candidates, truncating to %d", len(current), final_count)
        return current[:final_count]
