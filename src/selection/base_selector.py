# src/selection/base_selector.py — v1
"""Shared page and round evaluation for the reduction strategies.

A page is at most one grid of candidates. Evaluating it registers every
candidate's image, composes the numbered grid, asks the oracle for winners
and maps the chosen positions back to candidates through the drawn ids.
A page that fails in any way contributes zero winners.

Pages of a round run concurrently; a round returns only once every page has
resolved, or once the optional round timeout has expired, in which case the
winners of finished pages are kept and the others are cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from designscout.aggregation.aggregator import dedupe_candidates
from designscout.core.models import CandidateImage, GridImageSource
from designscout.logging.context import set_page_context, set_selection_context

if TYPE_CHECKING:
    from designscout.config.settings import Settings
    from designscout.grid.compositor import GridCompositor
    from designscout.oracle.selection_oracle import SelectionOracle
    from designscout.registry.image_registry import ImageRegistry

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 9


def paginate(pool: Sequence[CandidateImage], page_size: int) -> list[list[CandidateImage]]:
    """Split ``pool`` into ordered pages of at most ``page_size``."""
    if page_size <= 0:
        raise ValueError("page_size must be > 0")
    return [list(pool[i : i + page_size]) for i in range(0, len(pool), page_size)]


@dataclass
class PageOutcome:
    """Result of evaluating one page."""

    index: int
    label: str
    candidates: list[CandidateImage]
    winners: list[CandidateImage] = field(default_factory=list)
    grid_path: str | None = None
    error: str | None = None


@dataclass
class RoundResult:
    """Result of one round: winners deduplicated across pages."""

    round_number: int
    pages: list[PageOutcome]
    winners: list[CandidateImage]
    timed_out_pages: int = 0

    @property
    def failed_pages(self) -> int:
        return sum(1 for page in self.pages if page.error is not None)


class BaseSelector:
    """Common machinery for grid-and-oracle reduction strategies."""

    strategy = "selection"

    def __init__(
        self,
        registry: ImageRegistry,
        compositor: GridCompositor,
        oracle: SelectionOracle,
        settings: Settings | None = None,
    ) -> None:
        self._registry = registry
        self._compositor = compositor
        self._oracle = oracle
        self._page_size = settings.grid_page_size if settings else DEFAULT_PAGE_SIZE
        self._round_timeout = settings.selection_round_timeout_s if settings else None

    async def _run_round(
        self,
        round_number: int,
        pages: Sequence[Sequence[CandidateImage]],
        pick_counts: Sequence[int],
        context: str,
        criteria: str | None,
    ) -> RoundResult:
        """Evaluate ``pages`` concurrently and union their winners."""
        set_selection_context(self.strategy, round_number)
        if not pages:
            return RoundResult(round_number=round_number, pages=[], winners=[])

        tasks = [
            asyncio.create_task(
                self._evaluate_page(
                    index,
                    f"{self.strategy}_r{round_number}_p{index + 1}",
                    list(page),
                    pick_count,
                    context,
                    criteria,
                )
            )
            for index, (page, pick_count) in enumerate(zip(pages, pick_counts))
        ]

        done, pending = await asyncio.wait(tasks, timeout=self._round_timeout)
        if pending:
            logger.warning(
                "Round %d timed out after %ss: cancelling %d of %d pages",
                round_number, self._round_timeout, len(pending), len(tasks),
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        outcomes = [task.result() for task in tasks if task in done]
        winners = dedupe_candidates(
            winner for outcome in outcomes for winner in outcome.winners
        )
        result = RoundResult(
            round_number=round_number,
            pages=outcomes,
            winners=winners,
            timed_out_pages=len(pending),
        )
        logger.info(
            "Round %d: %d pages, %d failed, %d winners",
            round_number, len(tasks), result.failed_pages + len(pending), len(winners),
        )
        return result

    async def _evaluate_page(
        self,
        index: int,
        label: str,
        page: list[CandidateImage],
        pick_count: int,
        context: str,
        criteria: str | None,
    ) -> PageOutcome:
        set_page_context(label)
        outcome = PageOutcome(index=index, label=label, candidates=page)
        try:
            by_id: dict[int, CandidateImage] = {}
            sources: list[GridImageSource] = []
            for candidate in page:
                ref = (candidate.image_ref or "").strip()
                if not ref:
                    continue
                image_id = await self._register(ref, candidate.title)
                by_id.setdefault(image_id, candidate)
                sources.append(GridImageSource(ref=ref, title=candidate.title))

            render = await self._compositor.compose(sources, grid_label=label)
            outcome.grid_path = render.path

            picks = await self._oracle.select(
                render,
                context,
                render.count,
                min(pick_count, render.count),
                criteria=criteria,
            )
            for pick in picks:
                image_id = render.id_at(pick.number)
                candidate = by_id.get(image_id) if image_id is not None else None
                if candidate is not None:
                    outcome.winners.append(candidate)
        except Exception as e:
            outcome.error = f"{type(e).__name__}: {e}"
            outcome.winners = []
            logger.warning("Page %s contributes no winners: %s", label, outcome.error)
        else:
            if not outcome.winners:
                logger.warning("Page %s: oracle returned no usable picks", label)
        return outcome

    async def _register(self, ref: str, title: str | None) -> int:
        existing = self._registry.get_id_by_ref(ref)
        if existing is not None:
            return existing
        try:
            return await self._registry.register_image(ref, "reference", "inspiration", title)
        except Exception:
            logger.warning("Async registration failed for %s, using sync path", ref, exc_info=True)
            return self._registry.register_image_sync(ref, "reference", "inspiration", title)
