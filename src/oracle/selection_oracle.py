# src/oracle/selection_oracle.py — v1
"""Ranking oracle: ask a vision model to pick the best cells of a grid."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from designscout.core.models import GridRender, GridSelection, OraclePick
from designscout.llm.models import ImageInput, Message
from designscout.llm.retry import with_retry
from designscout.oracle.response_parser import parse_oracle_response

if TYPE_CHECKING:
    from designscout.config.settings import Settings
    from designscout.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a design assistant. Your job is to select the best images "
    "from a grid of images."
)

_RANKING_PROMPT = (
    "We are trying to create a design and are searching the web for design "
    "inspiration. We have {total} images that we want to rank. When you rank "
    "the images, you should first choose only the relevant images. Once you "
    "have selected the relevant images, rank them by how aesthetically "
    "pleasing they are."
)

_RESPONSE_PROMPT = (
    "Each image carries a #id badge, but answer with its position in the grid "
    "(1-{total}, left to right, top to bottom). Please select the best {pick} "
    "images from the grid. Respond only with JSON of the form "
    '{{"best_images": [{{"number": <position>, "reason": "<why>"}}]}}.'
)


def build_prompt(
    total_count: int, pick_count: int, context: str = "", criteria: str | None = None
) -> str:
    """Ranking prompt: relevance first, then aesthetics."""
    parts = [_RANKING_PROMPT.format(total=total_count)]
    if context:
        parts.append(context)
    if criteria:
        parts.append(criteria)
    parts.append(_RESPONSE_PROMPT.format(total=total_count, pick=pick_count))
    return "\n\n".join(parts)


class SelectionOracle:
    """Sends one grid to the vision client and returns the chosen positions."""

    def __init__(self, llm: BaseLLMClient, settings: Settings | None = None) -> None:
        self._llm = llm
        self._max_tokens = settings.oracle_max_tokens if settings else 2048

    async def select(
        self,
        grid: GridRender | str | Path,
        context: str,
        total_count: int,
        pick_count: int,
        criteria: str | None = None,
        image_ids: list[int] | None = None,
    ) -> list[OraclePick]:
        """Ask for the best ``pick_count`` of ``total_count`` grid cells.

        Returns 1-based positions; an unparseable answer yields ``[]``.

        Raises:
            LLMRetryExhausted: The vision call kept failing.
            OSError: The grid file cannot be read.
        """
        pick_count = min(pick_count, total_count)
        if total_count <= 0 or pick_count <= 0:
            return []

        if isinstance(grid, GridRender):
            path = Path(grid.path)
            image_ids = image_ids or grid.image_ids
        else:
            path = Path(grid)

        data = path.read_bytes()
        prompt = build_prompt(total_count, pick_count, context, criteria)

        response = await with_retry(
            self._llm.complete_with_vision,
            messages=[Message(role="user", content=prompt)],
            images=[ImageInput(data=data, media_type="image/png", source_id=path.name)],
            system=_SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
            response_format=GridSelection,
            operation="grid_selection",
        )

        picks = parse_oracle_response(response.content, total_count, pick_count)
        if image_ids:
            chosen = [
                image_ids[p.number - 1] for p in picks if p.number <= len(image_ids)
            ]
            logger.info("Oracle picked positions %s (ids %s)", [p.number for p in picks], chosen)
        else:
            logger.info("Oracle picked positions %s", [p.number for p in picks])
        return picks
