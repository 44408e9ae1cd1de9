# tests/unit/selection/test_unit_per_source.py — v1
"""Tests for selection/per_source.py — per-source top-k then final cut."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock

import pytest

from designscout.config.settings import Settings
from designscout.core.models import SourceSearchResult
from designscout.grid.compositor import GridCompositor
from designscout.oracle.selection_oracle import SelectionOracle
from designscout.selection.per_source import PerSourceSelector


@pytest.fixture
def first_k_llm(mock_llm_client, oracle_reply):
    async def respond(**kwargs):
        k = int(re.search(r"best (\d+) images", kwargs["messages"][0].content).group(1))
        return oracle_reply(*range(1, k + 1))

    mock_llm_client.complete_with_vision = AsyncMock(side_effect=respond)
    return mock_llm_client


@pytest.fixture
def selector(registry, tmp_path, first_k_llm) -> PerSourceSelector:
    settings = Settings(_env_file=None, output_root=tmp_path)
    compositor = GridCompositor(registry, tmp_path / "grids")
    return PerSourceSelector(registry, compositor, SelectionOracle(first_k_llm, settings), settings)


def _result(source: str, candidates, error: str | None = None) -> SourceSearchResult:
    return SourceSearchResult(source=source, query="logo", candidates=candidates, error=error)


class TestPerSourceSelector:
    @pytest.mark.asyncio
    async def test_two_sources_of_nine_to_three(self, selector, first_k_llm, make_candidates):
        a = make_candidates(9, prefix="a", source="dribbble")
        b = make_candidates(9, prefix="b", source="behance")
        result = await selector.select([_result("dribbble", a), _result("behance", b)], 3)

        assert len(result) == 3
        assert first_k_llm.complete_with_vision.await_count == 3
        assert result == a[:3]

    @pytest.mark.asyncio
    async def test_union_returned_when_it_fits(self, selector, first_k_llm, make_candidates):
        a = make_candidates(9, prefix="a")
        b = make_candidates(9, prefix="b")
        result = await selector.select([_result("a", a), _result("b", b)], 9)
        assert result == a[:4] + b[:4]
        assert first_k_llm.complete_with_vision.await_count == 2

    @pytest.mark.asyncio
    async def test_only_first_nine_per_source(self, selector, first_k_llm, make_candidates):
        many = make_candidates(12, prefix="m")
        await selector.select([_result("m", many)], 9)
        kwargs = first_k_llm.complete_with_vision.call_args.kwargs
        assert "9 images" in kwargs["messages"][0].content

    @pytest.mark.asyncio
    async def test_small_source_top_k_capped(self, selector, first_k_llm, make_candidates):
        result = await selector.select([_result("s", make_candidates(2))], 9)
        assert len(result) == 2

    @pytest.mark.asyncio
    async def test_empty_and_failed_sources_skipped(self, selector, first_k_llm, make_candidates):
        a = make_candidates(5, prefix="a")
        results = [
            _result("empty", []),
            _result("down", [], error="ConnectError: refused"),
            _result("a", a),
        ]
        result = await selector.select(results, 9)
        assert result == a[:4]
        assert first_k_llm.complete_with_vision.await_count == 1

    @pytest.mark.asyncio
    async def test_no_candidates_at_all(self, selector, first_k_llm):
        assert await selector.select([_result("empty", [])], 3) == []
        first_k_llm.complete_with_vision.assert_not_called()

    @pytest.mark.asyncio
    async def test_shared_image_deduplicated(self, selector, make_candidates):
        a = make_candidates(4, prefix="shared")
        b = [c.model_copy(update={"source": "other"}) for c in a]
        result = await selector.select([_result("a", a), _result("b", b)], 9)
        assert len(result) == 4

    @pytest.mark.asyncio
    async def test_rejects_non_positive_count(self, selector):
        with pytest.raises(ValueError):
            await selector.select([], 0)
