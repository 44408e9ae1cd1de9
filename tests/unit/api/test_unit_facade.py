# tests/unit/api/test_unit_facade.py — v1
"""Tests for api/ — design sessions and the two selection entry points."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock

import pytest

from designscout.api.facade import select_images, select_images_per_source
from designscout.api.models import SelectionOverrides
from designscout.api.session import DesignSession, apply_overrides
from designscout.config.settings import ConfigurationError
from designscout.core.models import SearchConfig
from designscout.registry.json_store import JsonRegistryStore
from designscout.sources.base_source import StaticImageSource
from designscout.sources.source_registry import SourceRegistry, UnknownSourceError


@pytest.fixture
def first_k_llm(mock_llm_client, oracle_reply):
    async def respond(**kwargs):
        k = int(re.search(r"best (\d+) images", kwargs["messages"][0].content).group(1))
        return oracle_reply(*range(1, k + 1))

    mock_llm_client.complete_with_vision = AsyncMock(side_effect=respond)
    return mock_llm_client


@pytest.fixture
def session(settings, first_k_llm) -> DesignSession:
    return DesignSession.create(settings, llm=first_k_llm, session_id="20260101_000000_facade01")


@pytest.fixture
def sources(make_candidates) -> SourceRegistry:
    return SourceRegistry(
        [
            StaticImageSource("dribbble", make_candidates(12, prefix="dribbble logo", source="dribbble")),
            StaticImageSource("behance", make_candidates(12, prefix="behance logo", source="behance")),
        ]
    )


class TestDesignSession:
    def test_create_starts_empty(self, session):
        assert len(session.registry) == 0
        assert session.registry.next_id == 1
        assert session.paths.grids_dir.is_dir()
        assert session.paths.reference_dir.is_dir()

    @pytest.mark.asyncio
    async def test_create_clears_existing_registry(self, settings, first_k_llm, png_writer, tmp_path):
        first = DesignSession.create(settings, llm=first_k_llm, session_id="20260101_000000_reuse001")
        await first.registry.register_image(str(png_writer(tmp_path / "x.png")), "generated", "draft")
        again = DesignSession.create(settings, llm=first_k_llm, session_id="20260101_000000_reuse001")
        assert len(again.registry) == 0
        assert again.registry.next_id == 1

    @pytest.mark.asyncio
    async def test_resume_keeps_ids(self, settings, first_k_llm, png_writer, tmp_path):
        first = DesignSession.create(settings, llm=first_k_llm, session_id="20260101_000000_resume01")
        draft = str(png_writer(tmp_path / "draft.png"))
        image_id = await first.registry.register_image(draft, "generated", "draft")

        resumed = DesignSession.resume("20260101_000000_resume01", settings, llm=first_k_llm)
        assert resumed.registry.get_id_by_ref(draft) == image_id
        assert resumed.registry.next_id == image_id + 1

    def test_json_backend_writes_under_metadata(self, session):
        store = JsonRegistryStore(session.paths.registry_json_path)
        assert store.load() is not None

    def test_overrides_applied(self, settings, first_k_llm):
        session = DesignSession.create(
            settings,
            llm=first_k_llm,
            overrides=SelectionOverrides(tournament_max_rounds=1, registry_backend="memory"),
        )
        assert session.settings.tournament_max_rounds == 1
        assert session.settings.registry_backend == "memory"


class TestApplyOverrides:
    def test_none_returns_same(self, settings):
        assert apply_overrides(settings, None) is settings

    def test_empty_returns_same(self, settings):
        assert apply_overrides(settings, SelectionOverrides()) is settings

    def test_inconsistent_override_rejected(self, settings):
        with pytest.raises(ConfigurationError):
            apply_overrides(settings, SelectionOverrides(per_source_top_k=12))


class TestSelectImages:
    @pytest.mark.asyncio
    async def test_two_sources_to_three(self, session, sources, first_k_llm):
        configs = [
            SearchConfig(source="dribbble", query="logo"),
            SearchConfig(source="behance", query="logo"),
        ]
        shortlist = await select_images(configs, 3, session=session, sources=sources, context="bakery")
        assert len(shortlist) == 3
        assert all(c.source == "dribbble" for c in shortlist)
        # 18 pooled: 2 pages in round 1, 1 page in round 2.
        assert first_k_llm.complete_with_vision.await_count == 3
        assert len(session.registry) == 18

    @pytest.mark.asyncio
    async def test_empty_configs_do_nothing(self, session, sources, first_k_llm):
        assert await select_images([], 3, session=session, sources=sources) == []
        first_k_llm.complete_with_vision.assert_not_called()
        assert len(session.registry) == 0

    @pytest.mark.asyncio
    async def test_small_pool_returned_unranked(self, session, sources, first_k_llm):
        configs = [SearchConfig(source="dribbble", query="logo", limit=2)]
        shortlist = await select_images(configs, 3, session=session, sources=sources)
        assert len(shortlist) == 2
        first_k_llm.complete_with_vision.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_non_positive_count(self, session, sources):
        with pytest.raises(ValueError):
            await select_images([SearchConfig(source="dribbble", query="x")], 0, session=session, sources=sources)

    @pytest.mark.asyncio
    async def test_unknown_source(self, session, sources):
        with pytest.raises(UnknownSourceError):
            await select_images([SearchConfig(source="pinterest", query="x")], 3, session=session, sources=sources)


class TestSelectImagesPerSource:
    @pytest.mark.asyncio
    async def test_two_sources_to_three(self, session, sources, first_k_llm):
        configs = [
            SearchConfig(source="dribbble", query="logo", limit=2),
            SearchConfig(source="behance", query="logo"),
        ]
        shortlist = await select_images_per_source(configs, 3, session=session, sources=sources)
        assert len(shortlist) == 3
        # Limit is forced to one grid per source.
        assert len(session.registry) == 18
        assert first_k_llm.complete_with_vision.await_count == 3

    @pytest.mark.asyncio
    async def test_union_fits(self, session, sources):
        configs = [
            SearchConfig(source="dribbble", query="logo"),
            SearchConfig(source="behance", query="logo"),
        ]
        shortlist = await select_images_per_source(configs, 9, session=session, sources=sources)
        assert len(shortlist) == 8
        assert {c.source for c in shortlist} == {"dribbble", "behance"}

    @pytest.mark.asyncio
    async def test_empty_configs_do_nothing(self, session, sources, first_k_llm):
        assert await select_images_per_source([], 3, session=session, sources=sources) == []
        first_k_llm.complete_with_vision.assert_not_called()
