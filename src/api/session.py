# src/api/session.py — v1
"""Design session: one registry, one output tree, one oracle.

A session owns everything the selectors share. ``create`` starts from an
empty registry whose ids begin at 1; ``resume`` reloads the persisted
registry of an earlier session so its ids and cached grids stay valid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from designscout.api.models import SelectionOverrides
from designscout.config.settings import Settings, load_settings
from designscout.grid.compositor import GridCompositor
from designscout.llm.base_client import BaseLLMClient
from designscout.llm.client_factory import create_oracle_client
from designscout.logging.context import set_session_context
from designscout.oracle.selection_oracle import SelectionOracle
from designscout.registry.downloader import ReferenceDownloader
from designscout.registry.image_registry import ImageRegistry
from designscout.registry.store_factory import create_registry_store
from designscout.selection.per_source import PerSourceSelector
from designscout.selection.tournament import TournamentSelector
from designscout.storage.layout import SessionPaths
from designscout.storage.session_manager import prepare_session

logger = logging.getLogger(__name__)


@dataclass
class DesignSession:
    """Components shared by every selection run of one session."""

    session_id: str
    settings: Settings
    paths: SessionPaths
    registry: ImageRegistry
    compositor: GridCompositor
    oracle: SelectionOracle

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        llm: BaseLLMClient | None = None,
        session_id: str | None = None,
        overrides: SelectionOverrides | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> DesignSession:
        """Start a session with a freshly cleared registry.

        Args:
            settings: Global settings. Loaded from .env if None.
            llm: Vision client for the oracle. Built from settings if None.
            session_id: Reuse a session directory name; generated if None.
            overrides: Per-session setting overrides.
            transport: httpx transport for downloads and fetches (tests).
        """
        return cls._build(settings, llm, session_id, overrides, transport, fresh=True)

    @classmethod
    def resume(
        cls,
        session_id: str,
        settings: Settings | None = None,
        llm: BaseLLMClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> DesignSession:
        """Reopen an existing session, keeping its registry and grid cache."""
        return cls._build(settings, llm, session_id, None, transport, fresh=False)

    @classmethod
    def _build(
        cls,
        settings: Settings | None,
        llm: BaseLLMClient | None,
        session_id: str | None,
        overrides: SelectionOverrides | None,
        transport: httpx.AsyncBaseTransport | None,
        fresh: bool,
    ) -> DesignSession:
        settings = apply_overrides(settings or load_settings(), overrides)
        session_id, paths = prepare_session(settings.output_root, session_id)
        set_session_context(session_id)

        store = create_registry_store(settings, paths)
        downloader = ReferenceDownloader(
            paths.reference_dir,
            timeout_s=settings.download_timeout_s,
            user_agent=settings.http_user_agent,
            transport=transport,
        )
        if fresh:
            registry = ImageRegistry(
                store, paths.reference_dir, downloader, settings.registry_cross_category_policy,
            )
            registry.clear()
        else:
            registry = ImageRegistry.load(
                store, paths.reference_dir, downloader, settings.registry_cross_category_policy,
            )

        compositor = GridCompositor(
            registry,
            paths.grids_dir,
            cell_size=settings.grid_cell_size,
            columns=settings.grid_columns,
            max_images=settings.grid_page_size,
            fetch_timeout_s=settings.fetch_timeout_s,
            user_agent=settings.http_user_agent,
            transport=transport,
        )
        oracle = SelectionOracle(llm or create_oracle_client(settings), settings)

        logger.info(
            "%s design session %s (registry backend: %s, %d images)",
            "Started" if fresh else "Resumed",
            session_id, store.backend_name, len(registry),
        )
        return cls(
            session_id=session_id,
            settings=settings,
            paths=paths,
            registry=registry,
            compositor=compositor,
            oracle=oracle,
        )

    def tournament(self) -> TournamentSelector:
        return TournamentSelector(self.registry, self.compositor, self.oracle, self.settings)

    def per_source(self) -> PerSourceSelector:
        return PerSourceSelector(self.registry, self.compositor, self.oracle, self.settings)


def apply_overrides(settings: Settings, overrides: SelectionOverrides | None) -> Settings:
    """Apply per-session overrides if provided."""
    if overrides is None:
        return settings
    values = overrides.model_dump(exclude_none=True)
    if not values:
        return settings
    current = settings.model_dump()
    current.update(values)
    return Settings(**current)
