# src/logging/context.py — v1
"""Contextual logging support — attach session_id, strategy, round, page to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per selection session.
_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_strategy: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "strategy", default=None
)
_round: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "round", default=None
)
_page: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "page", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    session_id: str | None = None
    strategy: str | None = None
    round: int | None = None
    page: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        session_id=_session_id.get(),
        strategy=_strategy.get(),
        round=_round.get(),
        page=_page.get(),
    )


def set_session_context(session_id: str) -> None:
    """Set session-level context (called once per design session)."""
    _session_id.set(session_id)


def set_selection_context(strategy: str, round_number: int | None = None) -> None:
    """Set strategy-level context (called per selection round)."""
    _strategy.set(strategy)
    _round.set(round_number)


def set_page_context(page: str | None) -> None:
    """Set page-level context.

    asyncio tasks copy the current context on creation, so a page task can
    set this without leaking into sibling pages.
    """
    _page.set(page)


def clear_context() -> None:
    """Reset all context variables."""
    _session_id.set(None)
    _strategy.set(None)
    _round.set(None)
    _page.set(None)
