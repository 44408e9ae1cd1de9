# src/storage/session_manager.py — v1
"""Session lifecycle: id generation and directory preparation."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

from designscout.storage.layout import SessionPaths


def generate_session_id(timestamp: datetime | None = None) -> str:
    """Generate a session_id: yyyymmdd_hhmmss_{uuid4_short}."""
    ts = timestamp or datetime.now(timezone.utc)
    short_uuid = uuid.uuid4().hex[:8]
    return f"{ts.strftime('%Y%m%d_%H%M%S')}_{short_uuid}"


def prepare_session(output_root: Path, session_id: str | None = None) -> tuple[str, SessionPaths]:
    """Resolve and create the directories of a (new or named) session.

    Returns:
        Tuple of (session_id, paths).
    """
    session_id = session_id or generate_session_id()
    paths = SessionPaths.for_session(output_root, session_id).ensure()
    return session_id, paths
