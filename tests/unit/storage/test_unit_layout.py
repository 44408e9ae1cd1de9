# tests/unit/storage/test_unit_layout.py — v1
"""Tests for storage/layout.py and storage/session_manager.py."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from designscout.storage.layout import SessionPaths, session_root
from designscout.storage.session_manager import generate_session_id, prepare_session


class TestSessionPaths:
    def test_locations(self, tmp_path):
        paths = SessionPaths.for_session(tmp_path, "s1")
        assert paths.root == tmp_path / "s1"
        assert paths.registry_json_path == tmp_path / "s1" / "metadata" / "image-registry.json"
        assert paths.registry_db_path.name == "image-registry.db"
        assert paths.grids_dir == tmp_path / "s1" / "grids"
        assert paths.reference_dir == tmp_path / "s1" / "reference"

    def test_ensure_creates_dirs(self, tmp_path):
        paths = SessionPaths.for_session(tmp_path, "s1").ensure()
        assert paths.metadata_dir.is_dir()
        assert paths.grids_dir.is_dir()
        assert paths.reference_dir.is_dir()

    def test_session_root(self, tmp_path):
        assert session_root(tmp_path, "abc") == tmp_path / "abc"


class TestSessionManager:
    def test_generate_session_id_format(self):
        ts = datetime(2026, 3, 1, 9, 30, 5, tzinfo=timezone.utc)
        session_id = generate_session_id(ts)
        assert re.fullmatch(r"20260301_093005_[0-9a-f]{8}", session_id)

    def test_ids_are_unique(self):
        assert generate_session_id() != generate_session_id()

    def test_prepare_session_generates_id(self, tmp_path):
        session_id, paths = prepare_session(tmp_path)
        assert paths.root == tmp_path / session_id
        assert paths.grids_dir.is_dir()

    def test_prepare_session_reuses_id(self, tmp_path):
        session_id, paths = prepare_session(tmp_path, "named")
        assert session_id == "named"
        assert paths.reference_dir.is_dir()
