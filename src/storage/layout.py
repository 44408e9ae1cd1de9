# src/storage/layout.py — v1
"""Session directory structure definition.

Every design session owns one directory under the output root:

    {output_root}/{session_id}/
        metadata/image-registry.json   registry snapshot (json backend)
        metadata/image-registry.db     registry tables (sqlite backend)
        grids/                         composed grid renders
        reference/                     downloaded references, named <id><ext>
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

METADATA_DIR = "metadata"
GRIDS_DIR = "grids"
REFERENCE_DIR = "reference"

REGISTRY_JSON = "image-registry.json"
REGISTRY_DB = "image-registry.db"


def session_root(output_root: Path, session_id: str) -> Path:
    """Return root directory for a session."""
    return Path(output_root).expanduser() / session_id


@dataclass(frozen=True)
class SessionPaths:
    """Resolved session-scoped storage locations."""

    root: Path

    @classmethod
    def for_session(cls, output_root: Path, session_id: str) -> SessionPaths:
        return cls(root=session_root(output_root, session_id))

    @property
    def metadata_dir(self) -> Path:
        return self.root / METADATA_DIR

    @property
    def grids_dir(self) -> Path:
        return self.root / GRIDS_DIR

    @property
    def reference_dir(self) -> Path:
        return self.root / REFERENCE_DIR

    @property
    def registry_json_path(self) -> Path:
        return self.metadata_dir / REGISTRY_JSON

    @property
    def registry_db_path(self) -> Path:
        return self.metadata_dir / REGISTRY_DB

    def ensure(self) -> SessionPaths:
        """Create all standard directories for the session."""
        for directory in (self.metadata_dir, self.grids_dir, self.reference_dir):
            directory.mkdir(parents=True, exist_ok=True)
        return self
