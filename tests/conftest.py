# tests/conftest.py — v1
"""Shared test fixtures for all unit tests.

Provides mock vision clients, Pillow-generated images, candidate factories
and temp session directories. No network: remote fetches go through httpx
MockTransport.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from designscout.config.settings import Settings
from designscout.core.models import CandidateImage
from designscout.llm.models import LLMResponse
from designscout.registry.image_registry import ImageRegistry
from designscout.registry.memory_store import MemoryRegistryStore
from designscout.storage.layout import SessionPaths


def selection_response(*positions: int) -> LLMResponse:
    """LLMResponse carrying a canonical best_images payload."""
    content = json.dumps(
        {"best_images": [{"number": p, "reason": f"pick {p}"} for p in positions]}
    )
    return LLMResponse(
        content=content,
        input_tokens=1200,
        output_tokens=40,
        model="claude-sonnet-4-20250514",
        provider="anthropic",
        latency_ms=300,
    )


def write_png(path: Path, size: tuple[int, int] = (60, 40), color=(200, 30, 30)) -> Path:
    """Write a solid-colour PNG and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format="PNG")
    return path


# === FIXTURES: Settings & paths ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from any .env, writing under tmp_path."""
    return Settings(_env_file=None, output_root=tmp_path / "output")


@pytest.fixture
def session_paths(tmp_path: Path) -> SessionPaths:
    """Created directories of a test session."""
    return SessionPaths.for_session(tmp_path / "output", "20260101_120000_test0001").ensure()


# === FIXTURES: Registry ===


@pytest.fixture
def memory_store() -> MemoryRegistryStore:
    return MemoryRegistryStore()


@pytest.fixture
def registry(memory_store: MemoryRegistryStore) -> ImageRegistry:
    """Registry without reference localization."""
    return ImageRegistry(memory_store)


# === FIXTURES: Images & candidates ===


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    out = tmp_path / "images"
    out.mkdir()
    return out


@pytest.fixture
def make_candidates(image_dir: Path):
    """Factory: ``n`` candidates backed by real PNG files."""

    def _make(n: int, prefix: str = "img", source: str = "dribbble") -> list[CandidateImage]:
        candidates = []
        for i in range(n):
            path = write_png(image_dir / f"{prefix}_{i}.png", color=(i * 10 % 256, 80, 160))
            candidates.append(
                CandidateImage(
                    page_url=f"https://{source}.example/{prefix}/{i}",
                    title=f"{prefix} {i}",
                    screenshot_ref=str(path),
                    source=source,
                )
            )
        return candidates

    return _make


# === FIXTURES: Mock LLM ===


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    """Oracle answer picking positions 1 and 2."""
    return selection_response(1, 2)


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock BaseLLMClient with default response."""
    client = AsyncMock()
    client.complete_with_vision = AsyncMock(return_value=mock_llm_response)
    client.supports_vision = True
    client.provider_name = "mock"
    return client


@pytest.fixture
def oracle_reply():
    """Factory: LLMResponse selecting the given grid positions."""
    return selection_response


@pytest.fixture
def png_writer():
    """Factory: write a solid-colour PNG."""
    return write_png
