# tests/unit/registry/test_unit_cleanup.py — v1
"""Tests for registry/cleanup.py — localizing remaining remote references."""

from __future__ import annotations

import httpx
import pytest

from designscout.registry.cleanup import cleanup_summary, localize_remote_references
from designscout.registry.downloader import ReferenceDownloader


def _transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if "broken" in request.url.path:
            return httpx.Response(500)
        return httpx.Response(200, content=b"jpegbytes")

    return httpx.MockTransport(handler)


class TestCleanupSummary:
    def test_counts(self, registry):
        registry.register_image_sync("https://a.example/1.jpg", "reference", "inspiration")
        registry.register_image_sync("/local/2.png", "reference", "inspiration")
        summary = cleanup_summary(registry)
        assert summary.total_images == 2
        assert summary.needs_download == 1
        assert summary.already_local == 1


class TestLocalizeRemoteReferences:
    @pytest.mark.asyncio
    async def test_downloads_and_relocates(self, registry, tmp_path):
        registry.register_image_sync("https://a.example/ok.jpg", "reference", "inspiration")
        registry.register_image_sync("https://a.example/broken.jpg", "reference", "inspiration")
        registry.register_image_sync("https://a.example/gen.png", "generated", "draft")

        downloader = ReferenceDownloader(tmp_path / "ref", transport=_transport())
        report = await localize_remote_references(registry, downloader, delay_s=0)

        assert report.checked == 2
        assert report.downloaded == [1]
        assert report.failed == [2]
        assert registry.get_image(1).path == str(tmp_path / "ref" / "1.jpg")
        assert registry.get_image(1).original_ref == "https://a.example/ok.jpg"
        assert registry.get_image(2).path == "https://a.example/broken.jpg"
        assert registry.get_image(3).path == "https://a.example/gen.png"

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, registry, tmp_path):
        report = await localize_remote_references(
            registry, ReferenceDownloader(tmp_path, transport=_transport()), delay_s=0
        )
        assert report.checked == 0
        assert report.downloaded == []
