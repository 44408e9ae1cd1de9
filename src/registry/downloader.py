# src/registry/downloader.py — v1
"""Reference image downloader.

Fetches remote references into the session reference directory under an
id-based name (``<id><ext>``) so later grids can load them from disk.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import httpx

from designscout.registry.models import DownloadResult

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)
_DEFAULT_EXTENSION = ".jpg"


def needs_download(ref: str) -> bool:
    """True for remote http(s) references."""
    return ref.startswith("http://") or ref.startswith("https://")


def image_extension(ref: str) -> str:
    """Image extension of a URL or path, ignoring the query string."""
    path = ref.split("?", 1)[0].split("#", 1)[0]
    match = _EXTENSION_RE.search(path)
    if match:
        return "." + match.group(1).lower()
    return _DEFAULT_EXTENSION


def expected_local_path(reference_dir: Path, image_id: int, ref: str) -> Path:
    """Where the reference with ``image_id`` is stored once localized."""
    return Path(reference_dir) / f"{image_id}{image_extension(ref)}"


class ReferenceDownloader:
    """Download remote references with httpx."""

    def __init__(
        self,
        reference_dir: Path,
        timeout_s: float = 30.0,
        user_agent: str = "Mozilla/5.0 (compatible; designscout/0.1)",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._reference_dir = Path(reference_dir)
        self._timeout = timeout_s
        self._user_agent = user_agent
        self._transport = transport

    @property
    def reference_dir(self) -> Path:
        return self._reference_dir

    async def download(self, url: str, image_id: int) -> DownloadResult:
        """Fetch ``url`` to ``<reference_dir>/<image_id><ext>``.

        Never raises for malformed URLs, network or HTTP failures; the result
        carries the error.
        """
        local_path = expected_local_path(self._reference_dir, image_id, url)

        if local_path.exists() and local_path.stat().st_size > 0:
            logger.debug("Reference #%d already downloaded: %s", image_id, local_path.name)
            return DownloadResult(
                original_url=url,
                local_path=str(local_path),
                success=True,
                size_bytes=local_path.stat().st_size,
            )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.content
        except httpx.HTTPStatusError as exc:
            logger.warning("HTTP error downloading %s: %s", url, exc)
            return DownloadResult(
                original_url=url,
                success=False,
                error=f"HTTP {exc.response.status_code}: {exc.response.reason_phrase}",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Request error downloading %s: %s", url, exc)
            return DownloadResult(
                original_url=url, success=False, error=f"Request failed: {exc}"
            )

        if not payload:
            logger.warning("Empty response body downloading %s", url)
            return DownloadResult(original_url=url, success=False, error="Empty response body")

        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            local_path.write_bytes(payload)
        except OSError as exc:
            logger.warning("Failed to write reference #%d to %s: %s", image_id, local_path, exc)
            return DownloadResult(original_url=url, success=False, error=str(exc))

        logger.info(
            "Downloaded reference #%d: %s (%.1fKB)",
            image_id, local_path.name, len(payload) / 1024,
        )
        return DownloadResult(
            original_url=url,
            local_path=str(local_path),
            success=True,
            size_bytes=len(payload),
        )
