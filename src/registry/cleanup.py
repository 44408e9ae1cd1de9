# src/registry/cleanup.py — v1
"""Localize references that are still registered under a remote URL.

Registration downloads best-effort; a reference whose download failed keeps
its URL as working path. This pass retries those downloads later in the
session, e.g. before handing references to a generation backend.
"""

from __future__ import annotations

import asyncio
import logging

from designscout.registry.downloader import ReferenceDownloader, needs_download
from designscout.registry.image_registry import ImageRegistry
from designscout.registry.models import CleanupReport, CleanupSummary

logger = logging.getLogger(__name__)


def cleanup_summary(registry: ImageRegistry) -> CleanupSummary:
    """Count registered references that still need a download."""
    remote = sum(
        1 for img in registry.images if img.kind == "reference" and needs_download(img.path)
    )
    return CleanupSummary(
        total_images=len(registry),
        needs_download=remote,
        already_local=len(registry) - remote,
    )


async def localize_remote_references(
    registry: ImageRegistry,
    downloader: ReferenceDownloader,
    delay_s: float = 0.2,
) -> CleanupReport:
    """Download every still-remote reference and repoint its id.

    Downloads run one at a time with a short pause to stay polite to hosts.
    """
    report = CleanupReport()
    pending = [
        img for img in registry.images if img.kind == "reference" and needs_download(img.path)
    ]
    report.checked = len(pending)
    logger.info("Checking %d remote references", len(pending))

    for index, image in enumerate(pending):
        result = await downloader.download(image.path, image.id)
        if result.success:
            registry.relocate(image.id, result.local_path)
            report.downloaded.append(image.id)
        else:
            logger.warning("Reference #%d still remote: %s", image.id, result.error)
            report.failed.append(image.id)
        if delay_s and index < len(pending) - 1:
            await asyncio.sleep(delay_s)

    logger.info(
        "Reference cleanup complete: %d downloaded, %d failed",
        len(report.downloaded), len(report.failed),
    )
    return report
