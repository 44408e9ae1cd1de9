# src/grid/image_loader.py — v1
"""Load grid cell images from data URLs, local files or remote URLs.

Any failure (malformed or unreachable URL, non-2xx status, zero-byte payload,
decode error, zero dimensions) returns None: the compositor drops that cell.
File reads and Pillow decoding run in worker threads.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
from pathlib import Path

import httpx
from PIL import Image, UnidentifiedImageError

from designscout.core.models import GridImageSource

logger = logging.getLogger(__name__)


def decode_image(data: bytes, label: str = "image") -> Image.Image | None:
    """Decode bytes into an RGB image flattened onto white."""
    if not data:
        logger.info("Skipping empty payload for %s", label)
        return None
    try:
        with Image.open(io.BytesIO(data)) as raw:
            raw.load()
            img = _flatten(raw)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.info("Failed to decode %s: %s", label, e)
        return None
    if img.width == 0 or img.height == 0:
        logger.info("Invalid image dimensions (%dx%d) for %s", img.width, img.height, label)
        return None
    return img


def decode_data_url(data_url: str) -> bytes | None:
    """Payload of a base64 ``data:image/...`` URL."""
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:image") or ";base64" not in header:
        return None
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        return None


def _flatten(img: Image.Image) -> Image.Image:
    if img.mode in ("RGBA", "LA", "P"):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")


def _read_local(path: str) -> bytes | None:
    if path.startswith("data:") or path.startswith("http://") or path.startswith("https://"):
        return None
    file_path = Path(path)
    try:
        if not file_path.is_file():
            return None
        if file_path.stat().st_size == 0:
            logger.info("Skipping empty file: %s", file_path.name)
            return b""
        return file_path.read_bytes()
    except OSError as e:
        logger.info("Failed to read %s: %s", path, e)
        return None


async def _fetch(url: str, client: httpx.AsyncClient) -> bytes | None:
    try:
        response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.info("Failed to fetch image from %s: %s", url, e)
        return None
    if response.status_code >= 400:
        logger.info("Failed to fetch image (%d): %s", response.status_code, url)
        return None
    return response.content


async def load_image(
    source: GridImageSource,
    client: httpx.AsyncClient,
    working_path: str | None = None,
) -> Image.Image | None:
    """Load one cell image.

    Resolution order: the source's data URL, a data-URL ref, the registry's
    working path when it is a local file, the ref as a local file, then the
    ref fetched over http(s).
    """
    label = source.title or source.ref

    data_url = source.data_url or (source.ref if source.ref.startswith("data:") else None)
    if data_url:
        return await asyncio.to_thread(decode_image, decode_data_url(data_url) or b"", label)

    for path in (working_path, source.ref):
        if not path:
            continue
        data = await asyncio.to_thread(_read_local, path)
        if data is not None:
            return await asyncio.to_thread(decode_image, data, label)

    for url in (working_path, source.ref):
        if url and (url.startswith("http://") or url.startswith("https://")):
            data = await _fetch(url, client)
            if data is None:
                return None
            return await asyncio.to_thread(decode_image, data, label)

    logger.info("Unknown image location: %s", source.ref)
    return None
