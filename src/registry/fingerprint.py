# src/registry/fingerprint.py — v1
"""Content hash for grid renders: label plus the sorted set of image ids."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable


def normalize_id_set(image_ids: Iterable[int]) -> list[int]:
    """Sorted, de-duplicated id list."""
    return sorted(set(image_ids))


def grid_content_hash(grid_label: str, image_ids: Iterable[int]) -> str:
    """MD5 of ``"<label>-<id>,<id>,..."`` over the sorted id set.

    Order-insensitive: the same ids requested in a different order share a hash.
    """
    content = f"{grid_label}-{','.join(str(i) for i in normalize_id_set(image_ids))}"
    return hashlib.md5(content.encode("utf-8")).hexdigest()  # noqa: S324
