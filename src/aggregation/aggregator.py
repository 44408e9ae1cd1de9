# src/aggregation/aggregator.py — v1
"""Result aggregator — merge per-source candidate lists into one unique pool.

Decision flow per candidate:
  1. No screenshot_ref and no thumbnail_ref → dropped (invalid)
  2. Canonical key already seen → dropped (duplicate)
  3. Otherwise → appended, preserving source/discovery order
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from designscout.core.models import CandidateImage

logger = logging.getLogger(__name__)


def canonical_key(candidate: CandidateImage) -> str:
    """Key deciding whether two candidates are the same image."""
    return candidate.canonical_key


def is_valid_candidate(candidate: CandidateImage) -> bool:
    """A candidate needs at least one image reference to be gridded."""
    return bool(candidate.screenshot_ref or candidate.thumbnail_ref)


def dedupe_candidates(candidates: Iterable[CandidateImage]) -> list[CandidateImage]:
    """Drop later candidates whose canonical key was already seen."""
    seen: set[str] = set()
    unique: list[CandidateImage] = []
    for candidate in candidates:
        key = canonical_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def aggregate_candidates(
    candidate_lists: Iterable[Iterable[CandidateImage]],
) -> list[CandidateImage]:
    """Concatenate, validate and deduplicate candidate lists.

    Args:
        candidate_lists: One list per source (or per source/query pair),
            in the order the sources were requested.

    Returns:
        Ordered pool of unique valid candidates, first occurrence wins.
    """
    merged: list[CandidateImage] = []
    invalid = 0
    for candidates in candidate_lists:
        for candidate in candidates:
            if is_valid_candidate(candidate):
                merged.append(candidate)
            else:
                invalid += 1

    pool = dedupe_candidates(merged)
    logger.info(
        "Aggregated pool: %d unique of %d valid candidates (%d invalid dropped)",
        len(pool), len(merged), invalid,
    )
    return pool
