# src/oracle/response_parser.py — v1
"""Tolerant parser for ranking oracle responses.

The oracle is asked for ``{"best_images": [{"number", "reason"}]}`` but models
drift: they wrap JSON in code fences or prose, rename the envelope, or answer
with a bare list. Strategies are tried in priority order on the decoded
payload; bare integers are scraped from the text only when no JSON payload
could be decoded at all. Unrecoverable responses yield ``[]``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from typing import Any

from designscout.core.models import OraclePick

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_INT_RE = re.compile(r"\b\d+\b")

_POSITION_KEYS = ("number", "position", "image_number", "rank")
_REASON_KEYS = ("reason", "rationale", "explanation")

Strategy = Callable[[Any], list[OraclePick] | None]


# --- Payload extraction ---


def _balanced_span(text: str, start: int) -> str | None:
    """Substring from ``text[start]`` to its matching bracket, string aware."""
    opening = text[start]
    closing = "}" if opening == "{" else "]"
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def _first_decoded_span(text: str, opening: str) -> Any | None:
    """First balanced ``opening``-delimited span of ``text`` that decodes.

    An object sitting right after ``[`` is tried as part of the enclosing
    array first, so a prose-wrapped list of pick objects stays a list.
    """
    for index, char in enumerate(text):
        if char != opening:
            continue
        starts = [index]
        if opening == "{":
            before = text[:index].rstrip()
            if before.endswith("["):
                starts.insert(0, len(before) - 1)
        for start in starts:
            span = _balanced_span(text, start)
            if span is None:
                continue
            try:
                return json.loads(span)
            except ValueError:
                continue
    return None


def extract_json_payload(text: str) -> Any | None:
    """Decode the structured payload embedded in ``text``.

    Code-fenced blocks win, then the whole text. Otherwise the first balanced
    object that decodes is used; arrays are tried only when no object decodes,
    so a bracketed aside such as ``Image [1]`` never shadows the answer.
    Returns None when nothing decodes.
    """
    if not text:
        return None

    for match in _FENCE_RE.finditer(text):
        try:
            return json.loads(match.group(1))
        except ValueError:
            continue

    stripped = text.strip()
    try:
        return json.loads(stripped)
    except ValueError:
        pass

    payload = _first_decoded_span(stripped, "{")
    if payload is not None:
        return payload
    return _first_decoded_span(stripped, "[")


# --- Strategies ---


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("#").isdigit():
        return int(value.strip().lstrip("#"))
    return None


def _pick_from_item(item: Any, keys: tuple[str, ...] = _POSITION_KEYS) -> OraclePick | None:
    """Read one pick from an int or an object carrying a position key."""
    number = _as_int(item)
    if number is not None:
        return OraclePick(number=number)
    if not isinstance(item, dict):
        return None
    for key in keys:
        number = _as_int(item.get(key))
        if number is not None:
            reason = next(
                (str(item[k]) for k in _REASON_KEYS if isinstance(item.get(k), str)), ""
            )
            return OraclePick(number=number, reason=reason)
    return None


def _picks_from_list(items: Any, keys: tuple[str, ...] = _POSITION_KEYS) -> list[OraclePick] | None:
    if not isinstance(items, list):
        return None
    picks = [pick for pick in (_pick_from_item(item, keys) for item in items) if pick]
    return picks


def _canonical(payload: Any) -> list[OraclePick] | None:
    """``{"best_images": [{"number": 2, "reason": "..."}]}``."""
    if isinstance(payload, dict) and isinstance(payload.get("best_images"), list):
        return _picks_from_list(payload["best_images"])
    return None


def _rankings(payload: Any) -> list[OraclePick] | None:
    """``{"rankings": [{"image_number": 2}, {"rank": 5}]}``."""
    if isinstance(payload, dict) and isinstance(payload.get("rankings"), list):
        return _picks_from_list(payload["rankings"], ("image_number", "rank", "number", "position"))
    return None


def _flat_envelope(payload: Any) -> list[OraclePick] | None:
    """``{"ranking": [..]}``, ``{"bestImages": [..]}`` or ``{"selected": [..]}``."""
    if not isinstance(payload, dict):
        return None
    for key in ("ranking", "bestImages", "selected"):
        if isinstance(payload.get(key), list):
            return _picks_from_list(payload[key])
    return None


def _bare_array(payload: Any) -> list[OraclePick] | None:
    """``[1, 4, 7]`` or ``[{"position": 1}, ...]``."""
    return _picks_from_list(payload) if isinstance(payload, list) else None


STRATEGIES: tuple[Strategy, ...] = (_canonical, _rankings, _flat_envelope, _bare_array)


def _free_text(text: str) -> list[OraclePick]:
    return [OraclePick(number=int(match)) for match in _INT_RE.findall(text)]


# --- Public API ---


def parse_oracle_response(text: str, total_count: int, pick_count: int) -> list[OraclePick]:
    """Recover grid picks from a raw oracle response.

    Args:
        text: Raw response content.
        total_count: Number of images in the grid; valid positions are 1..total.
        pick_count: Maximum number of picks to return.

    Returns:
        Valid, de-duplicated picks in response order (possibly empty).
    """
    if total_count <= 0 or pick_count <= 0:
        return []

    payload = extract_json_payload(text)
    raw: list[OraclePick] = []
    strategy_name = "none"

    if payload is not None:
        for strategy in STRATEGIES:
            picks = strategy(payload)
            if picks is not None:
                raw = picks
                strategy_name = strategy.__name__.lstrip("_")
                break
    elif text:
        raw = _free_text(text)
        strategy_name = "free_text"

    seen: set[int] = set()
    picks: list[OraclePick] = []
    for pick in raw:
        if not 1 <= pick.number <= total_count or pick.number in seen:
            continue
        seen.add(pick.number)
        picks.append(pick)
        if len(picks) >= pick_count:
            break

    if picks:
        logger.debug("Parsed %d picks via %s: %s", len(picks), strategy_name, [p.number for p in picks])
    else:
        logger.warning("No valid grid positions in oracle response: %.200r", text)
    return picks
