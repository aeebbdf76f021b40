"""Helpers for the different spellings of Notion object ids."""

from __future__ import annotations

import re
from urllib.parse import urlparse

_HEX_ID = re.compile(r"^[0-9a-f]{32}$")
_DASHED_ID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
_HEX_SEARCH = re.compile(r"([0-9a-f]{32})")


def normalize_id(raw_id: str) -> str:
    """Return ``raw_id`` without hyphens, lowercased, for comparisons."""

    return raw_id.strip().replace("-", "").lower()


def extract_page_id(value: str | None) -> str | None:
    """Extract the 32-character id from an id, dashed id, or notion.so URL.

    Matching ignores case. The returned id is lowercase.

    Examples:
        ``https://www.notion.so/My-Page-2f9b9a687adc80ce8d43e8af08803c85``
        ``https://www.notion.so/2f9b9a687adc80ce8d43e8af08803c85?v=...``
        ``2f9b9a68-7adc-80ce-8d43-e8af08803c85``

    Returns:
        The undashed id, or ``None`` when the input is not recognizable.
    """

    if not value or not isinstance(value, str):
        return None

    trimmed = value.strip().lower()
    if _HEX_ID.match(trimmed):
        return trimmed
    if _DASHED_ID.match(trimmed):
        return trimmed.replace("-", "")

    parsed = urlparse(trimmed)
    if parsed.scheme not in ("http", "https") or "notion.so" not in parsed.netloc:
        return None

    for part in (segment for segment in parsed.path.split("/") if segment):
        last_segment = part.split("-")[-1]
        if _HEX_ID.match(last_segment):
            return last_segment
        if _HEX_ID.match(part):
            return part

    match = _HEX_SEARCH.search(parsed.fragment)
    if match:
        return match.group(1)
    return None


__all__ = [
    "extract_page_id",
    "normalize_id",
]
