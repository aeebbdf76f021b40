"""Disk cache of rendered documents keyed by page or database id."""
from __future__ import annotations

import time
from pathlib import Path

from ..markdown.converter import RenderResult
from ..utils.ids import normalize_id
from ..utils.logging import WarningLogger
from .ttl_store import Clock, JsonTtlStore


class PageCache:
    """Stores ``{timestamp, state}`` per document with sliding expiry."""

    def __init__(
        self,
        directory: Path,
        ttl_seconds: float,
        *,
        clock: Clock = time.time,
        logger: WarningLogger | None = None,
    ) -> None:
        self._store = JsonTtlStore(
            directory, ttl_seconds, payload_key="state", clock=clock, logger=logger
        )

    @property
    def directory(self) -> Path:
        return self._store.directory

    def load(self, document_id: str) -> RenderResult | None:
        """Return the cached render, refreshing its timestamp on a hit."""

        key = normalize_id(document_id)
        loaded = self._store.load(key)
        if loaded is None:
            return None
        _, state = loaded
        try:
            result = RenderResult.from_dict(state)
        except (AttributeError, KeyError, TypeError, ValueError):
            self._store.discard(key, "Cached page state could not be decoded")
            return None
        self._store.save(key, state)
        return result

    def save(self, document_id: str, result: RenderResult) -> None:
        self._store.save(normalize_id(document_id), result.to_dict())

    def delete(self, document_id: str) -> None:
        self._store.delete(normalize_id(document_id))

    def clear(self) -> None:
        self._store.clear()


__all__ = ["PageCache"]
