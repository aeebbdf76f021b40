"""One-JSON-file-per-key store with sliding time-to-live."""
from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Any, Callable

from ..utils.logging import NullLogger, WarningLogger

Clock = Callable[[], float]


class JsonTtlStore:
    """Persist ``{"timestamp": <epoch ms>, <payload_key>: payload}`` documents.

    An entry older than the TTL counts as missing and is deleted on sight. A TTL
    of zero disables expiry. Unreadable entries (bad JSON, missing timestamp,
    missing payload) are treated like misses and removed on a best-effort basis.
    """

    def __init__(
        self,
        directory: Path,
        ttl_seconds: float,
        *,
        payload_key: str,
        clock: Clock = time.time,
        logger: WarningLogger | None = None,
    ) -> None:
        self.directory = directory
        self.ttl_seconds = ttl_seconds
        self.payload_key = payload_key
        self._clock = clock
        self.logger = logger or NullLogger()

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def is_expired(self, timestamp_ms: int) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return self.now_ms() - timestamp_ms > self.ttl_seconds * 1000

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def load(self, key: str) -> tuple[int, Any] | None:
        """Return ``(timestamp, payload)`` for a fresh entry, else ``None``."""

        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            self._warn(key, f"Could not read cache entry: {exc}", "cache-io")
            return None

        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            self.discard(key, "Cache entry is not valid JSON")
            return None

        timestamp = document.get("timestamp") if isinstance(document, dict) else None
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool) or not timestamp:
            self.discard(key, "Cache entry has no valid timestamp")
            return None
        if self.payload_key not in document:
            self.discard(key, f"Cache entry has no '{self.payload_key}' field")
            return None

        if self.is_expired(int(timestamp)):
            self.delete(key)
            return None
        return int(timestamp), document[self.payload_key]

    def save(self, key: str, payload: Any) -> int:
        """Write ``payload`` stamped with the current time and return the stamp."""

        timestamp = self.now_ms()
        path = self.path_for(key)
        try:
            if not path.parent.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps({"timestamp": timestamp, self.payload_key: payload}, indent=2)
                + "\n",
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as exc:
            self._warn(key, f"Could not write cache entry: {exc}", "cache-io")
        return timestamp

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            self._warn(key, f"Could not delete cache entry: {exc}", "cache-io")

    def discard(self, key: str, reason: str) -> None:
        """Report an unreadable entry and delete it."""

        self._warn(key, reason, "cache-invalid")
        self.delete(key)

    def clear(self) -> None:
        if not self.directory.exists():
            return
        for path in self.directory.glob("*.json"):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                self._warn(path.stem, f"Could not delete cache entry: {exc}", "cache-io")

    def _warn(self, key: str, message: str, code: str) -> None:
        self.logger.warn(source=key, element_type="cache", message=message, code=code)


__all__ = ["Clock", "JsonTtlStore"]
