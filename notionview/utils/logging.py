"""Lightweight logging utilities for render and cache diagnostics."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

WARN_CODES = {
    "unsupported-block": "W001",
    "child-fetch-failed": "W002",
    "inline-table-fallback": "W003",
    "cache-invalid": "W004",
    "cache-io": "W005",
    "origin-fetch-failed": "W006",
}


@dataclass(frozen=True)
class WarningEntry:
    """Captured diagnostic with minimal metadata."""

    source: str
    element_type: str
    message: str
    code: str

    def format(self) -> str:
        return f"{self.source} [{self.code}][{self.element_type}] {self.message}"


class WarningLogger:
    """Collect diagnostics and write them to a timestamped log file."""

    def __init__(self, run_name: str, *, log_dir: Path | None = None) -> None:
        sanitized = re.sub(r"[^A-Za-z0-9_-]", "_", run_name) or "notionview"
        timestamp = datetime.now().strftime("%Y-%m-%d-%H%M")
        self.log_path = (log_dir or Path("logs")) / f"{sanitized}_{timestamp}.log"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._warnings: List[WarningEntry] = []

    @property
    def warnings(self) -> list[WarningEntry]:
        return list(self._warnings)

    def warn(
        self,
        *,
        source: str,
        element_type: str,
        message: str,
        code: str,
    ) -> None:
        entry = WarningEntry(
            source=source,
            element_type=element_type,
            message=message,
            code=WARN_CODES.get(code, code),
        )
        self._warnings.append(entry)
        with self.log_path.open("a", encoding="utf-8") as handle:
            handle.write(f"{entry.format()}\n")

    def codes(self) -> list[str]:
        return [entry.code for entry in self._warnings]

    def summary(self) -> str:
        return f"Found {len(self._warnings)} warnings. See {self.log_path.name}"

    def has_warnings(self) -> bool:
        return bool(self._warnings)


class NullLogger(WarningLogger):
    """Logger that keeps warnings in memory without touching the filesystem."""

    def __init__(self) -> None:
        self.log_path = Path("/dev/null")
        self._warnings: list[WarningEntry] = []

    def warn(
        self,
        *,
        source: str,
        element_type: str,
        message: str,
        code: str,
    ) -> None:
        self._warnings.append(
            WarningEntry(
                source=source,
                element_type=element_type,
                message=message,
                code=WARN_CODES.get(code, code),
            )
        )

    def summary(self) -> str:
        return f"Found {len(self._warnings)} warnings."


def render_summary(logger: WarningLogger) -> str:
    """Return a human-readable summary of captured warnings."""

    return logger.summary()


__all__ = ["WarningLogger", "WarningEntry", "render_summary", "NullLogger", "WARN_CODES"]
