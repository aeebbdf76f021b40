"""Settings loaded from the environment (and an optional local ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping

DEFAULT_TTL_DAYS = 7.0
DEFAULT_NOTION_VERSION = "2022-06-28"
SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration for the viewer."""

    token: str | None
    root_page: str | None
    cache_ttl_days: float = DEFAULT_TTL_DAYS
    cache_dir: Path = Path.home() / ".cache" / "notionview"
    notion_version: str = DEFAULT_NOTION_VERSION

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    @property
    def cache_ttl_seconds(self) -> float:
        """TTL in seconds; ``0`` disables expiry."""

        return self.cache_ttl_days * SECONDS_PER_DAY

    @property
    def hierarchy_cache_dir(self) -> Path:
        return self.cache_dir / "notion-cache"

    @property
    def page_cache_dir(self) -> Path:
        return self.cache_dir / "page-cache"


def load_env_file(path: Path, environ: MutableMapping[str, str] | None = None) -> None:
    """Populate ``environ`` from a simple KEY=VALUE file without overriding."""

    target = os.environ if environ is None else environ
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        target.setdefault(key, value)


def load_settings(
    environ: Mapping[str, str] | None = None, *, env_file: Path | None = None
) -> Settings:
    """Build :class:`Settings` from environment variables.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ`` after loading
            ``.env`` from the current directory.
        env_file: Explicit ``.env`` path to merge before reading.

    Returns:
        Settings: The resolved configuration.

    Raises:
        ValueError: If ``NOTION_CACHE_TTL_DAYS`` is not a non-negative number.
    """

    if environ is None:
        load_env_file(env_file or Path.cwd() / ".env")
        source: Mapping[str, str] = os.environ
    else:
        merged = dict(environ)
        if env_file is not None:
            load_env_file(env_file, merged)
        source = merged

    raw_ttl = source.get("NOTION_CACHE_TTL_DAYS", "").strip()
    ttl_days = DEFAULT_TTL_DAYS
    if raw_ttl:
        try:
            ttl_days = float(raw_ttl)
        except ValueError as exc:
            raise ValueError(
                f"NOTION_CACHE_TTL_DAYS must be a number of days, got {raw_ttl!r}."
            ) from exc
        if ttl_days < 0:
            raise ValueError("NOTION_CACHE_TTL_DAYS cannot be negative.")

    cache_dir_raw = source.get("NOTIONVIEW_CACHE_DIR", "").strip()
    cache_dir = (
        Path(cache_dir_raw).expanduser()
        if cache_dir_raw
        else Path.home() / ".cache" / "notionview"
    )

    return Settings(
        token=source.get("NOTION_TOKEN", "").strip() or None,
        root_page=(
            source.get("NOTION_ROOT_PAGE", "").strip()
            or source.get("NOTION_ROOT_PAGE_ID", "").strip()
            or None
        ),
        cache_ttl_days=ttl_days,
        cache_dir=cache_dir,
        notion_version=source.get("NOTION_VERSION", "").strip() or DEFAULT_NOTION_VERSION,
    )


__all__ = ["Settings", "load_env_file", "load_settings"]
