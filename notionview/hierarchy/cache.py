"""Two-layer (memory, disk) cache of each node's children."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from ..markdown.page_meta import extract_page_title
from ..notion.api_adapter import NotionAdapter
from ..storage.ttl_store import Clock, JsonTtlStore
from ..utils.ids import normalize_id
from ..utils.logging import NullLogger, WarningLogger
from .discovery import discover_children
from .models import CacheEntry, HierarchyNode, NodeKind, dedupe_nodes


def cache_key(kind: NodeKind | str, node_id: str) -> str:
    return f"{NodeKind(kind).value}-{normalize_id(node_id)}"


class HierarchyCache:
    """Children lookup that checks memory, then disk, then the API.

    Each layer that missed is filled on the way back. Entries older than the
    TTL count as misses in both layers, and every hit restamps the entry so
    frequently visited nodes stay fresh. ``NotionFetchError`` from the origin
    propagates and nothing is cached for that node.
    """

    def __init__(
        self,
        adapter: NotionAdapter,
        directory: Path,
        ttl_seconds: float,
        *,
        clock: Clock = time.time,
        logger: WarningLogger | None = None,
    ) -> None:
        self.adapter = adapter
        self.logger = logger or NullLogger()
        self._memory: dict[str, CacheEntry] = {}
        self._store = JsonTtlStore(
            directory, ttl_seconds, payload_key="data", clock=clock, logger=self.logger
        )

    @property
    def directory(self) -> Path:
        return self._store.directory

    async def get_children(self, kind: NodeKind | str, node_id: str) -> list[HierarchyNode]:
        key = cache_key(kind, node_id)

        entry = self._memory.get(key)
        if entry is not None:
            if not self._store.is_expired(entry.timestamp):
                self._remember(key, entry.data)
                return list(entry.data)
            del self._memory[key]

        cached = self._load_from_disk(key)
        if cached is not None:
            self._remember(key, cached)
            return list(cached)

        children = await self._fetch_from_origin(NodeKind(kind), node_id)
        self._remember(key, tuple(children))
        return children

    def invalidate(self, kind: NodeKind | str, node_id: str) -> None:
        key = cache_key(kind, node_id)
        self._memory.pop(key, None)
        self._store.delete(key)

    def clear_all(self) -> None:
        self._memory.clear()
        self._store.clear()

    def _remember(self, key: str, nodes: tuple[HierarchyNode, ...]) -> None:
        timestamp = self._store.save(key, [node.to_dict() for node in nodes])
        self._memory[key] = CacheEntry(timestamp=timestamp, data=nodes)

    def _load_from_disk(self, key: str) -> tuple[HierarchyNode, ...] | None:
        loaded = self._store.load(key)
        if loaded is None:
            return None
        _, data = loaded
        try:
            return tuple(_decode_nodes(data))
        except (AttributeError, KeyError, TypeError, ValueError):
            self._store.discard(key, "Cached children could not be decoded")
            return None

    async def _fetch_from_origin(self, kind: NodeKind, node_id: str) -> list[HierarchyNode]:
        if kind is NodeKind.DATABASE:
            rows = await self.adapter.fetch_database_rows(node_id)
            return dedupe_nodes(
                [
                    HierarchyNode(
                        id=str(row.get("id") or ""),
                        title=extract_page_title(row),
                        kind=NodeKind.PAGE,
                    )
                    for row in rows
                    if row.get("id")
                ]
            )
        blocks = await self.adapter.fetch_child_blocks(node_id)
        return discover_children(blocks, exclude_id=node_id)


def _decode_nodes(data: Any) -> list[HierarchyNode]:
    if not isinstance(data, list):
        raise TypeError("children payload must be a list")
    return [HierarchyNode.from_dict(item) for item in data]


__all__ = ["HierarchyCache", "cache_key"]
