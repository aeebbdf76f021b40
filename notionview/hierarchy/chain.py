"""Rebuild the path from the configured root down to a node via parent pointers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping

from ..markdown.page_meta import extract_database_title, extract_page_title
from ..notion.api_adapter import NotionAdapter, NotionFetchError
from ..utils.ids import normalize_id
from .models import HierarchyNode, NodeKind

DEFAULT_MAX_HOPS = 32


@dataclass(frozen=True)
class ParentPointer:
    """Where an object's ``parent`` field points."""

    type: str
    id: str | None = None

    @property
    def is_block(self) -> bool:
        return self.type == "block_id"


def parent_pointer(obj: Mapping[str, Any]) -> ParentPointer | None:
    """Read the ``parent`` of a page, database or block object.

    Data-source parents resolve to their database id. Workspace parents have
    no id, which ends a climb.
    """

    parent = obj.get("parent")
    if not isinstance(parent, Mapping):
        return None
    parent_type = str(parent.get("type") or "")
    if parent_type == "data_source_id":
        database_id = parent.get("database_id")
        return ParentPointer("database_id", str(database_id) if database_id else None)
    if parent_type in ("page_id", "database_id", "block_id"):
        value = parent.get(parent_type)
        return ParentPointer(parent_type, str(value) if value else None)
    return ParentPointer(parent_type or "workspace")


@dataclass(frozen=True)
class _Step:
    node: HierarchyNode
    parent: ParentPointer | None


class AncestorChainResolver:
    """Walk ``parent`` pointers upward until the root is reached.

    A successful walk is only a hint. Callers that need tree membership must
    confirm the path by enumerating children from the root downwards.
    """

    def __init__(
        self,
        adapter: NotionAdapter,
        *,
        item_cache: MutableMapping[str, HierarchyNode] | None = None,
        max_hops: int = DEFAULT_MAX_HOPS,
    ) -> None:
        self.adapter = adapter
        self.item_cache = item_cache if item_cache is not None else {}
        self.max_hops = max_hops
        self._steps: dict[str, _Step] = {}

    def forget(self) -> None:
        self._steps.clear()

    async def resolve_chain(self, node_id: str, root_id: str) -> list[HierarchyNode] | None:
        """Return the nodes from ``root_id`` down to ``node_id``, or ``None``.

        The walk fails when an object cannot be fetched, has no parent, repeats
        an id already visited, or needs more than ``max_hops`` steps. Block
        parents (content nested in toggles, columns, synced blocks) are climbed
        through but never appear in the chain.
        """

        root_key = normalize_id(root_id)
        chain: list[HierarchyNode] = []
        visited: set[str] = set()
        current = node_id

        for _ in range(self.max_hops):
            key = normalize_id(current)
            if key in visited:
                return None
            visited.add(key)

            step = await self._step(current)
            if step is None:
                return None
            chain.append(step.node)
            if key == root_key:
                chain.reverse()
                return chain

            parent_id = await self._climb_blocks(step.parent, visited)
            if parent_id is None:
                return None
            current = parent_id

        return None

    async def _step(self, object_id: str) -> _Step | None:
        key = normalize_id(object_id)
        memo = self._steps.get(key)
        if memo is not None:
            return memo

        hinted = self.item_cache.get(key)
        order = (NodeKind.PAGE, NodeKind.DATABASE)
        if hinted is not None and hinted.kind is NodeKind.DATABASE:
            order = (NodeKind.DATABASE, NodeKind.PAGE)

        for kind in order:
            try:
                obj = await self._fetch(kind, object_id)
            except NotionFetchError:
                continue
            title = (
                extract_database_title(obj)
                if kind is NodeKind.DATABASE
                else extract_page_title(obj)
            )
            if hinted is not None and hinted.kind is kind:
                node = hinted
            else:
                node = HierarchyNode(id=str(obj.get("id") or object_id), title=title, kind=kind)
            step = _Step(node=node, parent=parent_pointer(obj))
            self._steps[key] = step
            return step
        return None

    async def _fetch(self, kind: NodeKind, object_id: str) -> Mapping[str, Any]:
        if kind is NodeKind.DATABASE:
            return await self.adapter.fetch_database(object_id)
        return await self.adapter.fetch_page(object_id)

    async def _climb_blocks(
        self, pointer: ParentPointer | None, visited: set[str]
    ) -> str | None:
        """Follow block parents until a page or database id turns up."""

        while pointer is not None and pointer.is_block and pointer.id:
            block_key = normalize_id(pointer.id)
            if block_key in visited or len(visited) >= self.max_hops:
                return None
            visited.add(block_key)
            try:
                block = await self.adapter.fetch_block(pointer.id)
            except NotionFetchError:
                return None
            pointer = parent_pointer(block)

        if pointer is None or not pointer.id:
            return None
        return pointer.id


__all__ = [
    "AncestorChainResolver",
    "DEFAULT_MAX_HOPS",
    "ParentPointer",
    "parent_pointer",
]
