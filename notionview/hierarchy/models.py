"""Nodes of the page/database hierarchy and their cache entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from ..utils.ids import normalize_id


class NodeKind(str, Enum):
    PAGE = "page"
    DATABASE = "database"


@dataclass(frozen=True, eq=False)
class HierarchyNode:
    """A page or database in the tree. Two nodes are equal when their ids are."""

    id: str
    title: str
    kind: NodeKind = NodeKind.PAGE

    @property
    def key(self) -> str:
        return normalize_id(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HierarchyNode):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title, "type": self.kind.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HierarchyNode":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            kind=NodeKind(data.get("type") or NodeKind.PAGE.value),
        )


@dataclass(frozen=True)
class CacheEntry:
    timestamp: int
    data: tuple[HierarchyNode, ...] = field(default_factory=tuple)


def dedupe_nodes(nodes: list[HierarchyNode]) -> list[HierarchyNode]:
    """Drop repeated ids, keeping the first occurrence."""

    seen: set[str] = set()
    unique: list[HierarchyNode] = []
    for node in nodes:
        if node.key in seen:
            continue
        seen.add(node.key)
        unique.append(node)
    return unique


__all__ = ["CacheEntry", "HierarchyNode", "NodeKind", "dedupe_nodes"]
