"""Find the pages and databases a block points at.

The tree shows a page's children as the union of its child pages, child
databases, synced-block sources and the pages its text links to.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Sequence
from urllib.parse import urlparse

from ..markdown.elements import Block, BlockType, RichTextSpan
from ..markdown.page_meta import UNTITLED, UNTITLED_DATABASE
from ..utils.ids import normalize_id
from .models import HierarchyNode, NodeKind, dedupe_nodes

_LINKED_ID = re.compile(
    r"([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}|[0-9a-f]{32})"
)
_NOTION_HOSTS = ("notion.so", "notion.site")

TEXT_BLOCK_TYPES = frozenset(
    {
        BlockType.PARAGRAPH,
        BlockType.HEADING_1,
        BlockType.HEADING_2,
        BlockType.HEADING_3,
        BlockType.QUOTE,
        BlockType.BULLETED_LIST_ITEM,
        BlockType.NUMBERED_LIST_ITEM,
        BlockType.TO_DO,
        BlockType.TOGGLE,
        BlockType.CALLOUT,
    }
)


def _linked_page_id(href: str) -> str | None:
    trimmed = href.strip().lower()
    bare = _LINKED_ID.fullmatch(trimmed)
    if bare:
        return bare.group(1)
    parsed = urlparse(trimmed)
    host = parsed.netloc
    workspace_relative = not parsed.scheme and not host and trimmed.startswith("/")
    on_notion = any(host == name or host.endswith(f".{name}") for name in _NOTION_HOSTS)
    if not (workspace_relative or on_notion):
        return None
    match = _LINKED_ID.search(parsed.path)
    return match.group(1) if match else None


def _span_reference(span: RichTextSpan) -> HierarchyNode | None:
    if span.mention_target:
        kind = NodeKind.DATABASE if span.mention_kind == "database" else NodeKind.PAGE
        target = span.mention_target
    else:
        target = _linked_page_id(span.href) if span.href else None
        kind = NodeKind.PAGE
    if not target:
        return None
    return HierarchyNode(id=target, title=span.plain_text or target[:8], kind=kind)


def extract_page_references(spans: Iterable[RichTextSpan]) -> list[HierarchyNode]:
    """Pages and databases mentioned or linked from rich text, without repeats.

    Mentions keep their page or database kind. Links count when the href is a
    bare 32-hex or dashed id, a workspace-relative path, or a notion.so /
    notion.site URL carrying such an id. A mention's own href is not scanned.
    """

    references = [_span_reference(span) for span in spans]
    return dedupe_nodes([node for node in references if node is not None])


def extract_pages_and_databases(block: Block | Mapping[str, Any]) -> list[HierarchyNode]:
    """Return the nodes ``block`` contributes to its parent's child list."""

    if not isinstance(block, Block):
        block = Block.from_api(block)

    kind = block.kind
    if kind is BlockType.CHILD_PAGE:
        title = str(block.payload.get("title") or "") or UNTITLED
        return [HierarchyNode(id=block.id, title=title, kind=NodeKind.PAGE)]
    if kind is BlockType.CHILD_DATABASE:
        title = str(block.payload.get("title") or "") or UNTITLED_DATABASE
        return [HierarchyNode(id=block.id, title=title, kind=NodeKind.DATABASE)]
    if kind is BlockType.SYNCED_BLOCK:
        synced_from = block.payload.get("synced_from")
        if not isinstance(synced_from, Mapping) or not synced_from.get("block_id"):
            return []
        source_id = str(synced_from["block_id"])
        return [
            HierarchyNode(id=source_id, title=f"Synced: {source_id[:8]}", kind=NodeKind.PAGE)
        ]
    if kind in TEXT_BLOCK_TYPES:
        return extract_page_references(block.rich_text)
    return []


def discover_children(
    blocks: Sequence[Block | Mapping[str, Any]], *, exclude_id: str | None = None
) -> list[HierarchyNode]:
    """Scan a page's immediate blocks and return its child nodes in order.

    Args:
        blocks: Top-level blocks of the page.
        exclude_id: The page's own id, dropped when the page links to itself.
    """

    found: list[HierarchyNode] = []
    for block in blocks:
        found.extend(extract_pages_and_databases(block))
    if exclude_id:
        own_key = normalize_id(exclude_id)
        found = [node for node in found if node.key != own_key]
    return dedupe_nodes(found)


__all__ = [
    "TEXT_BLOCK_TYPES",
    "discover_children",
    "extract_page_references",
    "extract_pages_and_databases",
]
