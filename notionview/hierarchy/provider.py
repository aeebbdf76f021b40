"""Tree of pages and databases below the configured root."""

from __future__ import annotations

from ..notion.api_adapter import NotConfiguredError, NotionAdapter, NotionFetchError
from ..markdown.page_meta import extract_database_title, extract_page_title
from ..utils.ids import extract_page_id, normalize_id
from ..utils.logging import NullLogger, WarningLogger
from .cache import HierarchyCache
from .chain import AncestorChainResolver
from .models import HierarchyNode, NodeKind


class HierarchyProvider:
    """Lazily expanded tree with parent tracking and reveal-by-id.

    ``get_children()`` without a node returns the root itself. Children of
    every node go through :class:`HierarchyCache`. Failing remote calls are
    reported and produce an empty list, except a missing token, which raises
    :class:`NotConfiguredError`.
    """

    def __init__(
        self,
        adapter: NotionAdapter | None,
        cache: HierarchyCache | None,
        *,
        root_page: str | None,
        logger: WarningLogger | None = None,
        resolver: AncestorChainResolver | None = None,
    ) -> None:
        self.adapter = adapter
        self.cache = cache
        self.root_id = extract_page_id(root_page) if root_page else None
        self.logger = logger or NullLogger()
        self._parents: dict[str, HierarchyNode] = {}
        self._items: dict[str, HierarchyNode] = {}
        if resolver is None and adapter is not None:
            resolver = AncestorChainResolver(adapter, item_cache=self._items)
        self.resolver = resolver

    async def get_children(self, node: HierarchyNode | None = None) -> list[HierarchyNode]:
        adapter, cache = self._require_configured()
        if node is None:
            root = await self._fetch_root(adapter)
            return [root] if root is not None else []

        try:
            children = await cache.get_children(node.kind, node.id)
        except NotionFetchError as exc:
            self._warn(node.id, node.kind.value, f"Could not list children: {exc}")
            return []

        for child in children:
            self._items[child.key] = child
            self._parents[child.key] = node
        return children

    def get_parent(self, node: HierarchyNode) -> HierarchyNode | None:
        return self._parents.get(node.key)

    def get_item(self, node_id: str) -> HierarchyNode | None:
        return self._items.get(normalize_id(node_id))

    def refresh(self) -> None:
        """Forget everything, including the disk cache."""

        self._parents.clear()
        self._items.clear()
        if self.resolver is not None:
            self.resolver.forget()
        if self.cache is not None:
            self.cache.clear_all()

    def refresh_item(self, node_id: str) -> HierarchyNode | None:
        """Drop the cached children of one node so the next expansion refetches."""

        if self.cache is not None:
            for kind in NodeKind:
                self.cache.invalidate(kind, node_id)
        return self.get_item(node_id)

    async def ensure_visible(self, node_id: str) -> HierarchyNode | None:
        """Make ``node_id`` reachable from the root and return its tree node.

        Already-expanded nodes are returned directly. Otherwise the ancestor
        chain is resolved upward, then every step is confirmed by expanding
        the tree from the root. ``None`` means the node is not (yet) in the
        tree below the root, which is not an error.
        """

        self._require_configured()
        known = self.get_item(node_id)
        if known is not None:
            return known
        if not self.root_id or self.resolver is None:
            return None

        chain = await self.resolver.resolve_chain(node_id, self.root_id)
        if not chain:
            return None

        roots = await self.get_children()
        if not roots or roots[0].key != chain[0].key:
            return None

        current = roots[0]
        for expected in chain[1:]:
            children = await self.get_children(current)
            match = next((child for child in children if child.key == expected.key), None)
            if match is None:
                return None
            current = match
        return current

    def _require_configured(self) -> tuple[NotionAdapter, HierarchyCache]:
        if self.adapter is None or self.cache is None:
            raise NotConfiguredError(
                "Notion is not configured. Set NOTION_TOKEN to browse the hierarchy."
            )
        return self.adapter, self.cache

    async def _fetch_root(self, adapter: NotionAdapter) -> HierarchyNode | None:
        if not self.root_id:
            self._warn("root", "page", "No root page configured (NOTION_ROOT_PAGE)")
            return None
        try:
            kind, obj = await adapter.fetch_page_or_database(self.root_id)
        except NotionFetchError as exc:
            self._warn(self.root_id, "page", f"Could not load the root page: {exc}")
            return None

        if kind == NodeKind.DATABASE.value:
            root = HierarchyNode(
                id=self.root_id, title=extract_database_title(obj), kind=NodeKind.DATABASE
            )
        else:
            root = HierarchyNode(id=self.root_id, title=extract_page_title(obj))
        self._items[root.key] = root
        return root

    def _warn(self, source: str, element_type: str, message: str) -> None:
        self.logger.warn(
            source=source,
            element_type=element_type,
            message=message,
            code="origin-fetch-failed",
        )


__all__ = ["HierarchyProvider"]
