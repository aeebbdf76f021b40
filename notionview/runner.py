"""Entry points for running notionview operations."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from .config import Settings, load_settings
from .hierarchy.cache import HierarchyCache
from .hierarchy.models import HierarchyNode
from .hierarchy.provider import HierarchyProvider
from .markdown.converter import RenderResult, render_document
from .notion.api_adapter import NotionAdapter, get_default_adapter
from .storage.page_cache import PageCache
from .storage.ttl_store import JsonTtlStore
from .utils.ids import extract_page_id
from .utils.logging import WarningLogger

T = TypeVar("T")


@dataclass
class TreeBranch:
    """A node and the part of its subtree that was expanded."""

    node: HierarchyNode
    children: list["TreeBranch"] = field(default_factory=list)


def require_notion_id(value: str) -> str:
    """Return the 32-hex id inside ``value``.

    Raises:
        ValueError: If ``value`` is neither a Notion id nor a notion.so URL.
    """

    page_id = extract_page_id(value)
    if page_id is None:
        raise ValueError(f"'{value}' is not a Notion page id or URL.")
    return page_id


def run_render(
    document_id: str,
    *,
    fresh: bool = False,
    settings: Settings | None = None,
    adapter: NotionAdapter | None = None,
    logger: WarningLogger | None = None,
) -> RenderResult:
    """Render a page or database, going through the page cache.

    Args:
        document_id: Page/database id or notion.so URL.
        fresh: When True, skip the cached render and fetch from Notion.
        settings: Resolved settings. Loaded from the environment when omitted.
        adapter: Adapter to use instead of the default SDK-backed one.
        logger: Optional warning logger for render diagnostics.

    Returns:
        RenderResult: The rendered document.

    Raises:
        NotConfiguredError: If no adapter is given and no token is configured.
        NotionFetchError: If the id is not accessible as a page or database.
    """

    active_settings = settings or load_settings()
    active_logger = logger or WarningLogger("render")
    object_id = require_notion_id(document_id)
    page_cache = PageCache(
        active_settings.page_cache_dir,
        active_settings.cache_ttl_seconds,
        logger=active_logger,
    )

    if not fresh:
        cached = page_cache.load(object_id)
        if cached is not None:
            return cached

    active_adapter = adapter or get_default_adapter(active_settings)
    result = _run_with_adapter(
        active_adapter,
        lambda: render_document(object_id, active_adapter, logger=active_logger),
    )
    page_cache.save(object_id, result)
    return result


def run_tree(
    depth: int = 2,
    *,
    settings: Settings | None = None,
    adapter: NotionAdapter | None = None,
    logger: WarningLogger | None = None,
) -> list[TreeBranch]:
    """Expand the hierarchy from the configured root down to ``depth`` levels.

    Returns:
        list[TreeBranch]: The root branch, or an empty list when the root
        cannot be loaded.
    """

    active_settings = settings or load_settings()
    active_logger = logger or WarningLogger("tree")
    active_adapter = adapter or get_default_adapter(active_settings)
    provider = build_provider(active_settings, active_adapter, active_logger)

    async def _expand(node: HierarchyNode, remaining: int) -> TreeBranch:
        branch = TreeBranch(node=node)
        if remaining <= 0:
            return branch
        for child in await provider.get_children(node):
            branch.children.append(await _expand(child, remaining - 1))
        return branch

    async def _walk() -> list[TreeBranch]:
        return [await _expand(root, depth) for root in await provider.get_children()]

    return _run_with_adapter(active_adapter, _walk)


def run_locate(
    document_id: str,
    *,
    settings: Settings | None = None,
    adapter: NotionAdapter | None = None,
    logger: WarningLogger | None = None,
) -> Optional[list[HierarchyNode]]:
    """Return the confirmed path from the root to ``document_id``.

    Returns:
        The nodes from root to target, or ``None`` when the target is not
        reachable below the configured root.
    """

    active_settings = settings or load_settings()
    active_logger = logger or WarningLogger("locate")
    object_id = require_notion_id(document_id)
    active_adapter = adapter or get_default_adapter(active_settings)
    provider = build_provider(active_settings, active_adapter, active_logger)

    async def _locate() -> Optional[list[HierarchyNode]]:
        node = await provider.ensure_visible(object_id)
        if node is None:
            return None
        path = [node]
        parent = provider.get_parent(node)
        while parent is not None:
            path.append(parent)
            parent = provider.get_parent(parent)
        path.reverse()
        return path

    return _run_with_adapter(active_adapter, _locate)


def run_clear_cache(settings: Settings | None = None) -> None:
    """Remove every hierarchy and page cache entry."""

    active_settings = settings or load_settings()
    PageCache(active_settings.page_cache_dir, active_settings.cache_ttl_seconds).clear()
    JsonTtlStore(
        active_settings.hierarchy_cache_dir,
        active_settings.cache_ttl_seconds,
        payload_key="data",
    ).clear()


def build_provider(
    settings: Settings, adapter: NotionAdapter, logger: WarningLogger
) -> HierarchyProvider:
    cache = HierarchyCache(
        adapter,
        settings.hierarchy_cache_dir,
        settings.cache_ttl_seconds,
        logger=logger,
    )
    return HierarchyProvider(adapter, cache, root_page=settings.root_page, logger=logger)


def _run_with_adapter(
    adapter: NotionAdapter, operation: Callable[[], Awaitable[T]]
) -> T:
    async def _main() -> T:
        try:
            return await operation()
        finally:
            await adapter.aclose()

    return asyncio.run(_main())


__all__ = [
    "TreeBranch",
    "build_provider",
    "require_notion_id",
    "run_clear_cache",
    "run_locate",
    "run_render",
    "run_tree",
]
