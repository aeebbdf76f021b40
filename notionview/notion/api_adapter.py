"""Notion adapter implementations and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Optional, TypeVar, cast

import httpx
from notion_client import AsyncClient
from notion_client.errors import HTTPResponseError, RequestTimeoutError
from notion_client.helpers import async_collect_paginated_api

from ..config import DEFAULT_NOTION_VERSION, Settings, load_settings
from ..markdown.page_meta import extract_database_title
from ..utils.ids import normalize_id

T = TypeVar("T")

PAGE_SIZE = 100


class NotConfiguredError(RuntimeError):
    """Raised when no Notion credentials are available."""


class NotionFetchError(RuntimeError):
    """Raised when a single remote call fails (missing object, wrong kind, network)."""


@dataclass(frozen=True)
class DatabaseInfo:
    is_inline: bool
    title: str


class NotionAdapter(ABC):
    """
    Abstract interface for reading content from Notion.

    The rest of the codebase never imports the SDK directly. This makes it easy
    to switch between the official async client and in-memory fakes for tests.
    Every method raises :class:`NotionFetchError` on failure.
    """

    @abstractmethod
    async def fetch_page(self, page_id: str) -> Dict[str, Any]:
        """Retrieve a page object."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_database(self, database_id: str) -> Dict[str, Any]:
        """Retrieve a database object."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_block(self, block_id: str) -> Dict[str, Any]:
        """Retrieve a single block object."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_child_blocks(self, block_id: str) -> List[Dict[str, Any]]:
        """Return every child block of ``block_id``, following pagination."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_database_rows(self, database_id: str) -> List[Dict[str, Any]]:
        """Return every row (page object) of a database, following pagination."""
        raise NotImplementedError

    async def fetch_database_info(self, database_id: str) -> DatabaseInfo:
        """Return whether a database is inline, plus its title."""

        database = await self.fetch_database(database_id)
        return DatabaseInfo(
            is_inline=bool(database.get("is_inline")),
            title=extract_database_title(database),
        )

    async def aclose(self) -> None:
        """Release network resources. Nothing to do by default."""

    async def fetch_page_or_database(self, object_id: str) -> tuple[str, Dict[str, Any]]:
        """
        Convenience method:
        - try ``object_id`` as a page
        - on failure try it as a database

        Returns:
            ``("page", obj)`` or ``("database", obj)``.

        Raises:
            NotionFetchError: If the id resolves as neither kind.
        """
        try:
            return "page", await self.fetch_page(object_id)
        except NotionFetchError:
            pass

        try:
            return "database", await self.fetch_database(object_id)
        except NotionFetchError as exc_db:
            raise NotionFetchError(
                f"{object_id} is not accessible as a page or a database. Verify the ID "
                "and that the integration is shared with it."
            ) from exc_db


def get_default_adapter(settings: Settings | None = None) -> NotionAdapter:
    """Return a functional adapter using the official Notion SDK.

    Args:
        settings: Resolved settings. Loaded from the environment when omitted.

    Returns:
        NotionAdapter: Configured adapter ready for reading.

    Raises:
        NotConfiguredError: If a Notion token is not provided via ``NOTION_TOKEN``.
    """

    active = settings or load_settings()
    if not active.is_configured:
        raise NotConfiguredError("NOTION_TOKEN is required to read content from Notion.")
    return NotionClientAdapter(token=active.token, notion_version=active.notion_version)


class NotionClientAdapter(NotionAdapter):
    """Adapter backed by the official Notion Python client."""

    def __init__(
        self,
        token: str,
        *,
        notion_version: str = DEFAULT_NOTION_VERSION,
        client: Optional[AsyncClient] = None,
    ) -> None:
        self.client = client or AsyncClient(auth=token, notion_version=notion_version)

    async def fetch_page(self, page_id: str) -> Dict[str, Any]:
        return await self._guarded(
            f"Retrieving page {page_id}",
            self.client.pages.retrieve(page_id=normalize_id(page_id)),
        )

    async def fetch_database(self, database_id: str) -> Dict[str, Any]:
        return await self._guarded(
            f"Retrieving database {database_id}",
            self.client.databases.retrieve(database_id=normalize_id(database_id)),
        )

    async def fetch_block(self, block_id: str) -> Dict[str, Any]:
        return await self._guarded(
            f"Retrieving block {block_id}",
            self.client.blocks.retrieve(block_id=normalize_id(block_id)),
        )

    async def fetch_child_blocks(self, block_id: str) -> List[Dict[str, Any]]:
        return await self._guarded(
            f"Listing children of {block_id}",
            async_collect_paginated_api(
                self.client.blocks.children.list,
                block_id=normalize_id(block_id),
                page_size=PAGE_SIZE,
            ),
        )

    async def fetch_database_rows(self, database_id: str) -> List[Dict[str, Any]]:
        path = f"databases/{normalize_id(database_id)}/query"

        async def _query(**kwargs: Any) -> Any:
            body = {key: value for key, value in kwargs.items() if value is not None}
            return await self.client.request(path=path, method="POST", body=body)

        return await self._guarded(
            f"Querying database {database_id}",
            async_collect_paginated_api(_query, page_size=PAGE_SIZE),
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    @staticmethod
    async def _guarded(action: str, call: Awaitable[T]) -> T:
        try:
            return cast(T, await call)
        except (HTTPResponseError, RequestTimeoutError, httpx.HTTPError) as exc:
            raise NotionFetchError(f"{action} failed: {exc}") from exc


__all__ = [
    "DatabaseInfo",
    "NotConfiguredError",
    "NotionAdapter",
    "NotionClientAdapter",
    "NotionFetchError",
    "get_default_adapter",
]
