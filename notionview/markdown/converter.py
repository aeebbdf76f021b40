"""Convert whole pages and databases into a render result for the viewer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from ..notion.api_adapter import NotionAdapter
from ..utils.logging import NullLogger, WarningLogger
from .assembler import DocumentAssembler
from .elements import InlineDatabase, PageIcon, TableData, ViewKind
from .inline_tables import (
    PLACEHOLDER_PATTERN,
    describe_database,
    resolve_placeholders,
    table_to_markdown,
)
from .page_meta import (
    extract_cover_url,
    extract_database_description,
    extract_database_title,
    extract_icon,
    extract_page_title,
)
from .properties import extract_property_value


@dataclass(frozen=True)
class RenderResult:
    """Everything a viewer needs to paint one page or database."""

    title: str
    kind: str
    markdown: str
    cover_url: str | None = None
    icon: PageIcon | None = None
    description: str | None = None
    table_data: TableData | None = None
    view_kind: ViewKind | None = None
    date_property_name: str | None = None
    status_color_map: dict[str, str] | None = None
    inline_databases: tuple[InlineDatabase, ...] = field(default_factory=tuple)

    def expanded_markdown(self) -> str:
        """Markdown with inline database placeholders replaced by tables."""

        by_id = {database.database_id: database for database in self.inline_databases}

        def _expand(match: re.Match[str]) -> str:
            database = by_id.get(match.group(1))
            if database is None:
                return match.group(0)
            return f"**{database.title}**\n\n{table_to_markdown(database.table_data)}"

        text = PLACEHOLDER_PATTERN.sub(_expand, self.markdown)
        if self.table_data is not None:
            text = f"{text.rstrip()}\n\n{table_to_markdown(self.table_data)}\n"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "kind": self.kind,
            "markdown": self.markdown,
            "cover_url": self.cover_url,
            "icon": self.icon.to_dict() if self.icon else None,
            "description": self.description,
            "table_data": self.table_data.to_dict() if self.table_data else None,
            "view_kind": self.view_kind.value if self.view_kind else None,
            "date_property_name": self.date_property_name,
            "status_color_map": self.status_color_map,
            "inline_databases": [database.to_dict() for database in self.inline_databases],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderResult":
        table_data = data.get("table_data")
        view_kind = data.get("view_kind")
        return cls(
            title=str(data.get("title") or ""),
            kind=str(data.get("kind") or "page"),
            markdown=str(data.get("markdown") or ""),
            cover_url=data.get("cover_url"),
            icon=PageIcon.from_dict(data.get("icon")),
            description=data.get("description"),
            table_data=TableData.from_dict(table_data) if table_data else None,
            view_kind=ViewKind(view_kind) if view_kind else None,
            date_property_name=data.get("date_property_name"),
            status_color_map=data.get("status_color_map"),
            inline_databases=tuple(
                InlineDatabase.from_dict(item) for item in data.get("inline_databases") or ()
            ),
        )


def properties_markdown(page: Mapping[str, Any]) -> str:
    """Render non-title properties as ``**name**: value`` paragraphs."""

    properties = page.get("properties")
    if not isinstance(properties, Mapping):
        return ""
    lines = []
    for name, prop in properties.items():
        if not isinstance(prop, Mapping) or prop.get("id") == "title":
            continue
        value = extract_property_value(prop)
        if value:
            lines.append(f"**{name}**: {value}")
    return "\n\n".join(lines)


async def convert_page(
    page: Mapping[str, Any],
    adapter: NotionAdapter,
    *,
    logger: WarningLogger | None = None,
) -> RenderResult:
    """Render a page: title heading, assembled blocks, resolved inline tables.

    Database rows usually carry no blocks; their properties are listed instead.
    """

    active_logger = logger or NullLogger()
    page_id = str(page.get("id") or "")
    title = extract_page_title(page)
    blocks = await adapter.fetch_child_blocks(page_id)

    assembler = DocumentAssembler(adapter.fetch_child_blocks, logger=active_logger)
    body = await assembler.assemble(blocks)
    if not blocks:
        body = properties_markdown(page) or body

    resolved = await resolve_placeholders(
        f"# {title}\n\n{body}",
        adapter.fetch_database_rows,
        adapter.fetch_database_info,
        logger=active_logger,
    )
    return RenderResult(
        title=title,
        kind="page",
        markdown=resolved.markdown,
        cover_url=extract_cover_url(page),
        icon=extract_icon(page),
        inline_databases=resolved.inline_databases,
    )


async def convert_database(
    database: Mapping[str, Any], adapter: NotionAdapter
) -> RenderResult:
    """Render a full-page database as a title plus its table data."""

    database_id = str(database.get("id") or "")
    title = extract_database_title(database)
    rows = await adapter.fetch_database_rows(database_id)
    described = describe_database(database_id, title, rows)
    return RenderResult(
        title=title,
        kind="database",
        markdown=f"# {title}",
        cover_url=extract_cover_url(database),
        icon=extract_icon(database),
        description=extract_database_description(database),
        table_data=described.table_data,
        view_kind=described.view_kind,
        date_property_name=described.date_property_name,
        status_color_map=described.status_color_map or None,
    )


async def render_document(
    object_id: str,
    adapter: NotionAdapter,
    *,
    logger: WarningLogger | None = None,
) -> RenderResult:
    """Fetch ``object_id`` as a page, falling back to a database, and render it.

    Raises:
        NotionFetchError: If the id is neither an accessible page nor database.
    """

    kind, obj = await adapter.fetch_page_or_database(object_id)
    if kind == "database":
        return await convert_database(obj, adapter)
    return await convert_page(obj, adapter, logger=logger)


__all__ = [
    "RenderResult",
    "convert_database",
    "convert_page",
    "properties_markdown",
    "render_document",
]
