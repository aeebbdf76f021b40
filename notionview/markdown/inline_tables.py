"""Deferred expansion of databases embedded in a page.

The assembler cannot fetch rows while it walks blocks, so every child
database leaves a placeholder token in the text. This module scans the
assembled Markdown for those tokens, classifies each database as inline or
full-page, fetches rows for inline ones, and works out how the viewer should
present them (table, calendar, or timeline).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence

from ..notion.api_adapter import DatabaseInfo, NotionFetchError
from ..utils.logging import NullLogger, WarningLogger
from .elements import CellValue, DateRange, InlineDatabase, TableData, TableRow, ViewKind
from .properties import (
    escape_table_cell,
    extract_date_range,
    extract_property_value,
    extract_status,
)

PLACEHOLDER_PATTERN = re.compile(r"__PLACEHOLDER__([0-9A-Za-z-]+)__(.+?)__")

RowFetcher = Callable[[str], Awaitable[Sequence[Mapping[str, Any]]]]
DatabaseInfoFetcher = Callable[[str], Awaitable[DatabaseInfo]]


@dataclass(frozen=True)
class ResolvedDocument:
    markdown: str
    inline_databases: tuple[InlineDatabase, ...] = ()


def placeholder_token(database_id: str, title: str) -> str:
    """Return the token marking where a database's rows belong."""

    safe_title = re.sub(r"_+", "_", " ".join(title.split())).strip("_")
    return f"__PLACEHOLDER__{database_id}__{safe_title or 'Untitled Database'}__"


def database_link(database_id: str, title: str) -> str:
    return f"📋 [{title}](/{database_id})"


def _properties(row: Mapping[str, Any]) -> Mapping[str, Any]:
    properties = row.get("properties")
    return properties if isinstance(properties, Mapping) else {}


def _column_types(rows: Sequence[Mapping[str, Any]]) -> dict[str, str]:
    types: dict[str, str] = {}
    for row in rows:
        for name, prop in _properties(row).items():
            if name not in types and isinstance(prop, Mapping):
                types[name] = str(prop.get("type") or "")
    return types


def order_columns(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    """Column names with the title column first, the rest in natural order."""

    types = _column_types(rows)
    titles = [name for name, kind in types.items() if kind == "title"]
    return titles[:1] + [name for name in types if name not in titles[:1]]


def build_table_data(
    rows: Sequence[Mapping[str, Any]], columns: Sequence[str] | None = None
) -> TableData:
    """Project database rows onto ``columns``.

    Date columns produce :class:`DateRange` cells; everything else a string.
    """

    names = list(columns) if columns is not None else order_columns(rows)
    types = _column_types(rows)
    table_rows = []
    for row in rows:
        properties = _properties(row)
        cells: list[CellValue] = []
        for name in names:
            prop = properties.get(name)
            if types.get(name) == "date":
                cells.append(extract_date_range(prop))
            else:
                cells.append(extract_property_value(prop))
        table_rows.append(TableRow(id=str(row.get("id") or ""), cells=tuple(cells)))
    return TableData(columns=tuple(names), rows=tuple(table_rows))


def find_date_property(
    rows: Sequence[Mapping[str, Any]], columns: Sequence[str] | None = None
) -> str | None:
    """First date-typed column holding at least one start value."""

    types = _column_types(rows)
    for name in columns if columns is not None else order_columns(rows):
        if types.get(name) != "date":
            continue
        if any(extract_date_range(_properties(row).get(name)).start for row in rows):
            return name
    return None


def determine_view_kind(
    rows: Sequence[Mapping[str, Any]], date_property: str | None
) -> ViewKind:
    if not date_property:
        return ViewKind.TABLE
    has_range = any(
        extract_date_range(_properties(row).get(date_property)).end is not None
        for row in rows
    )
    return ViewKind.TIMELINE if has_range else ViewKind.CALENDAR


def build_status_color_map(
    rows: Sequence[Mapping[str, Any]], columns: Sequence[str] | None = None
) -> dict[str, str] | None:
    """Status name to color token for the first status column, if any."""

    types = _column_types(rows)
    for name in columns if columns is not None else order_columns(rows):
        if types.get(name) != "status":
            continue
        color_map: dict[str, str] = {}
        for row in rows:
            status = extract_status(_properties(row).get(name))
            if status.name:
                color_map[status.name] = status.color
        return color_map
    return None


def describe_database(
    database_id: str, title: str, rows: Sequence[Mapping[str, Any]]
) -> InlineDatabase:
    columns = order_columns(rows)
    date_property = find_date_property(rows, columns)
    return InlineDatabase(
        database_id=database_id,
        title=title,
        view_kind=determine_view_kind(rows, date_property),
        table_data=build_table_data(rows, columns),
        date_property_name=date_property,
        status_color_map=build_status_color_map(rows, columns),
    )


async def resolve_placeholders(
    markdown: str,
    fetch_rows: RowFetcher,
    fetch_database_info: DatabaseInfoFetcher | None = None,
    *,
    logger: WarningLogger | None = None,
) -> ResolvedDocument:
    """Expand or link every database placeholder in ``markdown``.

    Placeholders are handled one at a time in text order. Full-page databases
    and databases whose rows cannot be fetched are replaced by a link. Inline
    databases keep their token in the text, so the viewer can anchor the table,
    and get a descriptor in ``inline_databases``.

    Args:
        markdown: Assembled document containing placeholder tokens.
        fetch_rows: Coroutine returning every row of a database.
        fetch_database_info: Optional coroutine telling inline from full-page.
        logger: Receives a diagnostic for every fallback to a link.
    """

    active_logger = logger or NullLogger()
    seen: set[str] = set()
    resolved = markdown
    databases: list[InlineDatabase] = []

    for match in PLACEHOLDER_PATTERN.finditer(markdown):
        token, database_id, title = match.group(0), match.group(1), match.group(2)
        if token in seen:
            continue
        seen.add(token)

        try:
            if fetch_database_info is not None:
                info = await fetch_database_info(database_id)
                title = info.title or title
                if not info.is_inline:
                    resolved = resolved.replace(token, database_link(database_id, title))
                    continue
            rows = await fetch_rows(database_id)
        except NotionFetchError as exc:
            active_logger.warn(
                source=database_id,
                element_type="child_database",
                message=f"Falling back to a link: {exc}",
                code="inline-table-fallback",
            )
            resolved = resolved.replace(token, database_link(database_id, title))
            continue

        databases.append(describe_database(database_id, title, rows))

    return ResolvedDocument(markdown=resolved, inline_databases=tuple(databases))


def table_to_markdown(table: TableData) -> str:
    """Render ``table`` as a GitHub-flavored Markdown table."""

    if not table.columns:
        return "*This database has no rows.*"
    header = "| " + " | ".join(escape_table_cell(name) for name in table.columns) + " |"
    separator = "| " + " | ".join("---" for _ in table.columns) + " |"
    lines = [header, separator]
    for row in table.rows:
        values = [
            escape_table_cell(cell.display() if isinstance(cell, DateRange) else cell)
            for cell in row.cells
        ]
        lines.append("| " + " | ".join(values) + " |")
    return "\n".join(lines)


__all__ = [
    "DatabaseInfoFetcher",
    "PLACEHOLDER_PATTERN",
    "ResolvedDocument",
    "RowFetcher",
    "build_status_color_map",
    "build_table_data",
    "database_link",
    "describe_database",
    "determine_view_kind",
    "find_date_property",
    "order_columns",
    "placeholder_token",
    "resolve_placeholders",
    "table_to_markdown",
]
