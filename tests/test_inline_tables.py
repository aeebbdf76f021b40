import asyncio

import pytest

from notionview.markdown.elements import DateRange, TableData, TableRow, ViewKind
from notionview.markdown.inline_tables import (
    build_status_color_map,
    describe_database,
    determine_view_kind,
    find_date_property,
    order_columns,
    placeholder_token,
    resolve_placeholders,
    table_to_markdown,
)
from notionview.notion.api_adapter import DatabaseInfo, NotionFetchError
from notionview.utils.logging import NullLogger

from notion_fakes import rich_text


def _row(row_id: str, name: str, **props: dict) -> dict:
    properties = {
        "Notes": {"type": "rich_text", "rich_text": [rich_text(f"{name} notes")]},
        "Name": {"id": "title", "type": "title", "title": [rich_text(name)]},
    }
    properties.update(props)
    return {"id": row_id, "properties": properties}


def _date(start: str | None, end: str | None = None) -> dict:
    return {"type": "date", "date": {"start": start, "end": end} if start else None}


def _status(name: str, color: str) -> dict:
    return {"type": "status", "status": {"name": name, "color": color}}


def test_title_column_comes_first() -> None:
    rows = [_row("r1", "A")]

    assert order_columns(rows) == ["Name", "Notes"]


def test_view_kind_timeline_when_any_end_present() -> None:
    rows = [
        _row("r1", "A", When=_date("2024-01-01")),
        _row("r2", "B", When=_date("2024-01-02", "2024-01-04")),
    ]

    date_property = find_date_property(rows)

    assert date_property == "When"
    assert determine_view_kind(rows, date_property) is ViewKind.TIMELINE


def test_view_kind_calendar_without_ends() -> None:
    rows = [_row("r1", "A", When=_date("2024-01-01"))]

    assert determine_view_kind(rows, find_date_property(rows)) is ViewKind.CALENDAR


def test_view_kind_table_without_dates() -> None:
    rows = [_row("r1", "A", When=_date(None))]

    assert find_date_property(rows) is None
    assert determine_view_kind(rows, None) is ViewKind.TABLE


def test_status_color_map_uses_first_status_column() -> None:
    rows = [
        _row("r1", "A", State=_status("Done", "green")),
        _row("r2", "B", State=_status("Doing", "blue")),
    ]

    assert build_status_color_map(rows) == {"Done": "green", "Doing": "blue"}
    assert build_status_color_map([_row("r1", "A")]) is None


def test_describe_database_keeps_rows_as_wide_as_columns() -> None:
    rows = [
        _row("r1", "A", When=_date("2024-01-01", "2024-01-02")),
        {"id": "r2", "properties": {"Name": {"id": "title", "type": "title", "title": []}}},
    ]

    described = describe_database("db", "Tasks", rows)

    assert described.table_data.columns == ("Name", "Notes", "When")
    assert all(len(row.cells) == 3 for row in described.table_data.rows)
    assert described.table_data.rows[0].cells[2] == DateRange("2024-01-01", "2024-01-02")
    assert described.table_data.rows[1].cells == ("", "", DateRange())


def test_table_data_rejects_ragged_rows() -> None:
    with pytest.raises(ValueError):
        TableData(columns=("a", "b"), rows=(TableRow(id="r", cells=("x",)),))


def test_inline_database_is_described_and_token_kept() -> None:
    token = placeholder_token("db1", "Tasks")
    rows = {"db1": [_row("r1", "A")]}

    async def fetch_rows(database_id: str) -> list:
        return rows[database_id]

    async def fetch_info(database_id: str) -> DatabaseInfo:
        return DatabaseInfo(is_inline=True, title="Tasks")

    resolved = asyncio.run(
        resolve_placeholders(f"Intro\n\n{token}\n\n", fetch_rows, fetch_info)
    )

    assert resolved.markdown == f"Intro\n\n{token}\n\n"
    assert [db.database_id for db in resolved.inline_databases] == ["db1"]
    assert resolved.inline_databases[0].view_kind is ViewKind.TABLE


def test_full_page_database_becomes_link_without_row_fetch() -> None:
    fetched: list[str] = []

    async def fetch_rows(database_id: str) -> list:
        fetched.append(database_id)
        return []

    async def fetch_info(database_id: str) -> DatabaseInfo:
        return DatabaseInfo(is_inline=False, title="Roadmap")

    resolved = asyncio.run(
        resolve_placeholders(placeholder_token("db2", "Roadmap"), fetch_rows, fetch_info)
    )

    assert resolved.markdown == "📋 [Roadmap](/db2)"
    assert resolved.inline_databases == ()
    assert fetched == []


def test_row_fetch_failure_degrades_to_link() -> None:
    logger = NullLogger()

    async def fetch_rows(database_id: str) -> list:
        raise NotionFetchError("boom")

    resolved = asyncio.run(
        resolve_placeholders(
            f"{placeholder_token('db3', 'Broken')} and more", fetch_rows, logger=logger
        )
    )

    assert resolved.markdown == "📋 [Broken](/db3) and more"
    assert logger.codes() == ["W003"]


def test_table_to_markdown_renders_dates_and_escapes() -> None:
    table = TableData(
        columns=("Name", "When"),
        rows=(TableRow(id="r", cells=("a|b", DateRange("2024-01-01", "2024-01-03"))),),
    )

    assert table_to_markdown(table) == (
        "| Name | When |\n| --- | --- |\n| a\\|b | 2024-01-01 → 2024-01-03 |"
    )
