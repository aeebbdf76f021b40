import asyncio

import pytest

from notionview.markdown.converter import RenderResult, render_document
from notionview.markdown.elements import ViewKind
from notionview.notion.api_adapter import NotionFetchError
from notionview.markdown.inline_tables import placeholder_token

from notion_fakes import FakeAdapter, block, database, page, paragraph, rich_text

PAGE_ID = "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
DB_ID = "bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"


def _task(row_id: str, name: str, start: str, end: str | None = None) -> dict:
    return page(
        row_id,
        name,
        properties={
            "When": {"type": "date", "date": {"start": start, "end": end}},
            "State": {"type": "status", "status": {"name": "Done", "color": "green"}},
        },
    )


def test_page_with_inline_database() -> None:
    source = page(PAGE_ID, "Home")
    source["icon"] = {"type": "emoji", "emoji": "🏠"}
    adapter = FakeAdapter(
        pages={PAGE_ID: source},
        databases={DB_ID: database(DB_ID, "Tasks", is_inline=True)},
        children={
            PAGE_ID: [
                paragraph("p1", "Welcome"),
                block(DB_ID, "child_database", title="Tasks"),
            ]
        },
        rows={DB_ID: [_task("r1", "Ship", "2024-01-01")]},
    )

    result = asyncio.run(render_document(PAGE_ID, adapter))

    token = placeholder_token(DB_ID, "Tasks")
    assert result.kind == "page"
    assert result.markdown == f"# Home\n\nWelcome\n\n{token}\n\n"
    assert result.icon is not None and result.icon.emoji == "🏠"
    [inline] = result.inline_databases
    assert inline.view_kind is ViewKind.CALENDAR
    assert inline.date_property_name == "When"
    assert inline.status_color_map == {"Done": "green"}

    expanded = result.expanded_markdown()
    assert token not in expanded
    assert "**Tasks**\n\n| Name | When | State |" in expanded


def test_full_page_child_database_is_linked() -> None:
    adapter = FakeAdapter(
        pages={PAGE_ID: page(PAGE_ID, "Home")},
        databases={DB_ID: database(DB_ID, "Roadmap", is_inline=False)},
        children={PAGE_ID: [block(DB_ID, "child_database", title="Roadmap")]},
    )

    result = asyncio.run(render_document(PAGE_ID, adapter))

    assert result.markdown == f"# Home\n\n📋 [Roadmap](/{DB_ID})\n\n"
    assert adapter.count("rows") == 0


def test_row_page_without_blocks_lists_properties() -> None:
    row = _task(PAGE_ID, "Ship", "2024-01-01", "2024-01-03")
    adapter = FakeAdapter(pages={PAGE_ID: row}, children={PAGE_ID: []})

    result = asyncio.run(render_document(PAGE_ID, adapter))

    assert result.markdown == (
        "# Ship\n\n**When**: 2024-01-01 → 2024-01-03\n\n**State**: Done"
    )


def test_database_id_falls_back_to_database_render() -> None:
    db = database(DB_ID, "Sprint", is_inline=False)
    db["description"] = [rich_text("Current sprint")]
    adapter = FakeAdapter(
        databases={DB_ID: db},
        rows={DB_ID: [_task("r1", "A", "2024-01-01", "2024-01-05")]},
    )

    result = asyncio.run(render_document(DB_ID, adapter))

    assert result.kind == "database"
    assert result.markdown == "# Sprint"
    assert result.description == "Current sprint"
    assert result.view_kind is ViewKind.TIMELINE
    assert result.table_data is not None
    assert result.table_data.columns == ("Name", "When", "State")
    assert result.expanded_markdown().startswith("# Sprint\n\n| Name | When | State |")


def test_unknown_id_raises_fetch_error() -> None:
    with pytest.raises(NotionFetchError):
        asyncio.run(render_document(PAGE_ID, FakeAdapter()))


def test_render_result_survives_serialization() -> None:
    adapter = FakeAdapter(
        databases={DB_ID: database(DB_ID, "Sprint")},
        rows={DB_ID: [_task("r1", "A", "2024-01-01")]},
    )
    result = asyncio.run(render_document(DB_ID, adapter))

    restored = RenderResult.from_dict(result.to_dict())

    assert restored == result
