from notionview.hierarchy.models import HierarchyNode, NodeKind
from notionview.markdown.elements import (
    Block,
    BlockType,
    DateRange,
    InlineDatabase,
    TableData,
    TableRow,
    ViewKind,
)

from notion_fakes import block, page_mention, rich_text


def test_block_from_api_reads_parent_and_payload() -> None:
    raw = block("r1", "table_row", parent="tbl", cells=[])

    parsed = Block.from_api(raw, parent_id="fallback")

    assert parsed.kind is BlockType.TABLE_ROW
    assert parsed.parent_id == "tbl"
    assert Block.from_api(block("x", "paragraph"), parent_id="fallback").parent_id == "fallback"


def test_block_disclosure_and_reference_flags() -> None:
    toggle = Block.from_api(block("t", "toggle", rich_text=[rich_text("x")]))
    heading = Block.from_api(block("h", "heading_2", rich_text=[], is_toggleable=False))
    child = Block.from_api(block("c", "child_database", title="Db"))

    assert toggle.is_disclosure
    assert not heading.is_disclosure
    assert child.is_child_reference
    assert Block.from_api(block("u", "ai_block")).kind is None


def test_rich_text_mentions_expose_target() -> None:
    mention = Block.from_api(
        block("p", "paragraph", rich_text=[page_mention("abc", "Other page")])
    )

    [span] = mention.rich_text
    assert span.mention_target == "abc"
    assert mention.text == "Other page"


def test_inline_database_round_trips_through_dict() -> None:
    inline = InlineDatabase(
        database_id="db",
        title="Tasks",
        view_kind=ViewKind.TIMELINE,
        table_data=TableData(
            columns=("Name", "When"),
            rows=(TableRow(id="r", cells=("A", DateRange("2024-01-01", "2024-01-02"))),),
        ),
        date_property_name="When",
        status_color_map={"Done": "green"},
    )

    assert InlineDatabase.from_dict(inline.to_dict()) == inline


def test_hierarchy_nodes_compare_by_normalized_id() -> None:
    dashed = HierarchyNode(id="2f9b9a68-7adc-80ce-8d43-e8af08803c85", title="A")
    plain = HierarchyNode(
        id="2F9B9A687ADC80CE8D43E8AF08803C85", title="B", kind=NodeKind.DATABASE
    )

    assert dashed == plain
    assert len({dashed, plain}) == 1
    assert HierarchyNode.from_dict(plain.to_dict()).kind is NodeKind.DATABASE
