from notionview.markdown.blocks import (
    _RENDERERS,
    normalize_embed_url,
    render_block,
    table_separator,
)
from notionview.markdown.elements import Block, BlockType

from notion_fakes import block, paragraph, rich_text


def _render(raw: dict) -> str:
    return render_block(Block.from_api(raw))


def test_every_block_type_has_a_renderer() -> None:
    assert set(_RENDERERS) == set(BlockType)


def test_render_is_pure() -> None:
    item = Block.from_api(paragraph("p1", "Hello"))

    assert render_block(item) == render_block(item) == "Hello"


def test_paragraph_line_breaks() -> None:
    assert _render(paragraph("p1", "one\ntwo")) == "one  \ntwo"
    assert _render(paragraph("p1", "one\n\n\ntwo")) == "one\n\ntwo"


def test_headings() -> None:
    assert _render(block("h", "heading_2", rich_text=[rich_text("Title")])) == "## Title"
    toggleable = block(
        "h", "heading_1", rich_text=[rich_text("FAQ & more")], is_toggleable=True
    )
    assert _render(toggleable) == (
        "<details>\n<summary><h1>FAQ &amp; more</h1></summary>"
    )


def test_list_items_and_todo() -> None:
    assert _render(block("b", "bulleted_list_item", rich_text=[rich_text("x")])) == "- x"
    assert _render(block("n", "numbered_list_item", rich_text=[rich_text("x")])) == "1. x"
    done = block("t", "to_do", rich_text=[rich_text("ship")], checked=True)
    assert _render(done) == '<input type="checkbox" disabled checked /> ship'


def test_code_language_defaults() -> None:
    plain = block("c", "code", rich_text=[rich_text("x = 1")], language="plain text")
    python = block("c", "code", rich_text=[rich_text("x = 1")], language="python")

    assert _render(plain) == "```text\nx = 1\n```"
    assert _render(python) == "```python\nx = 1\n```"


def test_callout_uses_emoji_or_default_icon() -> None:
    with_icon = block(
        "c", "callout", rich_text=[rich_text("Note")], icon={"type": "emoji", "emoji": "⚠️"}
    )
    without_icon = block("c", "callout", rich_text=[rich_text("Note")])

    assert _render(with_icon) == "```callout\n⚠️ Note\n```"
    assert _render(without_icon) == "```callout\n💡 Note\n```"


def test_quote_prefixes_every_line() -> None:
    assert _render(block("q", "quote", rich_text=[rich_text("a\nb")])) == "> a\n> b"


def test_media_blocks() -> None:
    image = block(
        "i",
        "image",
        type="external",
        external={"url": "https://img.test/a.png"},
        caption=[rich_text("Cat")],
    )
    video = block("v", "video", type="file", file={"url": "https://files.test/v.mp4"})
    pdf = block("f", "pdf", type="file", file={"url": "https://files.test/doc.pdf?sig=1"})

    assert _render(image) == "![Cat](https://img.test/a.png)"
    assert _render(video) == '<video controls src="https://files.test/v.mp4"></video>'
    assert _render(pdf) == "📎 [doc.pdf](https://files.test/doc.pdf?sig=1)"


def test_embed_wraps_normalized_url() -> None:
    embed = block("e", "embed", url="https://youtu.be/dQw4w9WgXcQ")

    fragment = _render(embed)

    assert 'src="https://www.youtube.com/embed/dQw4w9WgXcQ"' in fragment
    assert "padding-bottom: 56.25%" in fragment


def test_normalize_map_urls() -> None:
    at_url = "https://www.google.com/maps/place/Tokyo/@35.6812,139.7671,12z"
    query_url = "https://maps.google.com/?q=35.1,139.2"
    embedded = "https://www.google.com/maps/embed?pb=abc"

    assert normalize_embed_url(at_url) == (
        "https://maps.google.com/maps?q=35.6812,139.7671&z=12&output=embed"
    )
    assert normalize_embed_url(query_url) == (
        "https://maps.google.com/maps?q=35.1,139.2&z=15&output=embed"
    )
    assert normalize_embed_url(embedded) == embedded
    assert normalize_embed_url("https://example.com/x") == "https://example.com/x"


def test_simple_blocks() -> None:
    assert _render(block("d", "divider")) == "---"
    assert _render(block("eq", "equation", expression="e=mc^2")) == "$$\ne=mc^2\n$$"
    assert _render(block("b", "bookmark", url="https://a.test", caption=[])) == (
        "[https://a.test](https://a.test)"
    )
    assert _render(block("t", "table", table_width=2)) == ""
    assert _render(block("x", "ai_block")) == ""


def test_table_row_escapes_cells() -> None:
    row = block("r", "table_row", cells=[[rich_text("a|b")], [rich_text("c")]])

    assert _render(row) == "| a\\|b | c |"
    assert table_separator(2) == "| --- | --- |"


def test_child_references() -> None:
    child_page = block("p-1", "child_page", title="Notes")
    child_db = block("db-1", "child_database", title="My  Tasks")

    assert _render(child_page) == "📄 [Notes](/p-1)"
    assert _render(child_db) == "__PLACEHOLDER__db-1__My Tasks__"
