"""Render individual Notion blocks as Markdown fragments."""

from __future__ import annotations

import html
import re
from typing import Callable, Mapping
from urllib.parse import parse_qs, urlparse

from .elements import Block, BlockType, HEADING_LEVELS, plain_text, spans_from_api
from .inline_tables import placeholder_token
from .properties import escape_table_cell

DEFAULT_CODE_LANGUAGE = "text"
DEFAULT_CALLOUT_ICON = "💡"
DEFAULT_MAP_ZOOM = "15"

_MAP_AT_COORDINATES = re.compile(
    r"@(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?)(?:,(\d+(?:\.\d+)?)z)?"
)
_COORDINATE_PAIR = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")
_YOUTUBE_ID = re.compile(r"^[A-Za-z0-9_-]{6,}$")


def render_block(block: Block) -> str:
    """Return the Markdown fragment for ``block``.

    The fragment depends only on the block's own payload. Unsupported block
    types render as an empty string.
    """

    kind = block.kind
    if kind is None:
        return ""
    return _RENDERERS[kind](block)


def disclosure_close() -> str:
    """Closing fragment for a toggle or toggleable heading."""

    return "</details>\n"


def table_separator(width: int) -> str:
    return "| " + " | ".join("---" for _ in range(width)) + " |"


def table_row_width(block: Block) -> int:
    cells = block.payload.get("cells")
    return len(cells) if isinstance(cells, list) else 0


def _paragraph(block: Block) -> str:
    text = block.text
    paragraphs = [chunk for chunk in re.split(r"\n{2,}", text) if chunk.strip()]
    return "\n\n".join("  \n".join(chunk.split("\n")) for chunk in paragraphs)


def _heading(block: Block) -> str:
    level = HEADING_LEVELS[BlockType(block.type)]
    text = block.text
    if block.payload.get("is_toggleable"):
        return f"<details>\n<summary><h{level}>{_escape(text)}</h{level}></summary>"
    return f"{'#' * level} {text}"


def _bulleted(block: Block) -> str:
    return f"- {block.text}"


def _numbered(block: Block) -> str:
    return f"1. {block.text}"


def _to_do(block: Block) -> str:
    checked = " checked" if block.payload.get("checked") else ""
    return f'<input type="checkbox" disabled{checked} /> {block.text}'


def _toggle(block: Block) -> str:
    return f"<details>\n<summary>{_escape(block.text)}</summary>"


def _code(block: Block) -> str:
    language = block.payload.get("language") or DEFAULT_CODE_LANGUAGE
    if language == "plain text":
        language = DEFAULT_CODE_LANGUAGE
    language = language.replace(" ", "-")
    return f"```{language}\n{block.text}\n```"


def _image(block: Block) -> str:
    caption = plain_text(spans_from_api(block.payload.get("caption")))
    return f"![{caption}]({_file_url(block.payload)})"


def _video(block: Block) -> str:
    url = _file_url(block.payload)
    if not url:
        return ""
    if block.payload.get("type") == "file":
        return f'<video controls src="{_escape_attr(url)}"></video>'
    return _embed_fragment(normalize_embed_url(url))


def _embed(block: Block) -> str:
    url = block.payload.get("url") or ""
    if not url:
        return ""
    return _embed_fragment(normalize_embed_url(url))


def _quote(block: Block) -> str:
    return "\n".join(f"> {line}" for line in block.text.split("\n"))


def _callout(block: Block) -> str:
    icon = block.payload.get("icon") or {}
    emoji = icon.get("emoji") if isinstance(icon, Mapping) else None
    return f"```callout\n{emoji or DEFAULT_CALLOUT_ICON} {block.text}\n```"


def _divider(block: Block) -> str:
    return "---"


def _bookmark(block: Block) -> str:
    url = block.payload.get("url") or ""
    if not url:
        return ""
    caption = plain_text(spans_from_api(block.payload.get("caption")))
    return f"[{caption or url}]({url})"


def _link_preview(block: Block) -> str:
    url = block.payload.get("url") or ""
    return f"[{url}]({url})" if url else ""


def _equation(block: Block) -> str:
    expression = block.payload.get("expression") or ""
    return f"$$\n{expression}\n$$"


def _file_link(block: Block) -> str:
    url = _file_url(block.payload)
    if not url:
        return ""
    caption = plain_text(spans_from_api(block.payload.get("caption")))
    name = block.payload.get("name") or caption or url.rsplit("/", 1)[-1].split("?")[0]
    return f"📎 [{name}]({url})"


def _table_row(block: Block) -> str:
    cells = block.payload.get("cells")
    if not isinstance(cells, list):
        return "| |"
    values = [escape_table_cell(plain_text(spans_from_api(cell))) for cell in cells]
    return f"| {' | '.join(values)} |"


def _structural(block: Block) -> str:
    return ""


def _child_page(block: Block) -> str:
    title = block.payload.get("title") or "Untitled Page"
    return f"📄 [{title}](/{block.id})"


def _child_database(block: Block) -> str:
    title = block.payload.get("title") or "Untitled Database"
    return placeholder_token(block.id, title)


_RENDERERS: dict[BlockType, Callable[[Block], str]] = {
    BlockType.PARAGRAPH: _paragraph,
    BlockType.HEADING_1: _heading,
    BlockType.HEADING_2: _heading,
    BlockType.HEADING_3: _heading,
    BlockType.BULLETED_LIST_ITEM: _bulleted,
    BlockType.NUMBERED_LIST_ITEM: _numbered,
    BlockType.TO_DO: _to_do,
    BlockType.TOGGLE: _toggle,
    BlockType.CODE: _code,
    BlockType.IMAGE: _image,
    BlockType.VIDEO: _video,
    BlockType.EMBED: _embed,
    BlockType.QUOTE: _quote,
    BlockType.CALLOUT: _callout,
    BlockType.DIVIDER: _divider,
    BlockType.BOOKMARK: _bookmark,
    BlockType.LINK_PREVIEW: _link_preview,
    BlockType.EQUATION: _equation,
    BlockType.PDF: _file_link,
    BlockType.FILE: _file_link,
    BlockType.TABLE: _structural,
    BlockType.TABLE_ROW: _table_row,
    BlockType.COLUMN_LIST: _structural,
    BlockType.COLUMN: _structural,
    BlockType.CHILD_PAGE: _child_page,
    BlockType.CHILD_DATABASE: _child_database,
    BlockType.SYNCED_BLOCK: _structural,
}


def normalize_embed_url(url: str) -> str:
    """Rewrite map and video share links into embeddable URLs.

    A map link without embed parameters becomes a ``output=embed`` URL when a
    coordinate pair can be read from it. YouTube watch and short links become
    ``/embed/`` URLs. Anything else is returned unchanged.
    """

    parsed = urlparse(url)
    host = parsed.netloc.lower()
    query = parse_qs(parsed.query)

    if _is_map_url(host, parsed.path):
        if "output" in query or "/embed" in parsed.path:
            return url
        coordinates = _map_coordinates(parsed.path, query)
        if coordinates is None:
            return url
        lat, lng, zoom = coordinates
        return f"https://maps.google.com/maps?q={lat},{lng}&z={zoom}&output=embed"

    if host.endswith("youtube.com") and parsed.path == "/watch":
        video_id = (query.get("v") or [""])[0]
        if _YOUTUBE_ID.match(video_id):
            return f"https://www.youtube.com/embed/{video_id}"
    if host == "youtu.be":
        video_id = parsed.path.strip("/")
        if _YOUTUBE_ID.match(video_id):
            return f"https://www.youtube.com/embed/{video_id}"
    return url


def _is_map_url(host: str, path: str) -> bool:
    if host.startswith("maps.google."):
        return True
    return "google." in host and path.startswith("/maps")


def _map_coordinates(
    path: str, query: dict[str, list[str]]
) -> tuple[str, str, str] | None:
    match = _MAP_AT_COORDINATES.search(path)
    if match:
        lat, lng, zoom = match.groups()
        return lat, lng, _zoom(zoom)
    for key in ("q", "ll", "query"):
        for value in query.get(key, []):
            pair = _COORDINATE_PAIR.match(value)
            if pair:
                zoom = (query.get("z") or [None])[0]
                return pair.group(1), pair.group(2), _zoom(zoom)
    return None


def _zoom(raw: str | None) -> str:
    if not raw:
        return DEFAULT_MAP_ZOOM
    try:
        return str(int(float(raw)))
    except ValueError:
        return DEFAULT_MAP_ZOOM


def _embed_fragment(url: str) -> str:
    return (
        '<div style="position: relative; padding-bottom: 56.25%; height: 0; overflow: hidden;">\n'
        f'<iframe src="{_escape_attr(url)}" '
        'style="position: absolute; top: 0; left: 0; width: 100%; height: 100%; border: 0;" '
        "allowfullscreen></iframe>\n"
        "</div>"
    )


def _file_url(payload: Mapping[str, object]) -> str:
    for variant in ("external", "file"):
        source = payload.get(variant)
        if isinstance(source, Mapping) and source.get("url"):
            return str(source["url"])
    return ""


def _escape(text: str) -> str:
    return html.escape(text, quote=False)


def _escape_attr(value: str) -> str:
    return html.escape(value, quote=True)


__all__ = [
    "disclosure_close",
    "normalize_embed_url",
    "render_block",
    "table_row_width",
    "table_separator",
]
