"""Element models for Notion blocks and the tables extracted from databases.

Blocks arrive as raw API dictionaries. The classes here keep the fields the
renderer needs (type tag, payload, children flag, parent) while leaving the
type-specific payload untouched so unknown block kinds still round-trip.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union


class BlockType(str, Enum):
    """Block kinds the renderer knows how to turn into Markdown."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    CODE = "code"
    IMAGE = "image"
    VIDEO = "video"
    EMBED = "embed"
    QUOTE = "quote"
    CALLOUT = "callout"
    DIVIDER = "divider"
    BOOKMARK = "bookmark"
    LINK_PREVIEW = "link_preview"
    EQUATION = "equation"
    PDF = "pdf"
    FILE = "file"
    TABLE = "table"
    TABLE_ROW = "table_row"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    SYNCED_BLOCK = "synced_block"


HEADING_LEVELS = {
    BlockType.HEADING_1: 1,
    BlockType.HEADING_2: 2,
    BlockType.HEADING_3: 3,
}

CHILD_REFERENCE_TYPES = frozenset({BlockType.CHILD_PAGE, BlockType.CHILD_DATABASE})


@dataclass(frozen=True)
class RichTextSpan:
    """Plain text span with an optional link or page mention."""

    plain_text: str
    href: str | None = None
    mention_target: str | None = None
    mention_kind: str | None = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "RichTextSpan":
        mention_target = None
        mention_kind = None
        if payload.get("type") == "mention":
            mention = payload.get("mention") or {}
            mention_type = mention.get("type")
            if mention_type in ("page", "database"):
                mention_target = (mention.get(mention_type) or {}).get("id")
                mention_kind = mention_type
        return cls(
            plain_text=payload.get("plain_text") or "",
            href=payload.get("href"),
            mention_target=mention_target,
            mention_kind=mention_kind if mention_target else None,
        )


def spans_from_api(items: Any) -> tuple[RichTextSpan, ...]:
    if not isinstance(items, list):
        return ()
    return tuple(RichTextSpan.from_api(item) for item in items if isinstance(item, Mapping))


def plain_text(spans: tuple[RichTextSpan, ...]) -> str:
    return "".join(span.plain_text for span in spans)


@dataclass(frozen=True, kw_only=True)
class Block:
    """One content block as returned by the blocks API."""

    id: str
    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    has_children: bool = False
    parent_id: str | None = None

    @classmethod
    def from_api(
        cls, raw: Mapping[str, Any], parent_id: str | None = None
    ) -> "Block":
        """Build a block from an API dictionary.

        Args:
            raw: Block object from the API.
            parent_id: Fallback parent used when the object carries none.
        """

        block_type = str(raw.get("type") or "")
        parent = raw.get("parent") or {}
        declared_parent = None
        if isinstance(parent, Mapping):
            parent_type = parent.get("type")
            if parent_type:
                declared_parent = parent.get(parent_type)
        payload = raw.get(block_type)
        return cls(
            id=str(raw.get("id") or ""),
            type=block_type,
            payload=payload if isinstance(payload, Mapping) else {},
            has_children=bool(raw.get("has_children")),
            parent_id=declared_parent or parent_id,
        )

    @property
    def kind(self) -> BlockType | None:
        try:
            return BlockType(self.type)
        except ValueError:
            return None

    @property
    def rich_text(self) -> tuple[RichTextSpan, ...]:
        return spans_from_api(self.payload.get("rich_text"))

    @property
    def text(self) -> str:
        return plain_text(self.rich_text)

    @property
    def is_disclosure(self) -> bool:
        """True for toggles and toggleable headings."""

        kind = self.kind
        if kind is BlockType.TOGGLE:
            return True
        return kind in HEADING_LEVELS and bool(self.payload.get("is_toggleable"))

    @property
    def is_child_reference(self) -> bool:
        return self.kind in CHILD_REFERENCE_TYPES


@dataclass(frozen=True)
class DateRange:
    """Start/end pair of a date property. Either side may be missing."""

    start: str | None = None
    end: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"start": self.start, "end": self.end}

    def display(self) -> str:
        if self.end and self.start != self.end:
            return f"{self.start or ''} → {self.end}"
        return self.start or ""


CellValue = Union[str, DateRange]


@dataclass(frozen=True)
class TableRow:
    id: str
    cells: tuple[CellValue, ...]


@dataclass(frozen=True)
class TableData:
    """Columns plus rows, every row exactly as wide as the column list."""

    columns: tuple[str, ...] = ()
    rows: tuple[TableRow, ...] = ()

    def __post_init__(self) -> None:
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"Duplicate column names in table: {list(self.columns)}")
        width = len(self.columns)
        for row in self.rows:
            if len(row.cells) != width:
                raise ValueError(
                    f"Row {row.id} has {len(row.cells)} cells but the table has {width} columns."
                )

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": list(self.columns),
            "rows": [
                {"id": row.id, "cells": [_cell_to_json(cell) for cell in row.cells]}
                for row in self.rows
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TableData":
        return cls(
            columns=tuple(data.get("columns") or ()),
            rows=tuple(
                TableRow(
                    id=str(row.get("id") or ""),
                    cells=tuple(_cell_from_json(cell) for cell in row.get("cells") or ()),
                )
                for row in data.get("rows") or ()
            ),
        )


def _cell_to_json(cell: CellValue) -> Any:
    if isinstance(cell, DateRange):
        return cell.to_dict()
    return cell


def _cell_from_json(cell: Any) -> CellValue:
    if isinstance(cell, Mapping):
        return DateRange(start=cell.get("start"), end=cell.get("end"))
    return "" if cell is None else str(cell)


class ViewKind(str, Enum):
    TABLE = "table"
    CALENDAR = "calendar"
    TIMELINE = "timeline"


@dataclass(frozen=True)
class InlineDatabase:
    """Database embedded in a page, expanded for the viewer."""

    database_id: str
    title: str
    view_kind: ViewKind
    table_data: TableData
    date_property_name: str | None = None
    status_color_map: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "database_id": self.database_id,
            "title": self.title,
            "view_kind": self.view_kind.value,
            "table_data": self.table_data.to_dict(),
        }
        if self.date_property_name:
            payload["date_property_name"] = self.date_property_name
        if self.status_color_map is not None:
            payload["status_color_map"] = dict(self.status_color_map)
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InlineDatabase":
        return cls(
            database_id=str(data["database_id"]),
            title=str(data.get("title") or ""),
            view_kind=ViewKind(data.get("view_kind") or ViewKind.TABLE.value),
            table_data=TableData.from_dict(data.get("table_data") or {}),
            date_property_name=data.get("date_property_name"),
            status_color_map=data.get("status_color_map"),
        )


@dataclass(frozen=True)
class PageIcon:
    """Exactly one of emoji, external URL, or uploaded-file URL."""

    type: str
    emoji: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload = {"type": self.type}
        if self.emoji:
            payload["emoji"] = self.emoji
        if self.url:
            payload["url"] = self.url
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PageIcon | None":
        if not data:
            return None
        return cls(type=str(data["type"]), emoji=data.get("emoji"), url=data.get("url"))


__all__ = [
    "Block",
    "BlockType",
    "CellValue",
    "CHILD_REFERENCE_TYPES",
    "DateRange",
    "HEADING_LEVELS",
    "InlineDatabase",
    "PageIcon",
    "RichTextSpan",
    "TableData",
    "TableRow",
    "ViewKind",
    "plain_text",
    "spans_from_api",
]
