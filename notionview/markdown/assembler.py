"""Walk a block tree depth-first and assemble a single Markdown document."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Awaitable, Callable, Mapping, Sequence, Union

from ..notion.api_adapter import NotionFetchError
from ..utils.logging import NullLogger, WarningLogger
from .blocks import disclosure_close, render_block, table_row_width, table_separator
from .elements import Block, BlockType

BlockLike = Union[Block, Mapping[str, Any]]
ChildFetcher = Callable[[str], Awaitable[Sequence[BlockLike]]]


class DocumentAssembler:
    """Stateful converter from blocks to Markdown.

    Two pieces of state are carried across the walk: whether a table is being
    emitted and which parent its rows belong to. Any block that is not a table
    row ends the current table, so a separator row is emitted after the first
    row of every run of rows, even when two runs share a parent.
    Toggles and toggleable headings are closed right after their own fragment
    when they have no children, otherwise after their children.
    """

    def __init__(
        self,
        fetch_children: ChildFetcher | None = None,
        *,
        logger: WarningLogger | None = None,
    ) -> None:
        self._fetch_children = fetch_children
        self.logger = logger or NullLogger()
        self._in_table = False
        self._table_parent_id: str | None = None

    async def assemble(self, blocks: Sequence[BlockLike]) -> str:
        """Render ``blocks`` (and their fetched descendants) as Markdown."""

        self._end_table()
        parts: list[str] = []
        await self._walk(blocks, parts, parent_id=None)
        return "".join(parts)

    async def _walk(
        self, blocks: Sequence[BlockLike], parts: list[str], parent_id: str | None
    ) -> None:
        for item in blocks:
            block = _coerce_block(item, parent_id)

            if block.kind is BlockType.TABLE_ROW:
                self._emit_table_row(block, parts)
                continue

            if self._in_table:
                parts.append("\n")
                self._end_table()

            if block.kind is None:
                self.logger.warn(
                    source=block.id,
                    element_type=block.type or "unknown",
                    message=f"Unsupported block type '{block.type}' skipped.",
                    code="unsupported-block",
                )

            fragment = render_block(block)
            if fragment:
                parts.append(f"{fragment}\n\n")

            if block.is_disclosure and not block.has_children:
                parts.append(disclosure_close())
                continue

            if block.has_children and not block.is_child_reference:
                await self._expand_children(block, parts)
                if block.is_disclosure:
                    if self._in_table:
                        parts.append("\n")
                        self._end_table()
                    parts.append(disclosure_close())

    def _emit_table_row(self, block: Block, parts: list[str]) -> None:
        parts.append(f"{render_block(block)}\n")
        if not self._in_table or block.parent_id != self._table_parent_id:
            parts.append(f"{table_separator(table_row_width(block))}\n")
            self._in_table = True
            self._table_parent_id = block.parent_id

    async def _expand_children(self, block: Block, parts: list[str]) -> None:
        if self._fetch_children is None:
            return
        try:
            children = await self._fetch_children(block.id)
        except NotionFetchError as exc:
            self.logger.warn(
                source=block.id,
                element_type=block.type,
                message=f"Could not fetch child blocks: {exc}",
                code="child-fetch-failed",
            )
            return
        await self._walk(children, parts, parent_id=block.id)

    def _end_table(self) -> None:
        self._in_table = False
        self._table_parent_id = None


def _coerce_block(item: BlockLike, parent_id: str | None) -> Block:
    if isinstance(item, Block):
        if item.parent_id is None and parent_id is not None:
            return replace(item, parent_id=parent_id)
        return item
    return Block.from_api(item, parent_id=parent_id)


async def assemble_blocks(
    blocks: Sequence[BlockLike],
    fetch_children: ChildFetcher | None = None,
    *,
    logger: WarningLogger | None = None,
) -> str:
    """Convenience wrapper around :class:`DocumentAssembler`."""

    return await DocumentAssembler(fetch_children, logger=logger).assemble(blocks)


__all__ = ["ChildFetcher", "DocumentAssembler", "assemble_blocks"]
