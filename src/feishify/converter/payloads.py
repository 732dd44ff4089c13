"""Serialize runs and blocks to the platform's JSON descriptor shape.

A text element::

    {"text_run": {"content": "hi", "text_element_style": {"bold": True}}}

A block descriptor (tree mode adds ``block_id``, ``parent_id`` and
``children``)::

    {"block_type": 2, "text": {"style": {}, "elements": [...]}}

Tables additionally carry the synthetic ``_table`` payload
(``{"rows": [[...]], "merges": [...]}``) and flat quote containers carry
``_quote_children``; the uploader expands both, see
:mod:`feishify.converter.descendants`.
"""

from __future__ import annotations

from typing import Any

from feishify.models import Block, BlockType, Run, RunStyle, TableGrid, TableProperty
from feishify.utils.urls import safe_encode_url

_FLAG_FOR_STYLE: dict[RunStyle, str] = {
    RunStyle.BOLD: "bold",
    RunStyle.ITALIC: "italic",
    RunStyle.STRIKETHROUGH: "strikethrough",
    RunStyle.UNDERLINE: "underline",
    RunStyle.INLINE_CODE: "inline_code",
}

# Variants whose payload carries no elements.
_BARE_TYPES: frozenset[BlockType] = frozenset({
    BlockType.DIVIDER,
    BlockType.IMAGE,
    BlockType.TABLE,
    BlockType.TABLE_CELL,
    BlockType.QUOTE_CONTAINER,
})


def run_to_element(run: Run) -> dict[str, Any]:
    """Convert a :class:`Run` to a platform text element."""
    if run.style is RunStyle.MENTION_USER:
        return {"mention_user": {"user_id": run.content}}
    if run.style is RunStyle.MENTION_DOC:
        return {"mention_doc": {"title": run.content, "url": safe_encode_url(run.url)}}
    if run.style is RunStyle.EQUATION:
        return {"equation": {"content": run.content}}

    style: dict[str, Any] = {}
    flag = _FLAG_FOR_STYLE.get(run.style)
    if flag is not None:
        style[flag] = True
    elif run.style is RunStyle.LINK:
        style["link"] = {"url": safe_encode_url(run.url)}
    return {"text_run": {"content": run.content, "text_element_style": style}}


def runs_to_elements(runs: list[Run]) -> list[dict[str, Any]]:
    """Convert runs to elements; an empty list becomes one empty text run."""
    return [run_to_element(run) for run in runs] or [run_to_element(Run(""))]


def table_property(grid: TableGrid) -> TableProperty:
    return TableProperty(
        row_size=grid.row_count,
        column_size=grid.col_count,
        header_row=grid.header_row,
        pending_rows=grid.rows,
        merge_info=list(grid.merges),
    )


def _table_payload(prop: TableProperty) -> tuple[dict[str, Any], dict[str, Any]]:
    payload = {
        "property": {
            "row_size": prop.row_size,
            "column_size": prop.column_size,
            "header_row": prop.header_row,
            "header_column": prop.header_column,
        },
    }
    synthetic = {
        "rows": [list(row) for row in prop.pending_rows],
        "merges": [
            {"row": m.row, "col": m.col, "row_span": m.row_span, "col_span": m.col_span}
            for m in prop.merge_info
            if m is not None
        ],
    }
    return payload, synthetic


def block_to_payload(block: Block, *, linked: bool = False) -> dict[str, Any]:
    """Serialize *block* to a descriptor dict.

    Parameters
    ----------
    block:
        The block to serialize.
    linked:
        Include ``block_id``, ``parent_id`` and (when non-empty)
        ``children``, as tree mode does.
    """
    descriptor: dict[str, Any] = {}
    if linked:
        descriptor["block_id"] = block.id
        descriptor["parent_id"] = block.parent_id
    descriptor["block_type"] = int(block.type)
    if linked and block.children:
        descriptor["children"] = list(block.children)

    key = block.type.key
    if block.type is BlockType.IMAGE:
        descriptor[key] = {"token": block.token}
    elif block.type is BlockType.TABLE and block.table is not None:
        descriptor[key], descriptor["_table"] = _table_payload(block.table)
    elif block.type in _BARE_TYPES:
        descriptor[key] = {}
    else:
        descriptor[key] = {
            "style": dict(block.style),
            "elements": runs_to_elements(block.runs),
        }

    if block.type is BlockType.QUOTE_CONTAINER and block.quote_children:
        descriptor["_quote_children"] = [
            block_to_payload(child) for child in block.quote_children
        ]
    return descriptor
