"""Descendant expansion and upload planning.

Some scanned descriptors cannot be created with a plain children-create
call: a table needs its cells and their text blocks created in the same
request, and so does a flat-mode quote container.  The scanner marks these
with synthetic payloads (``_table``, ``_quote_children``); this module
expands them into descendant-create bodies and splits a flat descriptor
list into the ordered sequence of calls an uploader has to make.

Nothing here performs I/O.  An uploader walks the returned
:class:`~feishify.models.UploadStep` list and posts each one.
"""

from __future__ import annotations

import re
from typing import Any

from feishify.config import FeishifyConfig
from feishify.errors import FeishifyValidationError
from feishify.models import BlockType, ConversionWarning, MergeSpan, UploadStep
from feishify.observability import get_logger
from feishify.utils.chunk import chunk_children
from feishify.utils.ids import IdGenerator

from .ingest import parse_anchored_merge
from .inline_parser import parse_inline
from .payloads import runs_to_elements

log = get_logger("feishify.converter")

_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_WIDE_RE = re.compile("[\u4e00-\u9fff\u3000-\u303f\uff00-\uffef]")


def display_width(text: str) -> int:
    """Approximate rendered width of *text* in single-width cells.

    Link markup counts as its visible text; CJK ideographs, CJK
    punctuation and full-width forms count double.

    Examples
    --------
    >>> display_width("[docs](https://example.com)")
    4
    >>> display_width("表格")
    4
    """
    visible = _LINK_RE.sub(r"\1", text)
    return sum(2 if _WIDE_RE.match(char) else 1 for char in visible)


def calculate_column_widths(
    rows: list[list[str]],
    col_size: int,
    config: FeishifyConfig | None = None,
) -> list[int]:
    """Pixel width per column from the widest cell text in each column."""
    config = config or FeishifyConfig()
    widest = [0] * col_size
    for row in rows:
        for c, text in enumerate(row[:col_size]):
            widest[c] = max(widest[c], display_width(text if isinstance(text, str) else ""))
    return [
        min(config.column_width_max, max(config.column_width_min, w * config.column_char_width))
        for w in widest
    ]


def _text_descriptor(block_id: str, elements: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "block_id": block_id,
        "block_type": int(BlockType.TEXT),
        "text": {"elements": elements, "style": {}},
        "children": [],
    }


def build_table_descendants(
    rows: list[list[str]],
    col_size: int,
    ids: IdGenerator,
    column_width: list[int] | None = None,
    *,
    header_row: bool = True,
) -> tuple[str, list[dict[str, Any]]]:
    """Expand a text grid into a table, its cells and their text blocks.

    Parameters
    ----------
    rows:
        Cell text by row.  Missing cells are created empty.
    col_size:
        Number of columns.
    ids:
        Source of the temporary block ids.
    column_width:
        Optional pixel widths, one per column.
    header_row:
        Mark the first row as the table header.

    Returns
    -------
    tuple[str, list[dict]]
        The table id and the descendants, table first, then each cell
        followed by its text block in row-major order.

    Raises
    ------
    FeishifyValidationError
        If *col_size* is less than 1.
    """
    if col_size < 1:
        raise FeishifyValidationError(
            message=f"Table needs at least one column, got {col_size}",
            context={"field": "column_size", "value": col_size, "constraint": ">= 1"},
        )

    table_id = ids.next("tbl")
    cell_ids: list[str] = []
    descendants: list[dict[str, Any]] = []

    for row in rows:
        for c in range(col_size):
            cell_id = ids.next("cell")
            text_id = ids.next("txt")
            text = row[c] if c < len(row) and isinstance(row[c], str) else ""
            descendants.append({
                "block_id": cell_id,
                "block_type": int(BlockType.TABLE_CELL),
                "table_cell": {},
                "children": [text_id],
            })
            descendants.append(_text_descriptor(text_id, runs_to_elements(parse_inline(text))))
            cell_ids.append(cell_id)

    prop: dict[str, Any] = {
        "row_size": len(rows),
        "column_size": col_size,
        "header_row": header_row,
    }
    if column_width is not None:
        prop["column_width"] = list(column_width)

    descendants.insert(0, {
        "block_id": table_id,
        "block_type": int(BlockType.TABLE),
        "table": {"property": prop},
        "children": cell_ids,
    })
    return table_id, descendants


def build_quote_container_descendants(
    block: dict[str, Any],
    ids: IdGenerator,
) -> tuple[str, list[dict[str, Any]]]:
    """Expand a flat quote container into the container and its text lines."""
    quote_id = ids.next("quote")
    child_ids: list[str] = []
    descendants: list[dict[str, Any]] = []

    for child in block.get("_quote_children") or []:
        child_id = ids.next("qtxt")
        child_ids.append(child_id)
        text = child.get("text") if isinstance(child, dict) else None
        elements = (text or {}).get("elements") or runs_to_elements([])
        descendants.append(_text_descriptor(child_id, elements))

    descendants.insert(0, {
        "block_id": quote_id,
        "block_type": int(BlockType.QUOTE_CONTAINER),
        "quote_container": {},
        "children": child_ids,
    })
    return quote_id, descendants


def _table_geometry(block: dict[str, Any]) -> tuple[list[list[str]], int]:
    rows = (block.get("_table") or {}).get("rows") or []
    prop = (block.get("table") or {}).get("property") or {}
    col_size = prop.get("column_size") or (len(rows[0]) if rows else 0)
    return rows, col_size


def _table_merges(block: dict[str, Any], row_size: int, col_size: int) -> list[MergeSpan]:
    """Spans from ``_table.merges`` that cover more than one cell of the grid."""
    merges: list[MergeSpan] = []
    for value in (block.get("_table") or {}).get("merges") or []:
        span = parse_anchored_merge(value)
        if span is None or not (0 <= span.row < row_size and 0 <= span.col < col_size):
            continue
        row_span = min(span.row_span, row_size - span.row)
        col_span = min(span.col_span, col_size - span.col)
        if row_span > 1 or col_span > 1:
            merges.append(MergeSpan(span.row, span.col, row_span, col_span))
    return merges


def plan_upload(
    blocks: list[dict[str, Any]],
    config: FeishifyConfig | None = None,
    *,
    ids: IdGenerator | None = None,
    warnings: list[ConversionWarning] | None = None,
) -> list[UploadStep]:
    """Split flat descriptors into the ordered create calls that upload them.

    Consecutive directly postable blocks are batched into ``"children"``
    steps of at most ``config.create_batch_size`` blocks.  Tables carrying
    ``_table`` and quote containers carrying ``_quote_children`` each become
    one ``"descendant"`` step.  Every step records the container index it
    inserts at.

    Parameters
    ----------
    blocks:
        Flat-mode descriptors, e.g. ``ParseResult.blocks``.
    config:
        Batch size and column sizing.  Defaults to ``FeishifyConfig()``.
    ids:
        Source of temporary ids.  A fresh generator is used when omitted.
    warnings:
        Optional list receiving an ``EMPTY_TABLE`` warning for each table
        that has no rows or columns; such tables are left out of the plan.
    """
    config = config or FeishifyConfig()
    ids = ids or IdGenerator("tmp")
    steps: list[UploadStep] = []
    buffer: list[dict[str, Any]] = []
    index = 0

    def flush() -> None:
        nonlocal index
        for batch in chunk_children(buffer, config.create_batch_size):
            steps.append(UploadStep(kind="children", index=index, children=batch))
            index += len(batch)
        buffer.clear()

    for position, block in enumerate(blocks):
        block_type = block.get("block_type")

        if block_type == BlockType.TABLE and "_table" in block:
            flush()
            rows, col_size = _table_geometry(block)
            if not rows or not col_size:
                warning = ConversionWarning(
                    code="EMPTY_TABLE",
                    message="Table has no rows or columns; not uploaded.",
                    context={"position": position},
                )
                if warnings is not None:
                    warnings.append(warning)
                log.debug(warning.message, extra={"extra_fields": {"op": "plan", **warning.context}})
                continue
            widths = calculate_column_widths(rows, col_size, config)
            prop = (block.get("table") or {}).get("property") or {}
            table_id, descendants = build_table_descendants(
                rows, col_size, ids, widths, header_row=bool(prop.get("header_row", True)),
            )
            steps.append(UploadStep(
                kind="descendant",
                index=index,
                children_id=[table_id],
                descendants=descendants,
                merges=_table_merges(block, len(rows), col_size),
            ))
            index += 1
            continue

        if block_type == BlockType.QUOTE_CONTAINER and "_quote_children" in block:
            flush()
            quote_id, descendants = build_quote_container_descendants(block, ids)
            steps.append(UploadStep(
                kind="descendant", index=index, children_id=[quote_id], descendants=descendants,
            ))
            index += 1
            continue

        buffer.append(block)

    flush()
    log.debug(
        "Upload planned",
        extra={"extra_fields": {"op": "plan", "blocks": len(blocks), "steps": len(steps)}},
    )
    return steps
