"""Feishu block tree to Markdown renderer.

Converts a raw document (``{"blocks": [...], "metadata": {...}}``) into a
Markdown string.  Raw blocks are ingested once into a
:class:`~feishify.converter.ingest.BlockArena`; rendering then walks index
lists from the resolved root.

Usage::

    from feishify.config import FeishifyConfig
    from feishify.converter.feishu_to_md import FeishuToMarkdownRenderer

    renderer = FeishuToMarkdownRenderer(FeishifyConfig())
    md = renderer.render_document(doc)
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable as _Callable
from typing import Any

from feishify.config import FeishifyConfig
from feishify.errors import FeishifyUnsupportedBlockError
from feishify.models import Block, BlockType, ConversionWarning
from feishify.observability import get_logger, resolve_metrics

from .ingest import BlockArena, ingest_document
from .inline_renderer import render_runs
from .languages import language_name
from .tables import grid_from_cells, pad_rows, render_html_table

log = get_logger("feishify.converter")

_INDENT = "  "

_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


class FeishuToMarkdownRenderer:
    """Stateful renderer that converts a Feishu block tree to Markdown.

    The renderer accumulates :class:`ConversionWarning` instances in
    :attr:`warnings` during a :meth:`render_document` call so that callers
    can inspect non-fatal issues after rendering completes.

    Parameters
    ----------
    config:
        Configuration controlling ``unknown_block_policy``,
        ``cell_line_break``, ``render_header_cells`` and ``max_depth``.
    """

    def __init__(self, config: FeishifyConfig) -> None:
        self._config = config
        self._metrics = resolve_metrics(config.metrics)
        self.warnings: list[ConversionWarning] = []
        self._arena = BlockArena([])
        self._visiting: set[int] = set()
        self._rendered = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render_document(self, doc: Any) -> str:
        """Render a raw document to Markdown.

        Parameters
        ----------
        doc:
            The platform document: a dict with ``blocks`` and optionally
            ``metadata.document_id`` / ``document.document_id``.

        Returns
        -------
        str
            Markdown with no run of three or more newlines and exactly one
            trailing newline, or ``""`` when the document has no blocks.
        """
        self.warnings = []
        self._visiting = set()
        self._rendered = 0

        t0 = time.monotonic()
        arena, root = ingest_document(doc)
        self._arena = arena
        if root is None:
            return ""

        for parent, child_id in arena.missing:
            self._warn(
                "MISSING_CHILD",
                f"Child block {child_id!r} not found; skipped.",
                block_id=arena.blocks[parent].id,
                child_id=child_id,
            )

        rendered = self._render_block(root, 0, 0)
        markdown = _EXCESS_NEWLINES_RE.sub("\n\n", rendered).rstrip("\n") + "\n"

        elapsed_ms = (time.monotonic() - t0) * 1000
        self._metrics.increment("feishify.blocks_rendered_total", self._rendered)
        self._metrics.timing("feishify.render_duration_ms", elapsed_ms)
        log.debug(
            "Block tree rendered",
            extra={
                "extra_fields": {
                    "op": "render",
                    "blocks": len(arena),
                    "rendered": self._rendered,
                    "warnings": len(self.warnings),
                    "duration_ms": round(elapsed_ms, 3),
                }
            },
        )
        return markdown

    # ------------------------------------------------------------------
    # Internal: dispatch and child iteration
    # ------------------------------------------------------------------

    def _render_block(self, idx: int, indent: int, depth: int) -> str:
        """Render block *idx* and everything below it as joined lines."""
        block = self._arena.blocks[idx]
        if idx in self._visiting:
            self._warn(
                "CYCLE_DETECTED",
                f"Block {block.id!r} is its own ancestor; skipped.",
                block_id=block.id,
            )
            return ""

        self._visiting.add(idx)
        try:
            self._rendered += 1
            renderer = _BLOCK_RENDERERS.get(block.type, FeishuToMarkdownRenderer._render_unknown)
            lines = renderer(self, idx, block, indent, depth)
        finally:
            self._visiting.discard(idx)
        return "\n".join(lines)

    def _render_children(self, idx: int, lines: list[str], indent: int, depth: int) -> None:
        """Append the rendering of block *idx*'s children to *lines*."""
        child_indices = self._arena.children[idx]
        if not child_indices:
            return
        if depth + 1 > self._config.max_depth:
            self._warn(
                "MAX_DEPTH",
                f"Children below depth {self._config.max_depth} were skipped.",
                block_id=self._arena.blocks[idx].id,
            )
            return

        for child_idx in child_indices:
            child = self._arena.blocks[child_idx]

            if _is_blank_text(child):
                if not lines or lines[-1] != "":
                    lines.append("")
                continue

            # Keep a paragraph above a divider from becoming a setext heading.
            if child.type is BlockType.DIVIDER and lines and _last_line(lines).strip():
                lines.append("")

            rendered = self._render_block(child_idx, indent, depth + 1)
            if rendered:
                lines.append(rendered)

    def _text(self, block: Block) -> str:
        return render_runs(block.runs, self.warnings)

    def _ordinal(self, idx: int) -> int:
        """1-based position of *idx* among its parent's ordered children."""
        parent = self._arena.parents[idx]
        if parent is None:
            return 1
        order = 1
        for sibling in self._arena.children[parent]:
            if sibling == idx:
                break
            if self._arena.blocks[sibling].type is BlockType.ORDERED:
                order += 1
        return order

    def _warn(self, code: str, message: str, **context: Any) -> None:
        self.warnings.append(ConversionWarning(code=code, message=message, context=context))
        self._metrics.increment("feishify.conversion_warnings_total", tags={"code": code})
        log.debug(message, extra={"extra_fields": {"op": "render", "code": code, **context}})

    # ------------------------------------------------------------------
    # Block type renderers
    # ------------------------------------------------------------------

    def _render_page(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        lines = [f"# {self._text(block)}".rstrip(), "---"]
        self._render_children(idx, lines, indent, depth)
        return lines

    def _render_text(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        line = f"{_INDENT * indent}{self._text(block)}".rstrip(" \t")
        if not line.strip():
            return [""]
        return [f"{line}  "]

    def _render_heading(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        level = block.type.heading_level or 1
        lines = [f"{'#' * level} {self._text(block)}".rstrip()]
        self._render_children(idx, lines, indent, depth)
        return lines

    def _render_bullet(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        lines = [f"{_INDENT * indent}- {self._text(block)}".rstrip()]
        self._render_children(idx, lines, indent + 1, depth)
        return lines

    def _render_ordered(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        number = self._ordinal(idx)
        lines = [f"{_INDENT * indent}{number}. {self._text(block)}".rstrip()]
        self._render_children(idx, lines, indent + 1, depth)
        return lines

    def _render_todo(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        checkbox = "[x]" if block.done else "[ ]"
        lines = [f"{_INDENT * indent}- {checkbox} {self._text(block)}".rstrip()]
        self._render_children(idx, lines, indent + 1, depth)
        return lines

    def _render_code(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        fence = f"```{language_name(block.language)}".rstrip()
        body = self._text(block).rstrip("\n")
        return [fence, body, "```"]

    def _render_quote(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        return [f"{_INDENT * indent}> {self._text(block)}".rstrip()]

    def _render_quote_container(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        lines: list[str] = []
        if depth + 1 > self._config.max_depth and self._arena.children[idx]:
            self._warn(
                "MAX_DEPTH",
                f"Children below depth {self._config.max_depth} were skipped.",
                block_id=block.id,
            )
            return lines
        for child_idx in self._arena.children[idx]:
            for line in self._render_block(child_idx, indent, depth + 1).split("\n"):
                lines.append(f"> {line}" if line else ">")
        return lines

    def _render_divider(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        return [f"{_INDENT * indent}---".rstrip()]

    def _render_image(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        return [f"{_INDENT * indent}![]({block.token})".rstrip()]

    def _render_table(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        """Render a table block as HTML.

        Cell ids are laid out row-major over ``column_size``.  A table with
        no cell ids falls back to the pending text grid carried by
        scanner-produced descriptors.
        """
        prop = block.table
        if prop is None:
            return []

        if prop.cells and prop.column_size > 0:
            texts = [self._render_cell_text(cell_id, depth) for cell_id in prop.cells]
            rows = grid_from_cells(texts, prop.column_size)
        elif prop.pending_rows:
            rows = pad_rows(prop.pending_rows)
        else:
            return []

        merges = [m for m in prop.merge_info if m is not None]
        header = prop.header_row and self._config.render_header_cells
        return [render_html_table(rows, merges, header_row=header)]

    def _render_cell_text(self, cell_id: str, depth: int) -> str:
        cell_idx = self._arena.index_of(cell_id)
        if cell_idx is None:
            self._warn(
                "MISSING_CHILD",
                f"Table cell {cell_id!r} not found; rendered empty.",
                child_id=cell_id,
            )
            return ""
        return self._render_block(cell_idx, 0, depth + 1).replace("\n", "")

    def _render_table_cell(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        if depth + 1 > self._config.max_depth:
            return [""]
        parts: list[str] = []
        for child_idx in self._arena.children[idx]:
            rendered = self._render_block(child_idx, 0, depth + 1)
            parts.append(rendered.rstrip())
        return [self._config.cell_line_break.join(parts)]

    # ------------------------------------------------------------------
    # Unknown block fallback
    # ------------------------------------------------------------------

    def _render_unknown(self, idx: int, block: Block, indent: int, depth: int) -> list[str]:
        """Handle blocks whose type the ingestion boundary did not recognise.

        Behaviour is governed by ``config.unknown_block_policy``:

        * ``"passthrough"`` -- render only the children.
        * ``"comment"`` -- emit an HTML comment naming the type, then the
          children.
        * ``"raise"`` -- raise :class:`FeishifyUnsupportedBlockError`.
        """
        policy = self._config.unknown_block_policy
        if policy == "raise":
            raise FeishifyUnsupportedBlockError(
                message=f"Cannot render block type: {block.raw_type}",
                context={"block_id": block.id, "block_type": block.raw_type},
            )

        self._warn(
            "UNKNOWN_BLOCK",
            f"Block {block.id!r} has an unrecognised type; rendering children only.",
            block_id=block.id,
            block_type=block.raw_type,
        )
        lines: list[str] = []
        if policy == "comment":
            kind = block.raw_type if block.raw_type is not None else "unknown"
            lines.append(f"<!-- feishu:block_type={kind} -->")
        self._render_children(idx, lines, indent, depth)
        return lines


# ------------------------------------------------------------------
# Block renderer dispatch table
# ------------------------------------------------------------------

_BlockRenderer = _Callable[["FeishuToMarkdownRenderer", int, Block, int, int], "list[str]"]

_BLOCK_RENDERERS: dict[BlockType, _BlockRenderer] = {
    BlockType.PAGE: FeishuToMarkdownRenderer._render_page,
    BlockType.TEXT: FeishuToMarkdownRenderer._render_text,
    **{BlockType.heading(level): FeishuToMarkdownRenderer._render_heading for level in range(1, 10)},
    BlockType.BULLET: FeishuToMarkdownRenderer._render_bullet,
    BlockType.ORDERED: FeishuToMarkdownRenderer._render_ordered,
    BlockType.CODE: FeishuToMarkdownRenderer._render_code,
    BlockType.QUOTE: FeishuToMarkdownRenderer._render_quote,
    BlockType.TODO: FeishuToMarkdownRenderer._render_todo,
    BlockType.DIVIDER: FeishuToMarkdownRenderer._render_divider,
    BlockType.IMAGE: FeishuToMarkdownRenderer._render_image,
    BlockType.TABLE: FeishuToMarkdownRenderer._render_table,
    BlockType.TABLE_CELL: FeishuToMarkdownRenderer._render_table_cell,
    BlockType.QUOTE_CONTAINER: FeishuToMarkdownRenderer._render_quote_container,
}

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _is_blank_text(block: Block) -> bool:
    return block.type is BlockType.TEXT and not render_runs(block.runs).strip()


def _last_line(lines: list[str]) -> str:
    return lines[-1].rsplit("\n", 1)[-1]


def blocks_to_markdown(doc: Any, config: FeishifyConfig | None = None) -> str:
    """Render a raw Feishu document to Markdown with a one-off renderer."""
    return FeishuToMarkdownRenderer(config or FeishifyConfig()).render_document(doc)

