"""Markdown to Feishu block descriptor conversion.

:class:`MarkdownToFeishuConverter` runs a line scanner over the Markdown
text and then emits the scanned units in one of two shapes:

1. **Flat** (:meth:`~MarkdownToFeishuConverter.convert`) -- one
   parent-agnostic descriptor per unit, for appending into an existing
   container.
2. **Tree** (:meth:`~MarkdownToFeishuConverter.convert_document`) -- a
   synthetic page root plus every block, linked through ``block_id``,
   ``parent_id`` and ``children``, for whole-document creation.

The scanner tries, at each line, in this order: HTML table, pipe table,
fenced code, quoted lines, horizontal rule, ATX heading, image-only line,
list item, blank line, and finally paragraph text.  Anything it does not
recognise becomes paragraph text.
"""

from __future__ import annotations

import json
import re
import sys
import time
from dataclasses import dataclass, field
from typing import Any

from feishify.config import FeishifyConfig
from feishify.models import (
    Block,
    BlockType,
    ConversionWarning,
    DocumentTree,
    ParseResult,
    Run,
)
from feishify.observability import get_logger, resolve_metrics
from feishify.utils.ids import IdGenerator

from .inline_parser import parse_inline, parse_inline_lines
from .languages import language_code
from .payloads import block_to_payload, runs_to_elements, table_property
from .tables import parse_html_table, parse_markdown_table

log = get_logger("feishify.converter")

_HARD_BREAK_RE = re.compile(r"[ \t]{2,}$")
_HEADING_RE = re.compile(r"^(#{1,9})\s+(.*)$")
_IMAGE_RE = re.compile(r"^!\[[^\]]*\]\(([^)]+)\)$")
_LIST_RE = re.compile(r"^(\s*)([-*+]\s+|\d+\.\s+)(.*)$")
_TASK_RE = re.compile(r"^\[([ xX])\](?:\s+(.*))?$")
_QUOTE_PREFIX_RE = re.compile(r"^\s*>\s?")
_FENCE_RE = re.compile(r"^(`{3,}|~{3,})(.*)$")

_RULES: frozenset[str] = frozenset({"---", "***", "___"})


@dataclass
class _Unit:
    """One scanned element of the Markdown body, before id assignment."""

    block: Block
    list_level: int | None = None
    quote_lines: list[str] = field(default_factory=list)
    blank: bool = False


def split_markdown_lines(markdown: str) -> list[str]:
    """Normalise line endings and split into lines."""
    return markdown.replace("\r\n", "\n").replace("\r", "\n").split("\n")


class MarkdownToFeishuConverter:
    """Convert Markdown text to Feishu block descriptors.

    Parameters
    ----------
    config:
        Configuration controlling the default title, tree-mode styles,
        task-item scanning and the flat quote shape.

    Examples
    --------
    >>> from feishify.config import FeishifyConfig
    >>> converter = MarkdownToFeishuConverter(FeishifyConfig())
    >>> result = converter.convert("# Doc\\n\\nHello")
    >>> result.title
    'Doc'
    >>> result.blocks[0]["block_type"]
    2
    """

    def __init__(self, config: FeishifyConfig) -> None:
        self._config = config
        self._metrics = resolve_metrics(config.metrics)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(self, markdown: str) -> ParseResult:
        """Scan *markdown* into a flat descriptor list.

        Returns
        -------
        ParseResult
            The title and one descriptor per scanned unit, each with an
            empty ``style`` apart from ``done`` on todos and a known
            ``language`` on code blocks.
        """
        t0 = time.monotonic()
        warnings: list[ConversionWarning] = []
        title, units = self._scan(markdown, warnings)

        blocks = [block_to_payload(self._flat_block(unit)) for unit in units]

        self._finish("flat", blocks, warnings, t0)
        return ParseResult(title=title, blocks=blocks, warnings=warnings)

    def convert_document(self, markdown: str) -> DocumentTree:
        """Scan *markdown* into a fully linked block tree.

        Returns
        -------
        DocumentTree
            ``blocks[0]`` is the synthetic page root (``local_1``); every
            other block names its parent and lists its children.
        """
        t0 = time.monotonic()
        warnings: list[ConversionWarning] = []
        title, units = self._scan(markdown, warnings)

        ids = IdGenerator()
        blocks = self._build_tree(title, units, ids)
        payloads = [block_to_payload(block, linked=True) for block in blocks]
        root_id = blocks[0].id

        self._finish("tree", payloads, warnings, t0)
        return DocumentTree(
            metadata={"document_id": root_id, "revision_id": 1, "title": title},
            blocks=payloads,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _split_title(self, lines: list[str]) -> tuple[str, int]:
        """Consume leading blanks and an optional ``# Title`` / ``---`` pair."""
        title = self._config.default_title
        i = 0
        while i < len(lines) and not lines[i].strip():
            i += 1
        if i < len(lines) and lines[i].startswith("# "):
            title = lines[i][2:].strip() or title
            i += 1
            if i < len(lines) and lines[i].strip() == "---":
                i += 1
            while i < len(lines) and not lines[i].strip():
                i += 1
        return title, i

    def _scan(self, markdown: str, warnings: list[ConversionWarning]) -> tuple[str, list[_Unit]]:
        lines = split_markdown_lines(markdown)
        title, i = self._split_title(lines)

        units: list[_Unit] = []
        paragraph: list[str] = []

        def flush_paragraph() -> None:
            if paragraph:
                units.append(_Unit(_text_block(parse_inline(" ".join(paragraph)))))
                paragraph.clear()

        while i < len(lines):
            line = lines[i]
            trimmed = line.strip()

            # --- Tables ----------------------------------------------------
            parsed = parse_html_table(lines, i) or parse_markdown_table(lines, i)
            if parsed is not None:
                flush_paragraph()
                grid, i = parsed
                units.append(_Unit(Block(id="", type=BlockType.TABLE, table=table_property(grid))))
                continue

            # --- Fenced code -----------------------------------------------
            fence = _FENCE_RE.match(trimmed)
            if fence is not None:
                flush_paragraph()
                i = self._scan_code(lines, i, fence, units, warnings)
                continue

            # --- Quoted lines ----------------------------------------------
            if trimmed.startswith(">"):
                flush_paragraph()
                quote_lines: list[str] = []
                while i < len(lines) and lines[i].strip().startswith(">"):
                    quote_lines.append(_QUOTE_PREFIX_RE.sub("", lines[i], count=1))
                    i += 1
                block = Block(id="", type=BlockType.QUOTE, runs=parse_inline_lines(quote_lines))
                units.append(_Unit(block, quote_lines=quote_lines))
                continue

            # --- Horizontal rule -------------------------------------------
            if trimmed in _RULES:
                flush_paragraph()
                units.append(_Unit(Block(id="", type=BlockType.DIVIDER)))
                i += 1
                continue

            # --- ATX heading -----------------------------------------------
            heading = _HEADING_RE.match(trimmed)
            if heading is not None:
                flush_paragraph()
                level = len(heading.group(1))
                block_type = BlockType.heading(level)
                units.append(_Unit(Block(id="", type=block_type, runs=parse_inline(heading.group(2).strip()))))
                i += 1
                continue

            # --- Image-only line -------------------------------------------
            image = _IMAGE_RE.match(trimmed)
            if image is not None:
                flush_paragraph()
                units.append(_Unit(Block(id="", type=BlockType.IMAGE, token=image.group(1))))
                i += 1
                continue

            # --- List item -------------------------------------------------
            item = _LIST_RE.match(line)
            if item is not None:
                flush_paragraph()
                units.append(self._list_unit(item))
                i += 1
                continue

            # --- Blank line ------------------------------------------------
            if not trimmed:
                flush_paragraph()
                units.append(_Unit(_text_block([Run("")]), blank=True))
                i += 1
                continue

            # --- Paragraph text --------------------------------------------
            paragraph.append(trimmed)
            if _HARD_BREAK_RE.search(line):
                flush_paragraph()
            i += 1

        flush_paragraph()
        return title, units

    def _scan_code(
        self,
        lines: list[str],
        start: int,
        fence: re.Match[str],
        units: list[_Unit],
        warnings: list[ConversionWarning],
    ) -> int:
        """Consume a fenced code block; return the index after its closing fence."""
        marker = fence.group(1)
        info = fence.group(2).strip()
        tag = info.split()[0] if info else ""

        body: list[str] = []
        i = start + 1
        while i < len(lines) and not lines[i].strip().startswith(marker):
            body.append(lines[i])
            i += 1

        language = language_code(tag) if tag else None
        if tag and language is None:
            warnings.append(ConversionWarning(
                code="UNKNOWN_LANGUAGE",
                message=f"Code language {tag!r} has no platform code; omitted.",
                context={"language": tag, "line": start + 1},
            ))

        units.append(_Unit(Block(
            id="",
            type=BlockType.CODE,
            runs=[Run("\n".join(body))],
            language=language,
        )))
        return i + 1

    def _list_unit(self, item: re.Match[str]) -> _Unit:
        leading, marker, content = item.group(1), item.group(2).strip(), item.group(3).strip()
        level = len(leading.expandtabs(4)) // 2

        if marker[0].isdigit():
            return _Unit(Block(id="", type=BlockType.ORDERED, runs=parse_inline(content)), list_level=level)

        task = _TASK_RE.match(content) if self._config.parse_task_items else None
        if task is not None:
            block = Block(
                id="",
                type=BlockType.TODO,
                runs=parse_inline((task.group(2) or "").strip()),
                done=task.group(1) in "xX",
            )
            return _Unit(block, list_level=level)

        return _Unit(Block(id="", type=BlockType.BULLET, runs=parse_inline(content)), list_level=level)

    # ------------------------------------------------------------------
    # Flat emission
    # ------------------------------------------------------------------

    def _flat_block(self, unit: _Unit) -> Block:
        block = unit.block
        if unit.quote_lines and self._config.flat_quote_style == "container":
            return Block(
                id="",
                type=BlockType.QUOTE_CONTAINER,
                quote_children=[_text_block(parse_inline(line)) for line in unit.quote_lines],
            )
        if block.type is BlockType.TODO:
            block.style = {"done": block.done}
        elif block.type is BlockType.CODE and block.language is not None:
            block.style = {"language": block.language}
        return block

    # ------------------------------------------------------------------
    # Tree emission
    # ------------------------------------------------------------------

    def _build_tree(self, title: str, units: list[_Unit], ids: IdGenerator) -> list[Block]:
        """Assign ids and link every unit under a synthetic page root.

        List items nest through a per-level stack of block ids: an item at
        level ``n`` becomes a child of the stack entry at ``n - 1``.  Levels
        more than one deeper than the stack are clamped, and every non-list
        unit other than a blank line empties the stack.
        """
        root = Block(
            id=ids.next(),
            type=BlockType.PAGE,
            runs=parse_inline(title),
            style={"align": self._config.default_align},
        )
        blocks = [root]
        by_id = {root.id: root}
        list_stack: list[str] = []

        def attach(block: Block, parent: Block) -> None:
            block.id = ids.next()
            block.parent_id = parent.id
            parent.children.append(block.id)
            blocks.append(block)
            by_id[block.id] = block

        for unit in units:
            block = unit.block

            if unit.list_level is not None:
                level = min(unit.list_level, len(list_stack))
                parent = by_id[list_stack[level - 1]] if level > 0 else root
                block.style = self._tree_style(block)
                attach(block, parent)
                del list_stack[level:]
                list_stack.append(block.id)
                continue

            if not unit.blank:
                list_stack.clear()

            if unit.quote_lines:
                container = Block(id="", type=BlockType.QUOTE_CONTAINER)
                attach(container, root)
                for line in unit.quote_lines:
                    child = _text_block(parse_inline(line))
                    child.style = self._tree_style(child)
                    attach(child, container)
                continue

            block.style = self._tree_style(block)
            attach(block, root)

        return blocks

    def _tree_style(self, block: Block) -> dict[str, Any]:
        if block.type is BlockType.CODE:
            style: dict[str, Any] = {"wrap": self._config.code_wrap}
            if block.language is not None:
                style = {"language": block.language, **style}
            return style
        if block.type in (BlockType.DIVIDER, BlockType.IMAGE, BlockType.TABLE):
            return {}
        style = {"align": self._config.default_align, "folded": False}
        if block.type is BlockType.TODO:
            style["done"] = block.done
        return style

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _finish(
        self,
        mode: str,
        blocks: list[dict[str, Any]],
        warnings: list[ConversionWarning],
        t0: float,
    ) -> None:
        elapsed_ms = (time.monotonic() - t0) * 1000
        self._metrics.increment("feishify.blocks_parsed_total", len(blocks), tags={"mode": mode})
        self._metrics.timing("feishify.parse_duration_ms", elapsed_ms, tags={"mode": mode})
        for warning in warnings:
            self._metrics.increment("feishify.conversion_warnings_total", tags={"code": warning.code})
            log.debug(
                warning.message,
                extra={"extra_fields": {"op": "parse", "code": warning.code, **warning.context}},
            )
        log.debug(
            "Markdown scanned",
            extra={
                "extra_fields": {
                    "op": "parse",
                    "mode": mode,
                    "blocks": len(blocks),
                    "warnings": len(warnings),
                    "duration_ms": round(elapsed_ms, 3),
                }
            },
        )

        if self._config.debug_dump_blocks:
            print(
                f"[feishify] {mode} block descriptors:",
                json.dumps(blocks, indent=2, ensure_ascii=False),
                file=sys.stderr,
            )


def _text_block(runs: list[Run]) -> Block:
    return Block(id="", type=BlockType.TEXT, runs=runs)


# ---------------------------------------------------------------------------
# Module-level conveniences
# ---------------------------------------------------------------------------

def markdown_to_blocks(markdown: str, config: FeishifyConfig | None = None) -> ParseResult:
    """Flat-mode conversion with a one-off converter."""
    return MarkdownToFeishuConverter(config or FeishifyConfig()).convert(markdown)


def markdown_to_document(markdown: str, config: FeishifyConfig | None = None) -> DocumentTree:
    """Tree-mode conversion with a one-off converter."""
    return MarkdownToFeishuConverter(config or FeishifyConfig()).convert_document(markdown)


def inline_markdown_to_elements(text: str) -> list[dict[str, Any]]:
    """Parse inline Markdown straight to platform text elements."""
    return runs_to_elements(parse_inline(text))
