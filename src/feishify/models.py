"""Public data models for feishify.

Every type referenced by the converter surface lives here: the block and
run tagged unions, table geometry, conversion results and the upload plan.
All types are plain dataclasses with no behaviour beyond small derived
properties.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(IntEnum):
    """Closed set of block variants, valued by the platform's numeric code."""

    UNKNOWN = 0
    """Anything the ingestion boundary could not classify."""

    PAGE = 1
    TEXT = 2
    HEADING1 = 3
    HEADING2 = 4
    HEADING3 = 5
    HEADING4 = 6
    HEADING5 = 7
    HEADING6 = 8
    HEADING7 = 9
    HEADING8 = 10
    HEADING9 = 11
    BULLET = 12
    ORDERED = 13
    CODE = 14
    QUOTE = 15
    TODO = 17
    DIVIDER = 22
    IMAGE = 27
    TABLE = 31
    TABLE_CELL = 32
    QUOTE_CONTAINER = 34

    @property
    def key(self) -> str:
        """Payload key used by the platform JSON (``"heading2"``, ``"todo"``...)."""
        return self.name.lower()

    @property
    def heading_level(self) -> int | None:
        if BlockType.HEADING1 <= self <= BlockType.HEADING9:
            return self - BlockType.HEADING1 + 1
        return None

    @classmethod
    def heading(cls, level: int) -> BlockType:
        """Return the heading variant for *level* (1-9)."""
        return cls(cls.HEADING1 + level - 1)


class RunStyle(str, Enum):
    """The single style (or special payload) carried by a :class:`Run`."""

    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    UNDERLINE = "underline"
    INLINE_CODE = "inline_code"
    LINK = "link"
    MENTION_USER = "mention_user"
    MENTION_DOC = "mention_doc"
    EQUATION = "equation"
    UNKNOWN = "unknown"
    """Element with no recognised payload.  Renders as an empty string."""


# ---------------------------------------------------------------------------
# Conversion warnings
# ---------------------------------------------------------------------------

@dataclass
class ConversionWarning:
    """A non-fatal issue encountered during conversion.

    Attributes
    ----------
    code:
        A machine-readable warning code (e.g. ``"UNKNOWN_BLOCK"``).
    message:
        A human-readable description of the issue.
    context:
        Arbitrary structured data for diagnostics.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Runs and blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Run:
    """A span of text with exactly one style.

    Attributes
    ----------
    content:
        The text.  For ``MENTION_USER`` this is the user id, for
        ``MENTION_DOC`` the document title, for ``EQUATION`` the expression.
    style:
        One :class:`RunStyle`.
    url:
        Decoded target URL for ``LINK`` and ``MENTION_DOC`` runs.
    """

    content: str = ""
    style: RunStyle = RunStyle.PLAIN
    url: str = ""


@dataclass(frozen=True)
class MergeSpan:
    """A rectangular region of table cells rendered as one cell."""

    row: int
    col: int
    row_span: int = 1
    col_span: int = 1

    def covers(self, row: int, col: int) -> bool:
        return (
            self.row <= row < self.row + self.row_span
            and self.col <= col < self.col + self.col_span
        )


@dataclass
class TableProperty:
    """Geometry and cell references of a ``table`` block.

    Platform ``merge_info`` is indexed like ``cells``: entry ``i`` becomes a
    span anchored at ``(i // column_size, i % column_size)``, and ``None``
    where the entry is empty.  ``pending_rows`` holds the synthetic text grid
    of scanner-produced tables that have no real cells yet; their spans come
    from the synthetic ``_table.merges`` list.
    """

    row_size: int = 0
    column_size: int = 0
    header_row: bool = False
    header_column: bool = False
    cells: list[str] = field(default_factory=list)
    merge_info: list[MergeSpan | None] = field(default_factory=list)
    pending_rows: list[list[str]] = field(default_factory=list)


@dataclass
class Block:
    """One node of the document tree.

    Only the payload fields relevant to :attr:`type` are meaningful; the
    rest keep their defaults.
    """

    id: str
    type: BlockType
    parent_id: str = ""
    children: list[str] = field(default_factory=list)
    runs: list[Run] = field(default_factory=list)
    style: dict[str, Any] = field(default_factory=dict)
    done: bool = False
    language: int | str | None = None
    token: str = ""
    table: TableProperty | None = None
    quote_children: list[Block] = field(default_factory=list)
    raw_type: int | None = None
    """Original numeric type of an ``UNKNOWN`` block, when one was given."""


@dataclass
class TableGrid:
    """Rectangular matrix of cell text produced by the table parsers."""

    rows: list[list[str]]
    header_row: bool = False
    merges: list[MergeSpan] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def col_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0


# ---------------------------------------------------------------------------
# Conversion results
# ---------------------------------------------------------------------------

@dataclass
class ParseResult:
    """Flat-mode output of :class:`MarkdownToFeishuConverter`.

    Attributes
    ----------
    title:
        Document title taken from a leading ``# Title`` line.
    blocks:
        Parent-agnostic block descriptors ready to append to a container.
    warnings:
        Non-fatal issues encountered during the scan.
    """

    title: str
    blocks: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[ConversionWarning] = field(default_factory=list)


@dataclass
class DocumentTree:
    """Tree-mode output: a synthetic page root plus every descendant.

    ``metadata["document_id"]`` is the id of the page block, which is
    always ``blocks[0]``.
    """

    metadata: dict[str, Any]
    blocks: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[ConversionWarning] = field(default_factory=list)


@dataclass
class UploadStep:
    """One create call an uploader has to issue, in document order.

    Attributes
    ----------
    kind:
        ``"children"`` for a batch of directly postable blocks,
        ``"descendant"`` for a block posted together with its pre-built
        descendants.
    children:
        The blocks of a ``"children"`` step.
    children_id:
        Top-level ids of a ``"descendant"`` step.
    descendants:
        Every block of a ``"descendant"`` step, parents before children.
    index:
        Position in the target container at which the step inserts.
    merges:
        Cell spans of a table step.  The platform creates tables unmerged,
        so an uploader merges these cells once the table exists.
    """

    kind: Literal["children", "descendant"]
    index: int = 0
    children: list[dict[str, Any]] = field(default_factory=list)
    children_id: list[str] = field(default_factory=list)
    descendants: list[dict[str, Any]] = field(default_factory=list)
    merges: list[MergeSpan] = field(default_factory=list)
