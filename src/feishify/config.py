"""Converter configuration for feishify.

:class:`FeishifyConfig` is a plain dataclass that captures every tuneable
knob of the two conversion directions and of the upload planner.  Instances
are passed to :class:`~feishify.converter.MarkdownToFeishuConverter` and
:class:`~feishify.converter.FeishuToMarkdownRenderer`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

DEFAULT_ALIGN = 1
"""Platform code for left alignment."""

DEFAULT_CREATE_BATCH_SIZE = 50
"""Maximum number of blocks per children-create request."""


@dataclass
class FeishifyConfig:
    """Complete configuration for the converters.

    Every parameter has a default, so ``FeishifyConfig()`` is a valid
    configuration.

    Parameters
    ----------
    default_title:
        Title used when the Markdown has no leading ``# Title`` line.
    default_align:
        ``align`` style written on tree-mode text blocks.
    code_wrap:
        ``wrap`` style written on tree-mode code blocks.
    parse_task_items:
        Scan ``- [ ] item`` / ``- [x] item`` as todo blocks.  When off they
        stay bullets with the checkbox as literal text.
    flat_quote_style:
        How flat mode emits a run of ``>`` lines.

        * ``"quote"`` -- a single quote block, lines separated by newlines.
        * ``"container"`` -- a quote container carrying ``_quote_children``
          for the uploader to expand.
    cell_line_break:
        Marker joining the rendered children of a table cell.
    render_header_cells:
        Render the first row of a table with ``header_row`` set as ``<th>``.
    unknown_block_policy:
        How the renderer treats blocks of unrecognised type.

        * ``"passthrough"`` -- render only the children.
        * ``"comment"`` -- emit ``<!-- feishu:block_type=N -->`` then the
          children.
        * ``"raise"`` -- raise :class:`FeishifyUnsupportedBlockError`.
    max_depth:
        Maximum nesting depth the renderer descends into.  Deeper children
        are skipped with a ``MAX_DEPTH`` warning.
    create_batch_size:
        Blocks per ``children`` step in the upload plan.
    column_width_min:
        Lower bound (px) for computed table column widths.
    column_width_max:
        Upper bound (px) for computed table column widths.
    column_char_width:
        Width (px) of one display cell when sizing table columns.
    metrics:
        Optional :class:`~feishify.observability.MetricsHook`.
    debug_dump_blocks:
        Write the produced block descriptors to *stderr* on each scan.
    """

    # ── Scanning ────────────────────────────────────────────────────────
    default_title: str = "Untitled"

    default_align: int = DEFAULT_ALIGN

    code_wrap: bool = True

    parse_task_items: bool = True

    flat_quote_style: Literal["quote", "container"] = "quote"

    # ── Rendering ───────────────────────────────────────────────────────
    cell_line_break: str = "<br/>"

    render_header_cells: bool = True

    unknown_block_policy: Literal["passthrough", "comment", "raise"] = "passthrough"

    max_depth: int = 64

    # ── Upload planning ─────────────────────────────────────────────────
    create_batch_size: int = DEFAULT_CREATE_BATCH_SIZE

    column_width_min: int = 60

    column_width_max: int = 360

    column_char_width: int = 10

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_blocks: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.flat_quote_style not in ("quote", "container"):
            raise ValueError(
                f"flat_quote_style must be 'quote' or 'container', got {self.flat_quote_style!r}"
            )
        if self.unknown_block_policy not in ("passthrough", "comment", "raise"):
            raise ValueError(
                "unknown_block_policy must be 'passthrough', 'comment' or 'raise', "
                f"got {self.unknown_block_policy!r}"
            )
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        if self.create_batch_size < 1:
            raise ValueError(f"create_batch_size must be >= 1, got {self.create_batch_size}")
        if self.column_width_min < 0:
            raise ValueError(f"column_width_min must be >= 0, got {self.column_width_min}")
        if self.column_width_max < self.column_width_min:
            raise ValueError(
                f"column_width_max ({self.column_width_max}) must be >= "
                f"column_width_min ({self.column_width_min})"
            )
        if self.column_char_width < 1:
            raise ValueError(f"column_char_width must be >= 1, got {self.column_char_width}")

