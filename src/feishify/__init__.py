"""feishify: bidirectional Markdown / Feishu docx block conversion.

Public re-exports
-----------------

* **Converters:** :class:`MarkdownToFeishuConverter`,
  :class:`FeishuToMarkdownRenderer` and their one-shot functions
* **Configuration:** :class:`FeishifyConfig`
* **Errors:** Every :class:`FeishifyError` subclass and :class:`ErrorCode`
* **Models:** Block and run types, results and the upload plan

Usage::

    from feishify import blocks_to_markdown, markdown_to_document

    tree = markdown_to_document("# Notes\\n\\n- first\\n  - nested")
    md = blocks_to_markdown({"blocks": tree.blocks, "metadata": tree.metadata})
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from feishify.config import DEFAULT_ALIGN, DEFAULT_CREATE_BATCH_SIZE, FeishifyConfig

# ── Converters ─────────────────────────────────────────────────────────
from feishify.converter import (
    FeishuToMarkdownRenderer,
    MarkdownToFeishuConverter,
    blocks_to_markdown,
    inline_markdown_to_elements,
    markdown_to_blocks,
    markdown_to_document,
    plan_upload,
)

# ── Errors ──────────────────────────────────────────────────────────────
from feishify.errors import (
    ErrorCode,
    FeishifyConversionError,
    FeishifyError,
    FeishifyUnsupportedBlockError,
    FeishifyValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from feishify.models import (
    Block,
    BlockType,
    ConversionWarning,
    DocumentTree,
    MergeSpan,
    ParseResult,
    Run,
    RunStyle,
    TableGrid,
    TableProperty,
    UploadStep,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Converters
    "MarkdownToFeishuConverter",
    "FeishuToMarkdownRenderer",
    "blocks_to_markdown",
    "markdown_to_blocks",
    "markdown_to_document",
    "inline_markdown_to_elements",
    "plan_upload",
    # Configuration
    "FeishifyConfig",
    "DEFAULT_ALIGN",
    "DEFAULT_CREATE_BATCH_SIZE",
    # Errors
    "FeishifyError",
    "ErrorCode",
    "FeishifyConversionError",
    "FeishifyUnsupportedBlockError",
    "FeishifyValidationError",
    # Models - blocks and runs
    "Block",
    "BlockType",
    "Run",
    "RunStyle",
    "TableProperty",
    "TableGrid",
    "MergeSpan",
    # Models - results
    "ParseResult",
    "DocumentTree",
    "ConversionWarning",
    "UploadStep",
]
