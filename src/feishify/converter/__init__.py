"""Markdown ↔ Feishu conversion pipeline.

Public API:

- :class:`MarkdownToFeishuConverter` - Markdown → Feishu block descriptors.
- :class:`FeishuToMarkdownRenderer` - Feishu block tree → Markdown.
- :func:`parse_inline` - inline Markdown → runs.
- :func:`render_runs` - runs → inline Markdown.
- :func:`block_to_payload` - typed block → platform descriptor.
- :func:`plan_upload` - flat descriptors → ordered create calls.
"""

from feishify.converter.descendants import (
    build_quote_container_descendants,
    build_table_descendants,
    calculate_column_widths,
    plan_upload,
)
from feishify.converter.feishu_to_md import FeishuToMarkdownRenderer, blocks_to_markdown
from feishify.converter.ingest import BlockArena, ingest_document
from feishify.converter.inline_parser import parse_inline
from feishify.converter.inline_renderer import render_runs
from feishify.converter.md_to_feishu import (
    MarkdownToFeishuConverter,
    inline_markdown_to_elements,
    markdown_to_blocks,
    markdown_to_document,
)
from feishify.converter.payloads import block_to_payload

__all__ = [
    "BlockArena",
    "FeishuToMarkdownRenderer",
    "MarkdownToFeishuConverter",
    "block_to_payload",
    "blocks_to_markdown",
    "build_quote_container_descendants",
    "build_table_descendants",
    "calculate_column_widths",
    "ingest_document",
    "inline_markdown_to_elements",
    "markdown_to_blocks",
    "markdown_to_document",
    "parse_inline",
    "plan_upload",
    "render_runs",
]
