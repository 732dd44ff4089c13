"""Ingestion boundary: platform JSON to typed blocks.

Raw documents identify a block's variant either by a numeric
``block_type`` or only by which payload key is present.  Detection happens
here, once, and produces a :class:`~feishify.models.Block` whose
:class:`~feishify.models.BlockType` is a closed enum with an explicit
``UNKNOWN`` member.  Text elements are reduced to single-style
:class:`~feishify.models.Run` objects in the same pass.

:class:`BlockArena` stores the blocks of one document in a dense list and
resolves every id to an index once, so renderers walk index lists instead of
chasing ids through a mutable map.
"""

from __future__ import annotations

from typing import Any

from feishify.models import Block, BlockType, MergeSpan, Run, RunStyle, TableProperty
from feishify.utils.urls import safe_decode_url

# Payload keys probed, in order, when a block has no numeric type.
_PAYLOAD_KEYS: tuple[BlockType, ...] = tuple(
    t for t in BlockType if t is not BlockType.UNKNOWN
)

# Style flags in precedence order; the first one set wins.
_STYLE_PRECEDENCE: tuple[tuple[str, RunStyle], ...] = (
    ("bold", RunStyle.BOLD),
    ("italic", RunStyle.ITALIC),
    ("strikethrough", RunStyle.STRIKETHROUGH),
    ("underline", RunStyle.UNDERLINE),
    ("inline_code", RunStyle.INLINE_CODE),
)


def _first(mapping: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among *keys*."""
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return default


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------

def element_to_run(element: Any) -> Run:
    """Convert one raw text element to a :class:`Run`.

    Multiple style flags collapse to the highest-precedence one
    (bold > italic > strikethrough > underline > inline code > link).
    """
    element = _as_dict(element)

    if "text_run" in element:
        text_run = _as_dict(element["text_run"])
        content = str(text_run.get("content") or "")
        style = _as_dict(text_run.get("text_element_style"))
        for flag, run_style in _STYLE_PRECEDENCE:
            if style.get(flag):
                return Run(content, run_style)
        url = _as_dict(style.get("link")).get("url")
        if url:
            return Run(content, RunStyle.LINK, url=safe_decode_url(str(url)))
        return Run(content)

    if "mention_user" in element:
        mention = _as_dict(element["mention_user"])
        return Run(str(_first(mention, "user_id", "userId", default="")), RunStyle.MENTION_USER)

    if "mention_doc" in element:
        mention = _as_dict(element["mention_doc"])
        return Run(
            str(mention.get("title") or ""),
            RunStyle.MENTION_DOC,
            url=safe_decode_url(str(mention.get("url") or "")),
        )

    if "equation" in element:
        equation = _as_dict(element["equation"])
        return Run(str(equation.get("content") or ""), RunStyle.EQUATION)

    return Run("", RunStyle.UNKNOWN)


def elements_to_runs(elements: Any) -> list[Run]:
    return [element_to_run(el) for el in _as_list(elements)]


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

def detect_block_type(raw: dict[str, Any]) -> BlockType:
    """Classify a raw block by ``block_type`` or, failing that, payload key."""
    code = raw.get("block_type")
    if isinstance(code, int) and not isinstance(code, bool):
        try:
            return BlockType(code)
        except ValueError:
            return BlockType.UNKNOWN
    for block_type in _PAYLOAD_KEYS:
        if raw.get(block_type.key) is not None:
            return block_type
    return BlockType.UNKNOWN


def _parse_merge(value: Any, index: int, row_size: int, column_size: int) -> MergeSpan | None:
    """Parse the ``index``-th ``merge_info`` entry, clamped to the table."""
    value = _as_dict(value)
    if not value or column_size < 1:
        return None
    row_span = _first(value, "row_span", "rowSpan", default=1)
    col_span = _first(value, "col_span", "colSpan", default=1)
    try:
        row_span, col_span = max(int(row_span), 1), max(int(col_span), 1)
    except (TypeError, ValueError):
        return None
    row, col = divmod(index, column_size)
    col_span = min(col_span, column_size - col)
    if row_size > row:
        row_span = min(row_span, row_size - row)
    return MergeSpan(row, col, row_span, col_span)


def parse_anchored_merge(value: Any) -> MergeSpan | None:
    """Parse a ``_table`` merge entry, which names its anchor cell."""
    value = _as_dict(value)
    try:
        return MergeSpan(
            int(value["row"]),
            int(value["col"]),
            max(int(value.get("row_span", 1)), 1),
            max(int(value.get("col_span", 1)), 1),
        )
    except (KeyError, TypeError, ValueError):
        return None


def _parse_table(payload: dict[str, Any], raw: dict[str, Any]) -> TableProperty:
    prop = _as_dict(payload.get("property"))
    try:
        column_size = int(_first(prop, "column_size", "columnSize", default=0))
        row_size = int(_first(prop, "row_size", "rowSize", default=0))
    except (TypeError, ValueError):
        column_size, row_size = 0, 0

    merge_raw = _as_list(_first(prop, "merge_info", "mergeInfo", default=[]))
    merges = [_parse_merge(m, i, row_size, column_size) for i, m in enumerate(merge_raw)]

    synthetic = _as_dict(raw.get("_table"))
    pending = _as_list(synthetic.get("rows"))
    if not merge_raw:
        merges = [parse_anchored_merge(m) for m in _as_list(synthetic.get("merges"))]

    return TableProperty(
        row_size=row_size,
        column_size=column_size,
        header_row=bool(_first(prop, "header_row", "headerRow", default=False)),
        header_column=bool(_first(prop, "header_column", "headerColumn", default=False)),
        cells=[str(c) for c in _as_list(payload.get("cells"))],
        merge_info=merges,
        pending_rows=[
            [str(cell) if cell is not None else "" for cell in _as_list(row)]
            for row in pending
        ],
    )


def parse_block(raw: Any) -> Block | None:
    """Convert one raw block dict to a :class:`Block`.

    Returns ``None`` for values that are not dicts.  Missing fields default
    to empty values; nothing here raises on malformed input.
    """
    if not isinstance(raw, dict):
        return None

    block_type = detect_block_type(raw)
    block = Block(
        id=str(_first(raw, "block_id", "blockId", default="")),
        type=block_type,
        parent_id=str(_first(raw, "parent_id", "parentId", default="")),
        children=[str(c) for c in _as_list(raw.get("children"))],
    )

    if block_type is BlockType.UNKNOWN:
        code = raw.get("block_type")
        block.raw_type = code if isinstance(code, int) else None
        return block

    payload = _as_dict(raw.get(block_type.key))
    block.style = _as_dict(payload.get("style"))
    block.runs = elements_to_runs(payload.get("elements"))

    if block_type is BlockType.TODO:
        block.done = bool(block.style.get("done"))
    elif block_type is BlockType.CODE:
        block.language = block.style.get("language")
    elif block_type is BlockType.IMAGE:
        block.token = str(payload.get("token") or "")
    elif block_type is BlockType.TABLE:
        block.table = _parse_table(payload, raw)

    return block


# ---------------------------------------------------------------------------
# Arena
# ---------------------------------------------------------------------------

class BlockArena:
    """Dense store of one document's blocks with ids resolved to indices.

    Attributes
    ----------
    blocks:
        Every ingested block, in input order.
    children:
        ``children[i]`` is the index list of block ``i``'s resolvable
        children, in order.
    missing:
        ``(parent_index, child_id)`` pairs for child ids with no block.
    """

    def __init__(self, blocks: list[Block]) -> None:
        self.blocks: list[Block] = blocks
        self._index: dict[str, int] = {}
        for idx, block in enumerate(blocks):
            if block.id and block.id not in self._index:
                self._index[block.id] = idx

        self.children: list[list[int]] = []
        self.parents: list[int | None] = [None] * len(blocks)
        self.missing: list[tuple[int, str]] = []
        for idx, block in enumerate(blocks):
            resolved: list[int] = []
            for child_id in block.children:
                child_idx = self._index.get(child_id)
                if child_idx is None:
                    self.missing.append((idx, child_id))
                    continue
                resolved.append(child_idx)
                if self.parents[child_idx] is None:
                    self.parents[child_idx] = idx
            self.children.append(resolved)

        # Fall back to declared parent ids for blocks nobody lists as a child.
        for idx, block in enumerate(blocks):
            if self.parents[idx] is None and block.parent_id:
                self.parents[idx] = self._index.get(block.parent_id)

    def __len__(self) -> int:
        return len(self.blocks)

    def index_of(self, block_id: str) -> int | None:
        return self._index.get(block_id)

    def get(self, block_id: str) -> Block | None:
        idx = self._index.get(block_id)
        return self.blocks[idx] if idx is not None else None


def ingest_document(doc: Any) -> tuple[BlockArena, int | None]:
    """Build the arena for a raw document and resolve its root.

    The root is ``metadata.document_id``, else ``document.document_id``,
    else the first page-typed block, else the first block.

    Returns
    -------
    tuple[BlockArena, int | None]
        The arena and the root index (``None`` when there is no block).
    """
    doc = _as_dict(doc)
    blocks = [b for b in (parse_block(raw) for raw in _as_list(doc.get("blocks"))) if b]
    arena = BlockArena(blocks)
    if not blocks:
        return arena, None

    root_id = (
        _as_dict(doc.get("metadata")).get("document_id")
        or _as_dict(doc.get("document")).get("document_id")
    )
    if root_id:
        idx = arena.index_of(str(root_id))
        if idx is not None:
            return arena, idx

    for idx, block in enumerate(blocks):
        if block.type is BlockType.PAGE:
            return arena, idx
    return arena, 0
