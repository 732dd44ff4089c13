"""Table conversion: Markdown and HTML tables to grids, grids to HTML.

Parsing accepts two source forms and always produces a rectangular
:class:`~feishify.models.TableGrid`:

* GFM pipe tables::

      | A | B |
      |---|:-:|
      | 1 |

  The header line must contain ``|`` and be followed by a separator line.
  Body rows continue while lines contain ``|`` and are not blank.  Short
  rows are padded with ``""``.

* Raw HTML tables, from the first line containing ``<table`` to the first
  line containing ``</table>``.  Cells are ``<td>``/``<th>``; the table has a
  header row when any ``<th>`` is present.  Cell text has tags stripped and
  entities decoded, with ``<br>`` and ``</p>`` turned into newlines.
  ``rowspan``/``colspan`` are honoured: covered positions hold ``""`` and
  the span is recorded as a :class:`~feishify.models.MergeSpan`.

Rendering always emits HTML so merge spans survive::

    <table>
    <tr>
    <td rowspan="2">a</td>
    <td>b</td>
    </tr>
    ...
    </table>
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

from feishify.models import MergeSpan, TableGrid

_SEPARATOR_CELL_RE = re.compile(r"^:?-+:?$")

# Same caps browsers apply to the attributes.
_MAX_ROWSPAN = 65534
_MAX_COLSPAN = 1000


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def pad_rows(rows: list[list[str]]) -> list[list[str]]:
    """Return *rows* padded with ``""`` to the width of the widest row."""
    width = max((len(row) for row in rows), default=0)
    return [row + [""] * (width - len(row)) for row in rows]


def grid_from_cells(cells: list[str], column_size: int) -> list[list[str]]:
    """Arrange a flat row-major cell sequence into rows of *column_size*.

    Cell ``i`` lands at ``(i // column_size, i % column_size)``; a trailing
    partial row is padded.
    """
    if column_size < 1:
        return []
    rows: list[list[str]] = []
    for idx, text in enumerate(cells):
        row, col = divmod(idx, column_size)
        while len(rows) <= row:
            rows.append([""] * column_size)
        rows[row][col] = text
    return rows


# ---------------------------------------------------------------------------
# Pipe tables
# ---------------------------------------------------------------------------

def split_table_row(line: str) -> list[str]:
    """Split one pipe-table line into trimmed cell strings."""
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|"):
        row = row[:-1]
    return [cell.strip() for cell in row.split("|")]


def is_table_separator(line: str) -> bool:
    """Return True for a GFM separator line such as ``|---|:--:|``."""
    trimmed = line.strip()
    if "-" not in trimmed:
        return False
    if trimmed.startswith("|"):
        trimmed = trimmed[1:]
    if trimmed.endswith("|"):
        trimmed = trimmed[:-1]
    return all(_SEPARATOR_CELL_RE.match(part.strip()) for part in trimmed.split("|"))


def parse_markdown_table(lines: list[str], start: int) -> tuple[TableGrid, int] | None:
    """Parse a pipe table starting at ``lines[start]``.

    Returns
    -------
    tuple[TableGrid, int] | None
        The grid (header row included, ``header_row=True``) and the index
        of the first line after the table, or ``None`` when no table starts
        here.
    """
    if start + 1 >= len(lines):
        return None
    header_line = lines[start]
    if "|" not in header_line or not is_table_separator(lines[start + 1]):
        return None

    rows = [split_table_row(header_line)]
    idx = start + 2
    while idx < len(lines) and "|" in lines[idx] and lines[idx].strip():
        rows.append(split_table_row(lines[idx]))
        idx += 1

    return TableGrid(rows=pad_rows(rows), header_row=True), idx


# ---------------------------------------------------------------------------
# HTML tables
# ---------------------------------------------------------------------------

def _cell_text(cell: Tag) -> str:
    for br in cell.find_all("br"):
        br.replace_with("\n")
    for paragraph in cell.find_all("p"):
        paragraph.append("\n")
    return cell.get_text().replace("\xa0", " ").strip()


def _span(cell: Tag, attr: str, limit: int) -> int:
    try:
        return min(max(int(str(cell.get(attr, 1)).strip()), 1), limit)
    except ValueError:
        return 1


def _place_cells(html_rows: list[list[tuple[str, int, int]]]) -> tuple[list[list[str]], list[MergeSpan]]:
    """Lay out cells row by row, skipping positions taken by earlier spans."""
    placed: dict[tuple[int, int], str] = {}
    merges: list[MergeSpan] = []
    row_count = len(html_rows)

    for r, cells in enumerate(html_rows):
        c = 0
        for text, row_span, col_span in cells:
            while (r, c) in placed:
                c += 1
            row_span = min(row_span, row_count - r)
            for rr in range(r, r + row_span):
                for cc in range(c, c + col_span):
                    placed[(rr, cc)] = ""
            placed[(r, c)] = text
            if row_span > 1 or col_span > 1:
                merges.append(MergeSpan(r, c, row_span, col_span))
            c += col_span

    width = max((c for _, c in placed), default=-1) + 1
    rows = [[placed.get((r, c), "") for c in range(width)] for r in range(row_count)]
    return rows, merges


def parse_html_table(lines: list[str], start: int) -> tuple[TableGrid, int] | None:
    """Parse a raw HTML table starting at ``lines[start]``.

    Returns
    -------
    tuple[TableGrid, int] | None
        The grid and the index of the first line after ``</table>`` (or the
        end of input), or ``None`` when the line does not open a table or
        the table has no cells.
    """
    if "<table" not in lines[start]:
        return None

    idx = start
    chunk: list[str] = []
    while idx < len(lines):
        chunk.append(lines[idx])
        idx += 1
        if "</table>" in chunk[-1]:
            break

    soup = BeautifulSoup("\n".join(chunk), "html.parser")
    table = soup.find("table")
    if not isinstance(table, Tag):
        return None

    html_rows: list[list[tuple[str, int, int]]] = []
    for tr in table.find_all("tr"):
        if tr.find_parent("table") is not table:
            continue
        cells = [
            (
                _cell_text(cell),
                _span(cell, "rowspan", _MAX_ROWSPAN),
                _span(cell, "colspan", _MAX_COLSPAN),
            )
            for cell in tr.find_all(["td", "th"], recursive=False)
        ]
        if cells:
            html_rows.append(cells)

    if not html_rows:
        return None

    rows, merges = _place_cells(html_rows)
    has_header = table.find("th") is not None
    return TableGrid(rows=rows, header_row=has_header, merges=merges), idx


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_html_table(
    rows: list[list[str]],
    merges: Iterable[MergeSpan] = (),
    *,
    header_row: bool = False,
) -> str:
    """Render a text grid as an HTML table.

    Parameters
    ----------
    rows:
        Cell text by row and column.
    merges:
        Merge spans anchored at their top-left cell.  Every other position a
        span covers is omitted from the output.  Spans reaching past the
        grid are cut at its edge.
    header_row:
        Emit the first row's cells as ``<th>``.

    Returns
    -------
    str
        ``<table>`` ... ``</table>`` with one tag per line.
    """
    anchors = {(m.row, m.col): m for m in merges}
    covered: set[tuple[int, int]] = set()
    html = ["<table>"]

    for r, row in enumerate(rows):
        html.append("<tr>")
        tag = "th" if header_row and r == 0 else "td"
        for c, text in enumerate(row):
            if (r, c) in covered:
                continue
            row_span = col_span = 1
            span = anchors.get((r, c))
            if span is not None:
                row_span = min(span.row_span, len(rows) - r)
                col_span = min(span.col_span, len(row) - c)
            attrs = ""
            if row_span > 1:
                attrs += f' rowspan="{row_span}"'
            if col_span > 1:
                attrs += f' colspan="{col_span}"'
            html.append(f"<{tag}{attrs}>{text}</{tag}>")
            covered.update(
                (rr, cc)
                for rr in range(r, r + row_span)
                for cc in range(c, c + col_span)
            )
        html.append("</tr>")

    html.append("</table>")
    return "\n".join(html)
