"""Inline parsing: Markdown inline text to a flat list of runs.

The tokenizer walks an ordered pattern table.  At each step every pattern
is searched in the remaining text and the match that starts earliest wins;
on a tie the pattern listed first wins.  Matched content is never parsed
again, so styles do not nest.

Priority (highest first)::

    link [t](u) > code `c` > bold **b** / __b__ > strike ~~s~~ > italic *i* / _i_
"""

from __future__ import annotations

import re
from typing import NamedTuple

from feishify.models import Run, RunStyle


class _InlinePattern(NamedTuple):
    style: RunStyle
    regex: re.Pattern[str]


_PATTERNS: tuple[_InlinePattern, ...] = (
    _InlinePattern(RunStyle.LINK, re.compile(r"\[([^\]]+)\]\(([^)]+)\)")),
    _InlinePattern(RunStyle.INLINE_CODE, re.compile(r"`([^`]+)`")),
    _InlinePattern(RunStyle.BOLD, re.compile(r"\*\*([^*]+)\*\*")),
    _InlinePattern(RunStyle.BOLD, re.compile(r"__([^_]+)__")),
    _InlinePattern(RunStyle.STRIKETHROUGH, re.compile(r"~~([^~]+)~~")),
    _InlinePattern(RunStyle.ITALIC, re.compile(r"\*([^*]+)\*")),
    _InlinePattern(RunStyle.ITALIC, re.compile(r"_([^_]+)_")),
)


def _next_token(text: str) -> tuple[_InlinePattern, re.Match[str]] | None:
    """Return the earliest-starting match; ties go to the higher-priority pattern."""
    best: tuple[_InlinePattern, re.Match[str]] | None = None
    for pattern in _PATTERNS:
        match = pattern.regex.search(text)
        if match is None:
            continue
        if best is not None and match.start() >= best[1].start():
            continue
        best = (pattern, match)
    return best


def parse_inline(text: str) -> list[Run]:
    """Parse Markdown inline text into runs.

    Text before a match becomes a plain run, the match becomes a styled
    run, and unmatched trailing text becomes a final plain run.  The
    result is never empty: empty input yields ``[Run("")]``.

    Examples
    --------
    >>> [(r.content, r.style.value) for r in parse_inline("a **b** c")]
    [('a ', 'plain'), ('b', 'bold'), (' c', 'plain')]
    """
    runs: list[Run] = []
    remaining = text

    while remaining:
        token = _next_token(remaining)
        if token is None:
            runs.append(Run(remaining))
            break

        pattern, match = token
        if match.start() > 0:
            runs.append(Run(remaining[: match.start()]))

        if pattern.style is RunStyle.LINK:
            runs.append(Run(match.group(1), RunStyle.LINK, url=match.group(2)))
        else:
            runs.append(Run(match.group(1), pattern.style))

        remaining = remaining[match.end():]

    return runs or [Run("")]


def parse_inline_lines(lines: list[str]) -> list[Run]:
    """Parse several lines into one run list separated by ``"\\n"`` runs."""
    runs: list[Run] = []
    for idx, line in enumerate(lines):
        runs.extend(parse_inline(line))
        if idx < len(lines) - 1:
            runs.append(Run("\n"))
    return runs or [Run("")]
