"""Inline rendering: run lists to Markdown strings.

Each run carries exactly one style, chosen at ingestion, so rendering is a
single wrap per run:

* bold ``**t**``, italic ``_t_``, strikethrough ``~~t~~``,
  underline ``<u>t</u>``, inline code ```t```, link ``[t](url)``
* mention_user renders its id, mention_doc a link (or the bare URL when it
  has no title)
* equations render as ``$e$`` when they share the line with other runs and
  as ``$$e$$`` when they are the only run

Text is not escaped: run content is emitted verbatim.
"""

from __future__ import annotations

from feishify.models import ConversionWarning, Run, RunStyle

_WRAPS: dict[RunStyle, tuple[str, str]] = {
    RunStyle.PLAIN: ("", ""),
    RunStyle.BOLD: ("**", "**"),
    RunStyle.ITALIC: ("_", "_"),
    RunStyle.STRIKETHROUGH: ("~~", "~~"),
    RunStyle.UNDERLINE: ("<u>", "</u>"),
    RunStyle.INLINE_CODE: ("`", "`"),
}


def render_run(
    run: Run,
    *,
    inline: bool = False,
    warnings: list[ConversionWarning] | None = None,
) -> str:
    """Render a single run.

    Parameters
    ----------
    run:
        The run to render.
    inline:
        Whether the run shares its line with other runs.  Only affects
        equations.
    warnings:
        Optional list that receives an ``UNKNOWN_ELEMENT`` warning when the
        run has no recognised payload.
    """
    wrap = _WRAPS.get(run.style)
    if wrap is not None:
        return f"{wrap[0]}{run.content}{wrap[1]}"

    if run.style is RunStyle.LINK:
        return f"[{run.content}]({run.url})"

    if run.style is RunStyle.MENTION_USER:
        return run.content

    if run.style is RunStyle.MENTION_DOC:
        return f"[{run.content}]({run.url})" if run.content else run.url

    if run.style is RunStyle.EQUATION:
        symbol = "$" if inline else "$$"
        expression = run.content.rstrip("\n")
        return f"{symbol}{expression}{symbol}"

    if warnings is not None:
        warnings.append(ConversionWarning(
            code="UNKNOWN_ELEMENT",
            message="Text element has no recognised payload and was dropped.",
            context={"style": run.style.value},
        ))
    return ""


def render_runs(
    runs: list[Run],
    warnings: list[ConversionWarning] | None = None,
) -> str:
    """Render a run list to a Markdown inline string.

    Parameters
    ----------
    runs:
        Runs in document order.
    warnings:
        Optional list collecting :class:`ConversionWarning` for dropped runs.

    Returns
    -------
    str
        The rendered Markdown; ``""`` for an empty list.
    """
    if not runs:
        return ""
    inline = len(runs) > 1
    return "".join(render_run(run, inline=inline, warnings=warnings) for run in runs)
