"""Tests for converter/inline_renderer.py."""

import pytest

from feishify.converter.inline_renderer import render_run, render_runs
from feishify.models import Run, RunStyle


class TestRenderRun:
    @pytest.mark.parametrize(
        ("style", "expected"),
        [
            (RunStyle.PLAIN, "t"),
            (RunStyle.BOLD, "**t**"),
            (RunStyle.ITALIC, "_t_"),
            (RunStyle.STRIKETHROUGH, "~~t~~"),
            (RunStyle.UNDERLINE, "<u>t</u>"),
            (RunStyle.INLINE_CODE, "`t`"),
        ],
    )
    def test_wraps(self, style, expected):
        assert render_run(Run("t", style)) == expected

    def test_link(self):
        assert render_run(Run("x", RunStyle.LINK, url="https://a.b/c d")) == "[x](https://a.b/c d)"

    def test_mention_user(self):
        assert render_run(Run("ou_1", RunStyle.MENTION_USER)) == "ou_1"

    def test_mention_doc_with_title(self):
        run = Run("Spec", RunStyle.MENTION_DOC, url="https://x/doc")
        assert render_run(run) == "[Spec](https://x/doc)"

    def test_mention_doc_without_title(self):
        run = Run("", RunStyle.MENTION_DOC, url="https://x/doc")
        assert render_run(run) == "https://x/doc"

    def test_equation_block_and_inline(self):
        run = Run("a+b\n", RunStyle.EQUATION)
        assert render_run(run) == "$$a+b$$"
        assert render_run(run, inline=True) == "$a+b$"

    def test_content_not_escaped(self):
        assert render_run(Run("*raw* <b>")) == "*raw* <b>"

    def test_unknown_warns(self):
        warnings = []
        assert render_run(Run("", RunStyle.UNKNOWN), warnings=warnings) == ""
        assert [w.code for w in warnings] == ["UNKNOWN_ELEMENT"]
        assert warnings[0].context == {"style": "unknown"}

    def test_unknown_without_sink(self):
        assert render_run(Run("", RunStyle.UNKNOWN)) == ""


class TestRenderRuns:
    def test_empty(self):
        assert render_runs([]) == ""

    def test_concatenation(self):
        runs = [Run("a "), Run("b", RunStyle.BOLD), Run(" c")]
        assert render_runs(runs) == "a **b** c"

    def test_equation_alone_is_display(self):
        assert render_runs([Run("x", RunStyle.EQUATION)]) == "$$x$$"

    def test_equation_with_text_is_inline(self):
        assert render_runs([Run("see "), Run("x", RunStyle.EQUATION)]) == "see $x$"
