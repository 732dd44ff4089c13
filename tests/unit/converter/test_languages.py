"""Tests for converter/languages.py."""

import pytest

from feishify.converter.languages import language_code, language_name


class TestLanguageName:
    @pytest.mark.parametrize(
        ("code", "name"),
        [(2, "abap"), (7, "bash"), (49, "python"), (63, "typescript"), (75, "toml")],
    )
    def test_known_codes(self, code, name):
        assert language_name(code) == name

    @pytest.mark.parametrize("value", [1, 0, 76, 9999, None, True])
    def test_no_tag(self, value):
        assert language_name(value) == ""

    def test_string_passthrough(self):
        assert language_name(" Rust ") == "Rust"

    @pytest.mark.parametrize("value", ["plain text", "TEXT", "txt"])
    def test_plain_text_strings(self, value):
        assert language_name(value) == ""


class TestLanguageCode:
    @pytest.mark.parametrize(
        ("tag", "code"),
        [
            ("python", 49),
            ("py", 49),
            ("Python3", 49),
            ("js", 30),
            ("ts", 63),
            ("sh", 60),
            ("bash", 7),
            ("yml", 67),
            ("c++", 9),
            ("  go  ", 22),
            ("golang", 22),
        ],
    )
    def test_known_tags(self, tag, code):
        assert language_code(tag) == code

    def test_plain_text(self):
        assert language_code("text") == 1

    @pytest.mark.parametrize("tag", ["", "   ", "klingon"])
    def test_unknown(self, tag):
        assert language_code(tag) is None

    def test_every_code_round_trips(self):
        for code in range(2, 76):
            assert language_code(language_name(code)) == code
