"""Tests for utility functions.

Tests for: chunk_children, safe_encode_url, safe_decode_url, IdGenerator.
"""

import pytest

from feishify.utils.chunk import chunk_children
from feishify.utils.ids import IdGenerator
from feishify.utils.urls import safe_decode_url, safe_encode_url

# =========================================================================
# chunk_children tests
# =========================================================================

class TestChunkChildren:
    """Tests for chunk_children utility."""

    def test_empty_list(self):
        assert chunk_children([]) == []

    def test_under_limit(self):
        blocks = [{"block_type": 2}] * 30
        result = chunk_children(blocks)
        assert len(result) == 1
        assert len(result[0]) == 30

    def test_at_limit(self):
        result = chunk_children([{"block_type": 2}] * 50)
        assert [len(chunk) for chunk in result] == [50]

    def test_over_limit(self):
        result = chunk_children([{"block_type": 2}] * 120)
        assert [len(chunk) for chunk in result] == [50, 50, 20]

    def test_custom_size(self):
        result = chunk_children([{"block_type": 2}] * 10, size=3)
        assert [len(chunk) for chunk in result] == [3, 3, 3, 1]

    def test_size_1(self):
        result = chunk_children([{"block_type": 2}] * 3, size=1)
        assert all(len(chunk) == 1 for chunk in result)

    def test_invalid_size_raises(self):
        with pytest.raises(ValueError, match="size must be >= 1"):
            chunk_children([], size=0)

    def test_negative_size_raises(self):
        with pytest.raises(ValueError, match="size must be >= 1"):
            chunk_children([], size=-1)

    def test_preserves_block_content(self):
        blocks = [{"block_type": i} for i in range(5)]
        result = chunk_children(blocks, size=2)
        assert [item for chunk in result for item in chunk] == blocks


# =========================================================================
# URL helpers
# =========================================================================

class TestSafeEncodeUrl:
    def test_component_encoding(self):
        assert safe_encode_url("https://example.com/a b") == "https%3A%2F%2Fexample.com%2Fa%20b"

    def test_unreserved_kept(self):
        assert safe_encode_url("a-b_c.d~e!*'()") == "a-b_c.d~e!*'()"

    def test_utf8(self):
        assert safe_encode_url("é") == "%C3%A9"

    @pytest.mark.parametrize("value", ["", None])
    def test_empty(self, value):
        assert safe_encode_url(value) == ""

    def test_unencodable_returned_unchanged(self):
        assert safe_encode_url("\ud800") == "\ud800"


class TestSafeDecodeUrl:
    def test_decode(self):
        assert safe_decode_url("https%3A%2F%2Fexample.com%2Fa%20b") == "https://example.com/a b"

    def test_plain_passthrough(self):
        assert safe_decode_url("https://example.com") == "https://example.com"

    def test_malformed_returned_unchanged(self):
        assert safe_decode_url("%E0%A4%A") == "%E0%A4%A"

    def test_plus_is_not_space(self):
        assert safe_decode_url("a+b") == "a+b"

    @pytest.mark.parametrize("value", ["", None])
    def test_empty(self, value):
        assert safe_decode_url(value) == ""


# =========================================================================
# IdGenerator
# =========================================================================

class TestIdGenerator:
    def test_sequence(self):
        ids = IdGenerator()
        assert [ids.next() for _ in range(3)] == ["local_1", "local_2", "local_3"]

    def test_counter_shared_across_prefixes(self):
        ids = IdGenerator("tmp")
        assert ids.next("tbl") == "tbl_1"
        assert ids.next("cell") == "cell_2"
        assert ids.next() == "tmp_3"

    def test_custom_start(self):
        ids = IdGenerator(start=10)
        assert ids.next() == "local_10"
        assert ids.issued == 1

    def test_issued(self):
        ids = IdGenerator()
        assert ids.issued == 0
        ids.next()
        ids.next("x")
        assert ids.issued == 2

    def test_generators_are_independent(self):
        first, second = IdGenerator(), IdGenerator()
        first.next()
        assert second.next() == "local_1"
