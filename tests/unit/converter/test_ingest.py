"""Tests for converter/ingest.py: element/block parsing and the arena."""

from dataclasses import fields

import pytest

from feishify.converter.ingest import (
    BlockArena,
    detect_block_type,
    element_to_run,
    elements_to_runs,
    ingest_document,
    parse_block,
)
from feishify.models import BlockType, MergeSpan, Run, RunStyle

# =========================================================================
# Elements
# =========================================================================


class TestElementToRun:
    def test_plain(self):
        assert element_to_run({"text_run": {"content": "hi"}}) == Run("hi")

    def test_missing_content(self):
        assert element_to_run({"text_run": {}}) == Run("")

    @pytest.mark.parametrize(
        ("flags", "style"),
        [
            ({"bold": True, "italic": True}, RunStyle.BOLD),
            ({"italic": True, "strikethrough": True}, RunStyle.ITALIC),
            ({"strikethrough": True, "underline": True}, RunStyle.STRIKETHROUGH),
            ({"underline": True, "inline_code": True}, RunStyle.UNDERLINE),
            ({"inline_code": True, "link": {"url": "u"}}, RunStyle.INLINE_CODE),
        ],
    )
    def test_style_precedence(self, flags, style):
        run = element_to_run({"text_run": {"content": "x", "text_element_style": flags}})
        assert run.style is style

    def test_false_flags_ignored(self):
        run = element_to_run({"text_run": {"content": "x", "text_element_style": {"bold": False}}})
        assert run.style is RunStyle.PLAIN

    def test_link_decoded(self):
        element = {
            "text_run": {
                "content": "x",
                "text_element_style": {"link": {"url": "https%3A%2F%2Fexample.com%2Fa%20b"}},
            }
        }
        assert element_to_run(element) == Run("x", RunStyle.LINK, url="https://example.com/a b")

    def test_empty_link_is_plain(self):
        run = element_to_run({"text_run": {"content": "x", "text_element_style": {"link": {}}}})
        assert run == Run("x")

    def test_mention_user(self):
        assert element_to_run({"mention_user": {"user_id": "ou_1"}}) == Run("ou_1", RunStyle.MENTION_USER)

    def test_mention_user_camel_case(self):
        assert element_to_run({"mention_user": {"userId": "ou_2"}}).content == "ou_2"

    def test_mention_doc(self):
        run = element_to_run({"mention_doc": {"title": "Doc", "url": "https%3A%2F%2Fx"}})
        assert run == Run("Doc", RunStyle.MENTION_DOC, url="https://x")

    def test_equation(self):
        assert element_to_run({"equation": {"content": "E=mc^2"}}) == Run("E=mc^2", RunStyle.EQUATION)

    @pytest.mark.parametrize("element", [{}, {"reminder": {}}, None, "text"])
    def test_unknown(self, element):
        assert element_to_run(element).style is RunStyle.UNKNOWN

    def test_elements_to_runs_non_list(self):
        assert elements_to_runs(None) == []
        assert elements_to_runs({"text_run": {}}) == []


# =========================================================================
# Blocks
# =========================================================================


class TestDetectBlockType:
    def test_numeric(self):
        assert detect_block_type({"block_type": 12}) is BlockType.BULLET

    def test_unknown_numeric(self):
        assert detect_block_type({"block_type": 999}) is BlockType.UNKNOWN

    def test_numeric_wins_over_payload(self):
        assert detect_block_type({"block_type": 2, "code": {}}) is BlockType.TEXT

    def test_payload_key(self):
        assert detect_block_type({"heading4": {"elements": []}}) is BlockType.HEADING4

    def test_empty_payload_still_detected(self):
        assert detect_block_type({"divider": {}}) is BlockType.DIVIDER

    def test_bool_is_not_a_code(self):
        assert detect_block_type({"block_type": True}) is BlockType.UNKNOWN

    def test_nothing(self):
        assert detect_block_type({"block_id": "x"}) is BlockType.UNKNOWN


class TestParseBlock:
    def test_not_a_dict(self):
        assert parse_block(["x"]) is None

    def test_text(self):
        block = parse_block({
            "block_id": "b",
            "parent_id": "p",
            "block_type": 2,
            "children": ["c1", 7],
            "text": {"elements": [{"text_run": {"content": "hi"}}], "style": {"align": 1}},
        })
        assert block.id == "b"
        assert block.parent_id == "p"
        assert block.children == ["c1", "7"]
        assert block.runs == [Run("hi")]
        assert block.style == {"align": 1}

    def test_camel_case_ids(self):
        block = parse_block({"blockId": "b", "parentId": "p", "block_type": 22})
        assert (block.id, block.parent_id) == ("b", "p")

    def test_todo_done(self):
        block = parse_block({"block_type": 17, "todo": {"style": {"done": True}}})
        assert block.done is True

    def test_code_language(self):
        assert parse_block({"block_type": 14, "code": {"style": {"language": 49}}}).language == 49

    def test_image_token(self):
        assert parse_block({"block_type": 27, "image": {"token": "tok"}}).token == "tok"

    def test_unknown_keeps_raw_type(self):
        block = parse_block({"block_type": 999, "children": ["c"]})
        assert block.type is BlockType.UNKNOWN
        assert block.raw_type == 999
        assert block.children == ["c"]

    def test_malformed_payload(self):
        block = parse_block({"block_type": 2, "text": "oops"})
        assert block.runs == []
        assert block.style == {}


class TestParseTable:
    def test_property_and_cells(self):
        block = parse_block({
            "block_type": 31,
            "table": {
                "cells": ["c1", "c2"],
                "property": {
                    "row_size": 1,
                    "column_size": 2,
                    "header_row": True,
                    "merge_info": [{"row_span": 1, "col_span": 2}, {"row_span": 1, "col_span": 1}],
                },
            },
        })
        table = block.table
        assert (table.row_size, table.column_size) == (1, 2)
        assert table.header_row is True
        assert table.cells == ["c1", "c2"]
        assert table.merge_info == [MergeSpan(0, 0, 1, 2), MergeSpan(0, 1, 1, 1)]

    def test_display_only_fields_ignored(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {"row_size": 1, "column_size": 1, "column_width": [100]}},
        }).table
        assert {f.name for f in fields(table)} == {
            "row_size", "column_size", "header_row", "header_column",
            "cells", "merge_info", "pending_rows",
        }

    def test_camel_case_property(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {"rowSize": 2, "columnSize": 3, "headerRow": True,
                                   "mergeInfo": [{}, {}, {}, {"rowSpan": 1, "colSpan": 2}]}},
        }).table
        assert (table.row_size, table.column_size, table.header_row) == (2, 3, True)
        assert table.merge_info == [None, None, None, MergeSpan(1, 0, 1, 2)]

    def test_bad_sizes(self):
        table = parse_block({"block_type": 31, "table": {"property": {"column_size": "many"}}}).table
        assert (table.row_size, table.column_size) == (0, 0)

    def test_spans_clamped_to_table(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {
                "row_size": 2,
                "column_size": 3,
                "merge_info": [{}, {"row_span": 3000, "col_span": 3000}],
            }},
        }).table
        assert table.merge_info == [None, MergeSpan(0, 1, 2, 2)]

    def test_row_span_kept_without_row_size(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {"column_size": 1, "merge_info": [{"row_span": 4}]}},
        }).table
        assert table.merge_info == [MergeSpan(0, 0, 4, 1)]

    def test_bad_span(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {"column_size": 1, "merge_info": [{"row_span": "x"}]}},
        }).table
        assert table.merge_info == [None]

    def test_pending_rows(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {}},
            "_table": {"rows": [["a", None], [1]]},
        }).table
        assert table.pending_rows == [["a", ""], ["1"]]

    def test_synthetic_merges(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {"column_size": 2}},
            "_table": {
                "rows": [["a", ""], ["", ""]],
                "merges": [{"row": 0, "col": 0, "row_span": 2, "col_span": 2}, {"row": "x"}],
            },
        }).table
        assert table.merge_info == [MergeSpan(0, 0, 2, 2), None]

    def test_property_merges_take_precedence(self):
        table = parse_block({
            "block_type": 31,
            "table": {"property": {"column_size": 1, "merge_info": [{}]}},
            "_table": {"rows": [["a"]], "merges": [{"row": 0, "col": 0, "row_span": 1, "col_span": 1}]},
        }).table
        assert table.merge_info == [None]


# =========================================================================
# Arena and root resolution
# =========================================================================


def _raw(block_id, children=(), block_type=2, parent_id=""):
    return {
        "block_id": block_id,
        "parent_id": parent_id,
        "block_type": block_type,
        "children": list(children),
    }


class TestBlockArena:
    def test_children_resolved_to_indices(self):
        arena = BlockArena([parse_block(_raw("p", ["a", "b"], 1)), parse_block(_raw("a")), parse_block(_raw("b"))])
        assert arena.children == [[1, 2], [], []]
        assert arena.parents == [None, 0, 0]
        assert len(arena) == 3

    def test_missing_children_recorded(self):
        arena = BlockArena([parse_block(_raw("p", ["gone", "a"], 1)), parse_block(_raw("a"))])
        assert arena.children[0] == [1]
        assert arena.missing == [(0, "gone")]

    def test_duplicate_ids_first_wins(self):
        arena = BlockArena([parse_block(_raw("x")), parse_block(_raw("x", block_type=22))])
        assert arena.index_of("x") == 0
        assert arena.get("x").type is BlockType.TEXT

    def test_parent_id_fallback(self):
        arena = BlockArena([parse_block(_raw("p", [], 1)), parse_block(_raw("a", parent_id="p"))])
        assert arena.parents == [None, 0]

    def test_get_missing(self):
        assert BlockArena([]).get("nope") is None


class TestIngestDocument:
    def test_metadata_root(self):
        doc = {"metadata": {"document_id": "b"}, "blocks": [_raw("a", [], 1), _raw("b", [], 1)]}
        _, root = ingest_document(doc)
        assert root == 1

    def test_document_root(self):
        doc = {"document": {"document_id": "b"}, "blocks": [_raw("a", [], 1), _raw("b", [], 1)]}
        assert ingest_document(doc)[1] == 1

    def test_unresolvable_root_falls_back_to_page(self):
        doc = {"metadata": {"document_id": "zzz"}, "blocks": [_raw("t"), _raw("p", [], 1)]}
        assert ingest_document(doc)[1] == 1

    def test_first_block_fallback(self):
        assert ingest_document({"blocks": [_raw("t"), _raw("u")]})[1] == 0

    @pytest.mark.parametrize("doc", [{}, {"blocks": []}, {"blocks": "x"}, None, []])
    def test_no_blocks(self, doc):
        arena, root = ingest_document(doc)
        assert root is None
        assert len(arena) == 0

    def test_non_dict_blocks_dropped(self):
        arena, root = ingest_document({"blocks": [1, "x", _raw("a")]})
        assert len(arena) == 1
        assert root == 0
