"""Tests for the error hierarchy and the package's public exports."""

from __future__ import annotations

import pickle
from typing import ClassVar

import pytest

import feishify
from feishify import __all__ as PKG_ALL
from feishify.config import FeishifyConfig
from feishify.converter.feishu_to_md import blocks_to_markdown
from feishify.errors import (
    ErrorCode,
    FeishifyConversionError,
    FeishifyError,
    FeishifyUnsupportedBlockError,
    FeishifyValidationError,
)

# =========================================================================
# 1. Error codes
# =========================================================================


class TestErrorCodeCompleteness:
    """Verify every ErrorCode enum member has a matching error subclass."""

    _CODE_TO_CLASS: ClassVar[dict[ErrorCode, type[FeishifyError]]] = {
        ErrorCode.CONVERSION_ERROR: FeishifyConversionError,
        ErrorCode.UNSUPPORTED_BLOCK: FeishifyUnsupportedBlockError,
        ErrorCode.VALIDATION_ERROR: FeishifyValidationError,
    }

    def test_every_error_code_has_a_subclass(self):
        for code in ErrorCode:
            assert code in self._CODE_TO_CLASS, f"ErrorCode.{code.name} has no mapped class"

    @pytest.mark.parametrize("code", list(ErrorCode))
    def test_error_class_sets_correct_code(self, code: ErrorCode):
        cls = self._CODE_TO_CLASS[code]
        if cls is FeishifyConversionError:
            err = cls(code=code, message="test")
        else:
            err = cls(message="test")
        assert err.code == code

    def test_no_duplicate_error_codes(self):
        values = [e.value for e in ErrorCode]
        assert len(values) == len(set(values))

    def test_codes_are_strings(self):
        assert ErrorCode.UNSUPPORTED_BLOCK == "UNSUPPORTED_BLOCK"


# =========================================================================
# 2. Base behaviour
# =========================================================================


class TestFeishifyError:
    def test_attributes(self):
        err = FeishifyError(code="X", message="boom", context={"k": 1})
        assert (err.code, err.message, err.context) == ("X", "boom", {"k": 1})
        assert str(err) == "boom"

    def test_context_defaults_to_empty_dict(self):
        assert FeishifyError(code="X", message="m").context == {}

    def test_repr(self):
        err = FeishifyValidationError(message="bad", context={"field": "column_size"})
        text = repr(err)
        assert text.startswith("FeishifyValidationError(code=")
        assert text.endswith("message='bad', context={'field': 'column_size'})")

    def test_repr_without_context(self):
        assert "context" not in repr(FeishifyError(code="X", message="m"))

    def test_hierarchy(self):
        assert issubclass(FeishifyUnsupportedBlockError, FeishifyConversionError)
        assert issubclass(FeishifyConversionError, FeishifyError)
        assert issubclass(FeishifyValidationError, FeishifyError)
        assert not issubclass(FeishifyValidationError, FeishifyConversionError)

    def test_conversion_error_defaults(self):
        err = FeishifyConversionError()
        assert err.code == ErrorCode.CONVERSION_ERROR
        assert err.message == "Conversion error"


class TestErrorCauseChaining:
    @pytest.mark.parametrize(
        "cls",
        [FeishifyValidationError, FeishifyUnsupportedBlockError, FeishifyConversionError],
    )
    def test_cause_is_chained(self, cls):
        original = KeyError("block_id")
        err = cls(message="wrapper", cause=original)
        assert err.__cause__ is original
        assert err.cause is original

    def test_cause_none_by_default(self):
        err = FeishifyValidationError(message="no cause")
        assert err.__cause__ is None
        assert err.cause is None


class TestErrorPickling:
    @pytest.mark.parametrize(
        ("cls", "kwargs"),
        [
            (FeishifyValidationError, {"message": "bad input", "context": {"field": "x"}}),
            (FeishifyUnsupportedBlockError, {"message": "unsupported", "context": {"block_type": 99}}),
        ],
    )
    def test_pickle_round_trip(self, cls, kwargs):
        err = cls(**kwargs)
        restored = pickle.loads(pickle.dumps(err))
        assert type(restored) is cls
        assert restored.code == err.code
        assert restored.message == err.message
        assert restored.context == err.context


# =========================================================================
# 3. Raised by the converters
# =========================================================================


class TestRaisedErrors:
    def test_unsupported_block_context(self):
        doc = {"blocks": [{"block_id": "x", "block_type": 42, "children": []}]}
        with pytest.raises(FeishifyUnsupportedBlockError) as exc_info:
            blocks_to_markdown(doc, FeishifyConfig(unknown_block_policy="raise"))
        assert exc_info.value.context == {"block_id": "x", "block_type": 42}
        assert isinstance(exc_info.value, FeishifyError)


# =========================================================================
# 4. Public exports
# =========================================================================


class TestPublicExportsConsistency:
    def test_all_names_are_importable(self):
        for name in PKG_ALL:
            assert hasattr(feishify, name), f"{name!r} is in __all__ but not importable"

    def test_all_error_classes_in_all(self):
        for name in (
            "FeishifyError",
            "FeishifyConversionError",
            "FeishifyUnsupportedBlockError",
            "FeishifyValidationError",
            "ErrorCode",
        ):
            assert name in PKG_ALL

    def test_converters_in_all(self):
        for name in (
            "MarkdownToFeishuConverter",
            "FeishuToMarkdownRenderer",
            "markdown_to_blocks",
            "markdown_to_document",
            "blocks_to_markdown",
            "plan_upload",
        ):
            assert name in PKG_ALL

    def test_no_private_names_or_duplicates(self):
        assert not [name for name in PKG_ALL if name.startswith("_")]
        assert len(PKG_ALL) == len(set(PKG_ALL))
