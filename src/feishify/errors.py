"""Error hierarchy for feishify.

Every public error class inherits from FeishifyError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

The converters themselves never raise on malformed input; they record
:class:`~feishify.models.ConversionWarning` instead.  Errors are reserved
for opt-in strict policies and for requests that cannot be satisfied at all.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    CONVERSION_ERROR = "CONVERSION_ERROR"
    UNSUPPORTED_BLOCK = "UNSUPPORTED_BLOCK"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class FeishifyError(Exception):
    """Base exception for all feishify errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Conversion errors
# ---------------------------------------------------------------------------

class FeishifyConversionError(FeishifyError):
    """Base class for errors during Markdown/block conversion."""

    def __init__(
        self,
        code: str = ErrorCode.CONVERSION_ERROR,
        message: str = "Conversion error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class FeishifyUnsupportedBlockError(FeishifyConversionError):
    """A block type is not recognised and the configured policy is ``"raise"``.

    Context keys: ``block_id``, ``block_type``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNSUPPORTED_BLOCK,
            message=message,
            context=context,
            cause=cause,
        )


class FeishifyValidationError(FeishifyError):
    """A descriptor cannot be expanded into create calls.

    Context keys: ``field``, ``value``, ``constraint``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
