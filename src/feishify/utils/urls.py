"""Percent-encoding helpers for link targets.

The platform stores link URLs percent-encoded as a single URI component.
Both helpers return their input unchanged when it cannot be converted.
"""

from __future__ import annotations

from urllib.parse import quote, unquote

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_.~".
_COMPONENT_SAFE = "!*'()"


def safe_decode_url(value: str | None) -> str:
    """Decode a percent-encoded URL, falling back to *value* on failure."""
    if not value:
        return ""
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


def safe_encode_url(value: str | None) -> str:
    """Percent-encode *value* as a URI component, falling back to *value*."""
    if not value:
        return ""
    try:
        return quote(value, safe=_COMPONENT_SAFE)
    except UnicodeEncodeError:
        return value
