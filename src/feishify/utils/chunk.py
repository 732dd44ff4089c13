"""Batch a list of block descriptors into groups of at most *size* items.

The children-create endpoint accepts a bounded number of blocks per
request; the upload planner uses this helper to split long runs of
directly postable blocks into compliant batches.
"""

from __future__ import annotations

from typing import Any

from feishify.config import DEFAULT_CREATE_BATCH_SIZE


def chunk_children(
    blocks: list[dict[str, Any]],
    size: int = DEFAULT_CREATE_BATCH_SIZE,
) -> list[list[dict[str, Any]]]:
    """Split a list of block descriptors into batches of at most ``size``.

    An empty input returns an empty list (not ``[[]]``).

    Raises
    ------
    ValueError
        If *size* is less than 1.

    Examples
    --------
    >>> [len(b) for b in chunk_children([{"block_type": 2}] * 120)]
    [50, 50, 20]
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")

    if not blocks:
        return []

    return [blocks[i : i + size] for i in range(0, len(blocks), size)]
