"""Synthetic block ids for descriptors that have no server-assigned id yet.

One :class:`IdGenerator` is created per conversion call and threaded
through everything that mints ids, so two calls never share a counter.
"""

from __future__ import annotations


class IdGenerator:
    """Sequential id source: ``local_1``, ``local_2``, ...

    Parameters
    ----------
    prefix:
        Default prefix for :meth:`next`.
    start:
        First counter value.

    Examples
    --------
    >>> ids = IdGenerator()
    >>> ids.next(), ids.next(), ids.next("cell")
    ('local_1', 'local_2', 'cell_3')
    """

    def __init__(self, prefix: str = "local", start: int = 1) -> None:
        self._prefix = prefix
        self._start = start
        self._counter = start

    def next(self, prefix: str | None = None) -> str:
        """Return a fresh id.  The counter is shared across prefixes."""
        value = f"{prefix or self._prefix}_{self._counter}"
        self._counter += 1
        return value

    @property
    def issued(self) -> int:
        """Number of ids returned so far."""
        return self._counter - self._start
