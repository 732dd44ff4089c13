"""Metrics hook protocol and no-op default implementation.

The converters emit counters and timings for every conversion call.  By
default a :class:`NoopMetricsHook` is used so there is zero overhead; pass
any object satisfying :class:`MetricsHook` as ``FeishifyConfig.metrics`` to
route them elsewhere.

Emitted metric names:

* ``feishify.blocks_rendered_total``       -- counter
* ``feishify.blocks_parsed_total``         -- counter (tag ``mode``)
* ``feishify.conversion_warnings_total``   -- counter (tag ``code``)
* ``feishify.render_duration_ms``          -- timing
* ``feishify.parse_duration_ms``           -- timing (tag ``mode``)
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(metrics: Any | None) -> MetricsHook:
    """Return *metrics* if it satisfies :class:`MetricsHook`, else a no-op hook."""
    if metrics is not None and isinstance(metrics, MetricsHook):
        return metrics
    return NoopMetricsHook()
