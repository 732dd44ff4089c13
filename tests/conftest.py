"""Shared test fixtures for the feishify test suite."""

from __future__ import annotations

import pytest

from feishify.config import FeishifyConfig
from feishify.converter.feishu_to_md import FeishuToMarkdownRenderer
from feishify.converter.md_to_feishu import MarkdownToFeishuConverter


@pytest.fixture
def config() -> FeishifyConfig:
    """Default converter configuration."""
    return FeishifyConfig()


@pytest.fixture
def converter(config: FeishifyConfig) -> MarkdownToFeishuConverter:
    """Markdown-to-Feishu converter using the default test config."""
    return MarkdownToFeishuConverter(config)


@pytest.fixture
def renderer(config: FeishifyConfig) -> FeishuToMarkdownRenderer:
    """Feishu-to-Markdown renderer using the default test config."""
    return FeishuToMarkdownRenderer(config)


class RecordingMetrics:
    """MetricsHook implementation that keeps every data point."""

    def __init__(self) -> None:
        self.counters: list[tuple[str, int, dict | None]] = []
        self.timings: list[tuple[str, float, dict | None]] = []
        self.gauges: list[tuple[str, float, dict | None]] = []

    def increment(self, name, value=1, tags=None):
        self.counters.append((name, value, tags))

    def timing(self, name, ms, tags=None):
        self.timings.append((name, ms, tags))

    def gauge(self, name, value, tags=None):
        self.gauges.append((name, value, tags))

    def counter_names(self) -> set[str]:
        return {name for name, _, _ in self.counters}


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()
