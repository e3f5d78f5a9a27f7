"""Token, byte and line accounting for rendered prompts."""

from .collector import METRIC_TYPES, MetricItem, MetricKey, OutputMetrics
from .counter import (
    COUNTER_NAMES,
    Counter,
    SimpleCounter,
    TiktokenCounter,
    build_counter,
    line_count,
)
from .summary import render_token_breakdown

__all__ = [
    "COUNTER_NAMES",
    "METRIC_TYPES",
    "Counter",
    "MetricItem",
    "MetricKey",
    "OutputMetrics",
    "SimpleCounter",
    "TiktokenCounter",
    "build_counter",
    "line_count",
    "render_token_breakdown",
]
