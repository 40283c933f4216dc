"""Countdown to the 2030 climate target and year-to-date environmental metrics."""

from climate_clock.countdown import TimeRemaining, compute_remaining
from climate_clock.errors import DataSourceUnavailable
from climate_clock.formatting import format_remaining, format_value
from climate_clock.metrics import (
    METRIC_DEFINITIONS,
    ExternalReading,
    MetricDefinition,
    MetricSnapshot,
    project_metrics,
)

__all__ = [
    "DataSourceUnavailable",
    "ExternalReading",
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "MetricSnapshot",
    "TimeRemaining",
    "compute_remaining",
    "format_remaining",
    "format_value",
    "project_metrics",
]
