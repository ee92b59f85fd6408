"""Telemetry generators for remote-write metrics and plain-text logs."""

from .log_generator import PlainTextGenerator, build_plaintext_batch
from .metric_generator import MetricGenerator
from .series_builder import build_series, entity_baseline

__all__ = [
    "MetricGenerator",
    "PlainTextGenerator",
    "build_plaintext_batch",
    "build_series",
    "entity_baseline",
]
