"""Per-entity metric state."""

from .metric_store import (
    DEFAULT_BUCKET_BOUNDS,
    HistogramSnapshot,
    MetricStateStore,
    normalize_bucket_bounds,
)

__all__ = [
    "DEFAULT_BUCKET_BOUNDS",
    "HistogramSnapshot",
    "MetricStateStore",
    "normalize_bucket_bounds",
]
