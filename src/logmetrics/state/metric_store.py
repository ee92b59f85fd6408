"""
Per-entity counter and histogram accumulators.

The store is owned by one generator instance. Every read-modify-write goes
through a single lock, so sender workers sharing a generator never lose an
increment or observe a half-updated histogram.
"""

import math
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from ..errors import InvalidArgument, StateContractError

DEFAULT_BUCKET_BOUNDS: tuple[float, ...] = (0.1, 0.5, 1.0, 5.0)


def normalize_bucket_bounds(bounds: Iterable[float]) -> tuple[float, ...]:
    """Validate bucket upper bounds and return them sorted ascending."""
    values = [float(b) for b in bounds]
    if not values:
        raise InvalidArgument("at least one histogram bucket bound is required")
    if any(not math.isfinite(b) for b in values):
        raise InvalidArgument("histogram bucket bounds must be finite (+Inf is implicit)")
    if len(set(values)) != len(values):
        raise InvalidArgument(f"duplicate histogram bucket bounds: {sorted(values)}")
    return tuple(sorted(values))


@dataclass(frozen=True)
class HistogramSnapshot:
    """Immutable copy of one entity's histogram at a point in time."""

    bounds: tuple[float, ...]
    bucket_counts: tuple[int, ...]
    sum: float
    count: int

    def buckets(self) -> list[tuple[float, int]]:
        """(bound, cumulative count) pairs in ascending bound order."""
        return list(zip(self.bounds, self.bucket_counts, strict=True))


class _HistogramState:
    __slots__ = ("bounds", "bucket_counts", "sum", "count")

    def __init__(self, bounds: tuple[float, ...]):
        self.bounds = bounds
        self.bucket_counts = [0] * len(bounds)
        self.sum = 0.0
        self.count = 0

    def observe(self, value: float) -> None:
        # Cumulative: an observation lands in every bucket whose bound covers it.
        for i, le in enumerate(self.bounds):
            if value <= le:
                self.bucket_counts[i] += 1
        self.sum += value
        self.count += 1

    def snapshot(self) -> HistogramSnapshot:
        return HistogramSnapshot(
            bounds=self.bounds,
            bucket_counts=tuple(self.bucket_counts),
            sum=self.sum,
            count=self.count,
        )


class MetricStateStore:
    """Mutable counter and histogram state keyed by entity name."""

    def __init__(self, bucket_bounds: Iterable[float] = DEFAULT_BUCKET_BOUNDS):
        self.bucket_bounds = normalize_bucket_bounds(bucket_bounds)
        self._lock = threading.Lock()
        self._counters: dict[str, float] = {}
        self._histograms: dict[str, _HistogramState] = {}

    def _ensure_locked(self, name: str, bounds: tuple[float, ...] | None = None) -> None:
        existing = self._histograms.get(name)
        if existing is not None:
            if bounds is not None and bounds != existing.bounds:
                raise StateContractError(
                    f"bucket bounds for {name!r} are fixed at {existing.bounds}; got {bounds}"
                )
            return
        self._counters[name] = 0.0
        self._histograms[name] = _HistogramState(bounds or self.bucket_bounds)

    def ensure_entity(self, name: str, bucket_bounds: Iterable[float] | None = None) -> None:
        """Create zeroed counter and histogram state for `name` if absent.

        Passing bucket bounds that differ from an existing entity's layout
        raises StateContractError.
        """
        bounds = normalize_bucket_bounds(bucket_bounds) if bucket_bounds is not None else None
        with self._lock:
            self._ensure_locked(name, bounds)

    def increment_counter(self, name: str, delta: float) -> float:
        """Add a positive delta to the entity's counter and return the new value."""
        if not delta > 0:
            raise InvalidArgument(f"counter delta must be > 0, got {delta}")
        with self._lock:
            self._ensure_locked(name)
            self._counters[name] += delta
            return self._counters[name]

    def observe_histogram(self, name: str, value: float) -> HistogramSnapshot:
        """Record one observation and return the histogram as it stands afterwards."""
        with self._lock:
            self._ensure_locked(name)
            hist = self._histograms[name]
            hist.observe(value)
            return hist.snapshot()

    def counter_value(self, name: str) -> float:
        with self._lock:
            return self._counters.get(name, 0.0)

    def histogram_snapshot(self, name: str) -> HistogramSnapshot | None:
        with self._lock:
            hist = self._histograms.get(name)
            return hist.snapshot() if hist is not None else None

    def entities(self) -> list[str]:
        """Entity names with state, in creation order."""
        with self._lock:
            return list(self._counters)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._counters
