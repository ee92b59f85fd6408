"""
Build one generation cycle of labeled time series.

Per container the batch holds, in this order:
- cpu_usage, ram_usage, network_usage gauges (stable per-container baseline plus noise)
- http_requests_total counter
- request_latency_seconds histogram (buckets ascending, +Inf, _sum, _count)
- response_size_bytes summary (0.5/0.9/0.99 quantiles, _sum, _count)

Summary _sum (p99 * 10) and _count (100) are synthetic placeholders and are not
accumulated across cycles, unlike the histogram.
"""

import zlib
from collections.abc import Sequence

from ..models import METRIC_NAME_LABEL, Label, Sample, TimeSeries
from ..state.metric_store import HistogramSnapshot, MetricStateStore
from ..statistics.random_source import RandomSource

SENDER_TAG = "logmetrics"

# (metric name, baseline modulus, noise amplitude)
GAUGES: tuple[tuple[str, int, int], ...] = (
    ("cpu_usage", 100, 10),
    ("ram_usage", 1000, 100),
    ("network_usage", 1_000_000, 1000),
)

COUNTER_NAME = "http_requests_total"
COUNTER_MAX_DELTA = 5

HISTOGRAM_NAME = "request_latency_seconds"
MAX_LATENCY_SECONDS = 2.0

SUMMARY_NAME = "response_size_bytes"
SUMMARY_SAMPLE_COUNT = 100

FIXED_SERIES_PER_ENTITY = len(GAUGES) + 1 + 3 + 5


def series_per_entity(bucket_count: int) -> int:
    """Series emitted per entity for a histogram with `bucket_count` finite bounds."""
    return FIXED_SERIES_PER_ENTITY + bucket_count


def entity_baseline(name: str) -> int:
    """Stable non-negative baseline for an entity (CRC-32 of its name)."""
    return zlib.crc32(name.encode("utf-8"))


def format_bound(le: float) -> str:
    """Shortest decimal form of a bucket bound: 0.1 -> "0.1", 1.0 -> "1"."""
    text = repr(float(le))
    return text[:-2] if text.endswith(".0") else text


def base_labels(entity: str, org_id: str) -> tuple[Label, ...]:
    return (
        Label("container", entity),
        Label("orgid", org_id),
        Label("sender", SENDER_TAG),
    )


def _series(labels: tuple[Label, ...], name: str, ts: int, value: float, *extra: Label) -> TimeSeries:
    return TimeSeries(
        labels=(*labels, Label(METRIC_NAME_LABEL, name), *extra),
        samples=(Sample(ts, float(value)),),
    )


def _gauge_series(labels, base: int, rng: RandomSource, ts: int) -> list[TimeSeries]:
    out = []
    for name, modulus, amplitude in GAUGES:
        value = max(base % modulus + rng.noise(amplitude), 0)
        out.append(_series(labels, name, ts, value))
    return out


def _histogram_series(labels, hist: HistogramSnapshot, ts: int) -> list[TimeSeries]:
    out = [
        _series(labels, HISTOGRAM_NAME, ts, count, Label("le", format_bound(le)))
        for le, count in hist.buckets()
    ]
    out.append(_series(labels, HISTOGRAM_NAME, ts, hist.count, Label("le", "+Inf")))
    out.append(_series(labels, f"{HISTOGRAM_NAME}_sum", ts, hist.sum))
    out.append(_series(labels, f"{HISTOGRAM_NAME}_count", ts, hist.count))
    return out


def _summary_series(labels, base: int, rng: RandomSource, ts: int) -> list[TimeSeries]:
    p50 = float(base % 1000 + rng.random_int(500))
    p90 = p50 * (1.5 + rng.random_float())
    p99 = p90 * (1.2 + rng.random_float())
    return [
        _series(labels, SUMMARY_NAME, ts, p50, Label("quantile", "0.5")),
        _series(labels, SUMMARY_NAME, ts, p90, Label("quantile", "0.9")),
        _series(labels, SUMMARY_NAME, ts, p99, Label("quantile", "0.99")),
        _series(labels, f"{SUMMARY_NAME}_sum", ts, p99 * 10),
        _series(labels, f"{SUMMARY_NAME}_count", ts, SUMMARY_SAMPLE_COUNT),
    ]


def build_entity_series(
    entity: str,
    store: MetricStateStore,
    rng: RandomSource,
    timestamp_ms: int,
    org_id: str,
) -> list[TimeSeries]:
    """Mutate one entity's state for this cycle and return its series."""
    base = entity_baseline(entity)
    labels = base_labels(entity, org_id)
    series = _gauge_series(labels, base, rng, timestamp_ms)

    total = store.increment_counter(entity, rng.random_int(COUNTER_MAX_DELTA) + 1)
    series.append(_series(labels, COUNTER_NAME, timestamp_ms, total))

    latency = abs(rng.random_float() * MAX_LATENCY_SECONDS)
    hist = store.observe_histogram(entity, latency)
    series.extend(_histogram_series(labels, hist, timestamp_ms))

    series.extend(_summary_series(labels, base, rng, timestamp_ms))
    return series


def build_series(
    entities: Sequence[str],
    store: MetricStateStore,
    rng: RandomSource,
    timestamp_ms: int,
    org_id: str,
) -> list[TimeSeries]:
    """Build the full batch for one cycle, in entity order.

    An exception aborts the whole call. State already mutated for earlier
    entities in the cycle stays applied; there is no rollback.
    """
    batch: list[TimeSeries] = []
    for entity in entities:
        batch.extend(build_entity_series(entity, store, rng, timestamp_ms, org_id))
    return batch
