"""Tests for building one generation cycle of series."""

import threading
import zlib

import pytest

from logmetrics.errors import InvalidArgument
from logmetrics.generators.metric_generator import MetricGenerator
from logmetrics.generators.series_builder import (
    COUNTER_NAME,
    HISTOGRAM_NAME,
    SUMMARY_NAME,
    build_series,
    entity_baseline,
    format_bound,
    series_per_entity,
)
from logmetrics.models import METRIC_NAME_LABEL
from logmetrics.statistics.random_source import RandomSource

SEED = 20240611

CONTAINERS = ["checkout-api", "payments-worker", "inventory-db"]


def _by_container(series, container):
    return [ts for ts in series if ts.label("container") == container]


def _value(series, name, **labels):
    matches = [
        ts
        for ts in series
        if ts.metric_name == name and all(ts.label(k) == v for k, v in labels.items())
    ]
    assert len(matches) == 1, f"{name} {labels}: {len(matches)} matches"
    return matches[0].value


@pytest.fixture
def generator(clock) -> MetricGenerator:
    return MetricGenerator(CONTAINERS, org_id="tenant-1", rng=RandomSource(SEED), clock=clock)


def test_cycle_emits_fixed_number_of_series_per_container(generator: MetricGenerator) -> None:
    """3 gauges + counter + 4 buckets/+Inf/_sum/_count + 5 summary series per container."""
    batch = generator.generate()
    assert series_per_entity(4) == 16
    assert batch.size() == 16 * len(CONTAINERS)
    assert generator.series_per_cycle == batch.size()


def test_series_count_follows_bucket_layout(clock) -> None:
    """The series count grows with the number of bucket bounds."""
    gen = MetricGenerator(["a", "b"], bucket_bounds=[1, 2], rng=RandomSource(SEED), clock=clock)
    assert gen.generate().size() == 2 * 14


def test_per_container_emission_order(generator: MetricGenerator) -> None:
    """Each container emits gauges, counter, histogram and summary in a fixed order."""
    series = _by_container(generator.generate().series, "checkout-api")
    order = [(ts.metric_name, ts.label("le") or ts.label("quantile")) for ts in series]
    assert order == [
        ("cpu_usage", None),
        ("ram_usage", None),
        ("network_usage", None),
        (COUNTER_NAME, None),
        (HISTOGRAM_NAME, "0.1"),
        (HISTOGRAM_NAME, "0.5"),
        (HISTOGRAM_NAME, "1"),
        (HISTOGRAM_NAME, "5"),
        (HISTOGRAM_NAME, "+Inf"),
        (f"{HISTOGRAM_NAME}_sum", None),
        (f"{HISTOGRAM_NAME}_count", None),
        (SUMMARY_NAME, "0.5"),
        (SUMMARY_NAME, "0.9"),
        (SUMMARY_NAME, "0.99"),
        (f"{SUMMARY_NAME}_sum", None),
        (f"{SUMMARY_NAME}_count", None),
    ]


def test_containers_appear_in_input_order(generator: MetricGenerator) -> None:
    """Containers are emitted in the order they were configured."""
    seen = []
    for ts in generator.generate().series:
        name = ts.label("container")
        if not seen or seen[-1] != name:
            seen.append(name)
    assert seen == CONTAINERS


def test_every_series_has_base_labels_and_one_sample(generator: MetricGenerator) -> None:
    """Every series starts with container, orgid, sender and __name__."""
    for ts in generator.generate().series:
        names = [lbl.name for lbl in ts.labels]
        assert names[:4] == ["container", "orgid", "sender", METRIC_NAME_LABEL]
        assert len(names) == len(set(names))
        assert ts.label("orgid") == "tenant-1"
        assert ts.label("sender") == "logmetrics"
        assert len(ts.samples) == 1
        assert ts.samples[0].timestamp_ms == generator.clock()


def test_counter_is_monotonic_and_sums_deltas(generator: MetricGenerator) -> None:
    """http_requests_total never decreases and grows by 1..5 per cycle."""
    previous = {c: 0.0 for c in CONTAINERS}
    for _ in range(50):
        series = generator.generate().series
        for c in CONTAINERS:
            value = _value(_by_container(series, c), COUNTER_NAME)
            assert 1 <= value - previous[c] <= 5
            previous[c] = value
    for c in CONTAINERS:
        assert generator.store.counter_value(c) == previous[c]


def test_histogram_buckets_are_cumulative(generator: MetricGenerator) -> None:
    """Bucket counts never decrease with le, and +Inf equals _count."""
    for cycle in range(1, 31):
        series = generator.generate().series
        for c in CONTAINERS:
            own = _by_container(series, c)
            buckets = [_value(own, HISTOGRAM_NAME, le=le) for le in ("0.1", "0.5", "1", "5")]
            inf = _value(own, HISTOGRAM_NAME, le="+Inf")
            count = _value(own, f"{HISTOGRAM_NAME}_count")
            assert buckets == sorted(buckets)
            assert buckets[-1] <= inf
            assert inf == count == cycle
            # Latencies are drawn from [0, 2), so the 5s bucket holds everything.
            assert buckets[-1] == cycle


def test_histogram_sum_matches_replayed_observations(clock) -> None:
    """_sum equals the exact sum of the latencies a twin random source replays."""
    gen = MetricGenerator(["solo"], rng=RandomSource(SEED), clock=clock)
    twin = RandomSource(SEED)
    expected = 0.0
    for _ in range(25):
        series = gen.generate().series
        for amplitude in (10, 100, 1000):
            twin.noise(amplitude)
        twin.random_int(5)
        expected += abs(twin.random_float() * 2)
        twin.random_int(500)
        twin.random_float()
        twin.random_float()
        assert _value(series, f"{HISTOGRAM_NAME}_sum") == expected


def test_gauge_baseline_is_stable_per_container() -> None:
    """A container's baseline is the CRC-32 of its name."""
    assert entity_baseline("checkout-api") == entity_baseline("checkout-api")
    assert entity_baseline("checkout-api") == zlib.crc32(b"checkout-api")
    assert entity_baseline("checkout-api") != entity_baseline("payments-worker")


@pytest.mark.parametrize(
    ("name", "modulus", "amplitude"),
    [("cpu_usage", 100, 10), ("ram_usage", 1000, 100), ("network_usage", 1_000_000, 1000)],
)
def test_gauges_stay_within_noise_of_baseline(generator, name, modulus, amplitude) -> None:
    """Gauges stay within the noise amplitude of their baseline."""
    for _ in range(20):
        series = generator.generate().series
        for c in CONTAINERS:
            base = entity_baseline(c) % modulus
            value = _value(_by_container(series, c), name)
            assert value >= 0
            assert max(base - amplitude, 0) <= value <= base + amplitude


def test_summary_quantiles_are_ordered(generator: MetricGenerator) -> None:
    """Summary quantiles are ordered p50 <= p90 <= p99."""
    for _ in range(20):
        series = generator.generate().series
        for c in CONTAINERS:
            own = _by_container(series, c)
            p50 = _value(own, SUMMARY_NAME, quantile="0.5")
            p90 = _value(own, SUMMARY_NAME, quantile="0.9")
            p99 = _value(own, SUMMARY_NAME, quantile="0.99")
            base = entity_baseline(c) % 1000
            assert base <= p50 < base + 500
            assert 1.5 * p50 <= p90 <= 2.5 * p50
            assert 1.2 * p90 <= p99 <= 2.2 * p90
            assert _value(own, f"{SUMMARY_NAME}_sum") == p99 * 10
            assert _value(own, f"{SUMMARY_NAME}_count") == 100


def test_independent_generators_do_not_share_state(clock) -> None:
    """Two generators for the same container keep separate state."""
    a = MetricGenerator(["x"], rng=RandomSource(1), clock=clock)
    b = MetricGenerator(["x"], rng=RandomSource(1), clock=clock)
    for _ in range(3):
        a.generate()
    b.generate()
    assert a.store.histogram_snapshot("x").count == 3
    assert b.store.histogram_snapshot("x").count == 1


def test_build_series_with_no_entities_is_empty(store, rng) -> None:
    """No entities means no series."""
    assert build_series([], store, rng, 1_700_000_000_000, "org") == []


@pytest.mark.parametrize("containers", [[], ["a", "a"]])
def test_generator_rejects_bad_container_lists(containers) -> None:
    """Empty or duplicate container lists are rejected."""
    with pytest.raises(InvalidArgument):
        MetricGenerator(containers)


@pytest.mark.parametrize(
    ("bound", "text"),
    [(0.1, "0.1"), (0.5, "0.5"), (1.0, "1"), (5, "5"), (2.5, "2.5"), (1e-7, "1e-07")],
)
def test_format_bound(bound, text) -> None:
    """Bucket bounds are rendered without a trailing .0."""
    assert format_bound(bound) == text


def test_shared_generator_counter_never_decreases_over_time() -> None:
    """Workers sharing a generator emit counter values in timestamp order."""
    first_call_entered = threading.Event()
    release_first_call = threading.Event()
    ticks = iter([100, 101])
    tick_lock = threading.Lock()

    def slow_first_clock() -> int:
        with tick_lock:
            tick = next(ticks)
        if tick == 100:
            first_call_entered.set()
            release_first_call.wait(timeout=5)
        return tick

    gen = MetricGenerator(["api"], rng=RandomSource(SEED), clock=slow_first_clock)
    batches = []

    def worker() -> None:
        batches.append(gen.generate().series)

    first = threading.Thread(target=worker)
    first.start()
    assert first_call_entered.wait(timeout=5)
    second = threading.Thread(target=worker)
    second.start()
    second.join(timeout=0.2)
    release_first_call.set()
    first.join(timeout=5)
    second.join(timeout=5)

    points = sorted(
        (ts.samples[0].timestamp_ms, ts.value)
        for series in batches
        for ts in series
        if ts.metric_name == COUNTER_NAME
    )
    assert [t for t, _ in points] == [100, 101]
    assert points[0][1] < points[1][1]


def test_cycles_on_the_same_millisecond_get_distinct_timestamps(clock) -> None:
    """A stalled clock still yields strictly increasing sample timestamps."""
    gen = MetricGenerator(["api"], rng=RandomSource(SEED), clock=clock)
    stamps = [gen.generate().series[0].samples[0].timestamp_ms for _ in range(3)]
    assert stamps == [clock(), clock() + 1, clock() + 2]
