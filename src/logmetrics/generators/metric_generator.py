"""
Generate Prometheus remote-write batches for a fixed list of containers.

Each MetricGenerator owns its random source and metric state, so several
generators in one process never share counters, histograms or random
sequences.
"""

import threading
import time
from collections.abc import Callable, Iterable, Sequence

from ..errors import InvalidArgument
from ..exporters.remote_write import REMOTE_WRITE_PATH, remote_write_headers
from ..payloads import RemoteWriteRequest
from ..state.metric_store import DEFAULT_BUCKET_BOUNDS, MetricStateStore
from ..statistics.random_source import RandomSource
from .series_builder import build_series, series_per_entity


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class MetricGenerator:
    """Produce one RemoteWriteRequest per call to generate()."""

    path = REMOTE_WRITE_PATH

    def __init__(
        self,
        containers: Sequence[str],
        org_id: str = "",
        bucket_bounds: Iterable[float] = DEFAULT_BUCKET_BOUNDS,
        rng: RandomSource | None = None,
        clock: Callable[[], int] | None = None,
    ):
        """Initialize generator for the given containers.

        clock returns the wall-clock timestamp in milliseconds; it defaults to
        the system clock and exists so tests can pin timestamps.
        """
        names = [str(c) for c in containers]
        if not names:
            raise InvalidArgument("at least one container is required")
        if len(set(names)) != len(names):
            raise InvalidArgument(f"container names must be unique: {names}")
        self.containers: tuple[str, ...] = tuple(names)
        self.org_id = org_id
        self.store = MetricStateStore(bucket_bounds)
        self.rng = rng or RandomSource()
        self.clock = clock or _now_ms
        self._lock = threading.Lock()
        self._last_timestamp_ms = -1

    @property
    def series_per_cycle(self) -> int:
        return len(self.containers) * series_per_entity(len(self.store.bucket_bounds))

    def headers(self) -> dict[str, str]:
        return remote_write_headers(self.org_id)

    def generate(self) -> RemoteWriteRequest:
        """Advance every container's state by one cycle and return the batch.

        Cycles are serialized so that workers sharing this generator emit
        timestamps in the same order as counter and histogram updates. Each
        cycle gets a timestamp strictly later than the previous one.
        """
        with self._lock:
            timestamp_ms = max(self.clock(), self._last_timestamp_ms + 1)
            series = build_series(
                self.containers,
                self.store,
                self.rng,
                timestamp_ms,
                self.org_id,
            )
            self._last_timestamp_ms = timestamp_ms
        return RemoteWriteRequest(tuple(series))
