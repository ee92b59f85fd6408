"""Shared fixtures for logmetrics tests."""

from pathlib import Path

import pytest

from logmetrics.state.metric_store import MetricStateStore
from logmetrics.statistics.random_source import RandomSource

FIXED_TS_MS = 1_700_000_000_000
SEED = 20240611


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep LOGMETRICS_* from the developer's shell out of the tests."""
    for name in (
        "LOGMETRICS_ROOT",
        "LOGMETRICS_CONFIG",
        "LOGMETRICS_ENDPOINT",
        "LOGMETRICS_CONTAINERS",
        "LOGMETRICS_ORG_ID",
        "LOGMETRICS_LINES_PER_CYCLE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def rng() -> RandomSource:
    return RandomSource(SEED)


@pytest.fixture
def store() -> MetricStateStore:
    return MetricStateStore()


@pytest.fixture
def clock():
    return lambda: FIXED_TS_MS


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        """
endpoint: http://collector:9009
containers: [alpha, beta]
org_id: tenant-a
lines_per_cycle: 4
lines: ["one", "two", "three"]
bucket_bounds: [5, 0.1, 1, 0.5]
headers:
  Authorization: Bearer token
timeout_seconds: 3
interval_ms: 250
workers: 2
""",
        encoding="utf-8",
    )
    return path
