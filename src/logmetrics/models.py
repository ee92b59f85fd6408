"""Time series data model shared by the series builder, encoder and validator."""

from dataclasses import dataclass, field

METRIC_NAME_LABEL = "__name__"


@dataclass(frozen=True)
class Label:
    """A single (name, value) label."""

    name: str
    value: str


@dataclass(frozen=True)
class Sample:
    """A timestamped value; timestamp is milliseconds since the epoch."""

    timestamp_ms: int
    value: float


@dataclass(frozen=True)
class TimeSeries:
    """An ordered label set plus its samples (one per cycle in practice)."""

    labels: tuple[Label, ...]
    samples: tuple[Sample, ...] = field(default_factory=tuple)

    @property
    def metric_name(self) -> str | None:
        return self.label(METRIC_NAME_LABEL)

    def label(self, name: str) -> str | None:
        """Return the value of label `name`, or None when absent."""
        for lbl in self.labels:
            if lbl.name == name:
                return lbl.value
        return None

    @property
    def value(self) -> float:
        """Value of the last sample."""
        if not self.samples:
            raise ValueError("series has no samples")
        return self.samples[-1].value
