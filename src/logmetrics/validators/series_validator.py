"""
Validate generated series batches for remote-write protocol correctness.

Validates:
- Each label set has unique names and exactly one __name__
- Each series carries at least one sample
- No two series in a batch share a label set
- Histogram buckets are cumulative and +Inf matches _count
"""

import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..models import METRIC_NAME_LABEL, TimeSeries


class ValidationSeverity(Enum):
    """Severity level for validation issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationError:
    """A single validation error or warning."""

    severity: ValidationSeverity
    series: str
    message: str
    expected: Any = None
    actual: Any = None

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.series}: {self.message}"


@dataclass
class ValidationResult:
    """Result of validating a series batch."""

    valid: bool = True
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    def add_error(self, error: ValidationError):
        """Add an error to the result."""
        if error.severity == ValidationSeverity.ERROR:
            self.errors.append(error)
            self.valid = False
        else:
            self.warnings.append(error)

    def merge(self, other: "ValidationResult"):
        """Merge another result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.valid:
            self.valid = False

    def __str__(self) -> str:
        lines = ["Validation passed" if self.valid else "Validation failed"]

        if self.errors:
            lines.append(f"\nErrors ({len(self.errors)}):")
            for err in self.errors:
                lines.append(f"  - {err}")

        if self.warnings:
            lines.append(f"\nWarnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"  - {warn}")

        return "\n".join(lines)


def describe(ts: TimeSeries) -> str:
    """Render a series identity as name{k="v",...}."""
    name = ts.metric_name or "<unnamed>"
    rest = ",".join(f'{lbl.name}="{lbl.value}"' for lbl in ts.labels if lbl.name != METRIC_NAME_LABEL)
    return f"{name}{{{rest}}}"


def _parse_le(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


class SeriesValidator:
    """Check a batch of series before it is encoded and sent."""

    def __init__(self, single_sample: bool = True):
        """single_sample: warn when a series carries more than one sample."""
        self.single_sample = single_sample

    def validate_series(self, ts: TimeSeries) -> ValidationResult:
        """Validate the label set and samples of one series."""
        result = ValidationResult()
        where = describe(ts)

        names = [lbl.name for lbl in ts.labels]
        for name in sorted({n for n in names if names.count(n) > 1}):
            result.add_error(
                ValidationError(
                    ValidationSeverity.ERROR,
                    where,
                    f"duplicate label name '{name}'",
                    expected=1,
                    actual=names.count(name),
                )
            )
        if any(not n for n in names):
            result.add_error(ValidationError(ValidationSeverity.ERROR, where, "empty label name"))
        if METRIC_NAME_LABEL not in names:
            result.add_error(
                ValidationError(ValidationSeverity.ERROR, where, f"missing {METRIC_NAME_LABEL} label")
            )

        if not ts.samples:
            result.add_error(ValidationError(ValidationSeverity.ERROR, where, "series has no samples"))
        elif self.single_sample and len(ts.samples) > 1:
            result.add_error(
                ValidationError(
                    ValidationSeverity.WARNING,
                    where,
                    "expected one sample per cycle",
                    expected=1,
                    actual=len(ts.samples),
                )
            )
        for smp in ts.samples:
            if smp.timestamp_ms < 0:
                result.add_error(
                    ValidationError(
                        ValidationSeverity.ERROR, where, "negative timestamp", actual=smp.timestamp_ms
                    )
                )
            if math.isnan(smp.value):
                result.add_error(ValidationError(ValidationSeverity.WARNING, where, "NaN sample value"))
        return result

    def validate_histograms(self, batch: list[TimeSeries]) -> ValidationResult:
        """Check cumulative bucket ordering and +Inf == _count for every histogram family."""
        result = ValidationResult()
        buckets: dict[tuple, list[tuple[float, float]]] = defaultdict(list)
        counts: dict[tuple, float] = {}

        for ts in batch:
            name = ts.metric_name
            if not name or not ts.samples:
                continue
            le = ts.label("le")
            others = tuple(
                (lbl.name, lbl.value)
                for lbl in ts.labels
                if lbl.name not in (METRIC_NAME_LABEL, "le")
            )
            if le is not None:
                bound = _parse_le(le)
                if bound is None:
                    result.add_error(
                        ValidationError(ValidationSeverity.ERROR, describe(ts), f"invalid le '{le}'")
                    )
                    continue
                buckets[(name, others)].append((bound, ts.value))
            elif name.endswith("_count"):
                counts[(name[: -len("_count")], others)] = ts.value

        for (name, others), points in buckets.items():
            where = f"{name}{{{','.join(f'{k}={v!r}' for k, v in others)}}}"
            points.sort(key=lambda p: p[0])
            for (lo_le, lo), (hi_le, hi) in zip(points, points[1:]):
                if hi < lo:
                    result.add_error(
                        ValidationError(
                            ValidationSeverity.ERROR,
                            where,
                            f"bucket le={hi_le:g} has fewer observations than le={lo_le:g}",
                            expected=f">= {lo}",
                            actual=hi,
                        )
                    )
            if not points or not math.isinf(points[-1][0]):
                result.add_error(ValidationError(ValidationSeverity.ERROR, where, "missing +Inf bucket"))
                continue
            total = counts.get((name, others))
            if total is None:
                result.add_error(ValidationError(ValidationSeverity.WARNING, where, "missing _count series"))
            elif total != points[-1][1]:
                result.add_error(
                    ValidationError(
                        ValidationSeverity.ERROR,
                        where,
                        "+Inf bucket does not match _count",
                        expected=total,
                        actual=points[-1][1],
                    )
                )
        return result

    def validate(self, series: Iterable[TimeSeries]) -> ValidationResult:
        """Validate a whole batch."""
        batch = list(series)
        result = ValidationResult()
        seen: set[tuple] = set()
        for ts in batch:
            result.merge(self.validate_series(ts))
            identity = tuple(sorted((lbl.name, lbl.value) for lbl in ts.labels))
            if identity in seen:
                result.add_error(
                    ValidationError(ValidationSeverity.ERROR, describe(ts), "duplicate series in batch")
                )
            seen.add(identity)
        result.merge(self.validate_histograms(batch))
        return result
