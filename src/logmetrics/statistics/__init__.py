"""Random value provider used for telemetry generation."""

from .random_source import RandomSource

__all__ = [
    "RandomSource",
]
