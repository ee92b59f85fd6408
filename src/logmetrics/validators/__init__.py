"""Validators for generated series batches."""

from .series_validator import SeriesValidator, ValidationError, ValidationResult

__all__ = [
    "SeriesValidator",
    "ValidationError",
    "ValidationResult",
]
