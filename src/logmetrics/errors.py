"""Exceptions raised by the generation and encoding engine."""


class LogmetricsError(Exception):
    """Base class for all logmetrics errors."""

    pass


class InvalidArgument(LogmetricsError, ValueError):
    """Raised on bad configuration or arguments (empty pool, non-positive delta, ...)."""

    pass


class EncodingError(LogmetricsError):
    """Raised when a series batch cannot be serialized or compressed."""

    pass


class StateContractError(LogmetricsError, RuntimeError):
    """Raised when an entity's fixed histogram bucket layout would change.

    This is a programming error; callers should not try to recover from it.
    """

    pass


class ConfigError(LogmetricsError):
    """Raised when the config file or environment cannot be turned into settings."""

    pass
