"""
logmetrics - synthetic telemetry load generator.

This package fabricates Prometheus remote-write metrics and plain-text log
lines and ships them to a collector endpoint for benchmarking observability
backends.
"""

__version__ = "1.0.0"
