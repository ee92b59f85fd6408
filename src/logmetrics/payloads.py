"""
Request payloads handed to the sender.

A generator's generate() returns one of these; the sender only relies on the
Request protocol (serialize + size).
"""

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .exporters.remote_write import encode
from .models import TimeSeries


@runtime_checkable
class Request(Protocol):
    """Opaque payload produced once per sending cycle."""

    def serialize(self) -> bytes: ...

    def size(self) -> int: ...


@dataclass(frozen=True)
class RemoteWriteRequest:
    """A batch of series, serialized as a snappy-compressed WriteRequest."""

    series: tuple[TimeSeries, ...] = field(default_factory=tuple)

    def serialize(self) -> bytes:
        return encode(self.series)

    def size(self) -> int:
        """Number of series in the batch."""
        return len(self.series)


@dataclass(frozen=True)
class PlainTextRequest:
    """Newline-terminated log lines."""

    lines: tuple[str, ...] = field(default_factory=tuple)

    def serialize(self) -> bytes:
        return "".join(f"{line}\n" for line in self.lines).encode("utf-8")

    def size(self) -> int:
        return len(self.lines)
