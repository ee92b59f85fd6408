"""
Prometheus remote-write wire encoding.

The WriteRequest schema is the subset of prometheus/prompb/remote.proto and
types.proto this generator emits:

    message WriteRequest { repeated TimeSeries timeseries = 1; }
    message TimeSeries   { repeated Label labels = 1; repeated Sample samples = 2; }
    message Label        { string name = 1; string value = 2; }
    message Sample       { double value = 1; int64 timestamp = 2; }

Field numbers match upstream, so payloads are accepted by any remote-write
receiver. Payloads are always snappy block-compressed.
"""

from collections.abc import Iterable

import snappy
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, EncodeError

from ..errors import EncodingError
from ..models import Label, Sample, TimeSeries

CONTENT_TYPE = "application/x-protobuf"
CONTENT_ENCODING = "snappy"
REMOTE_WRITE_VERSION = "0.1.0"
REMOTE_WRITE_PATH = "/api/v1/prom/remote/write"

_PACKAGE = "prometheus"
_FDP = descriptor_pb2.FieldDescriptorProto


def _add_field(
    message,
    name: str,
    number: int,
    field_type: int,
    repeated: bool = False,
    type_name: str | None = None,
):
    fld = message.field.add(
        name=name,
        number=number,
        type=field_type,
        label=_FDP.LABEL_REPEATED if repeated else _FDP.LABEL_OPTIONAL,
    )
    if type_name:
        fld.type_name = f".{_PACKAGE}.{type_name}"


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name="logmetrics/remote_write.proto",
        package=_PACKAGE,
        syntax="proto3",
    )
    label = fdp.message_type.add(name="Label")
    _add_field(label, "name", 1, _FDP.TYPE_STRING)
    _add_field(label, "value", 2, _FDP.TYPE_STRING)

    sample = fdp.message_type.add(name="Sample")
    _add_field(sample, "value", 1, _FDP.TYPE_DOUBLE)
    _add_field(sample, "timestamp", 2, _FDP.TYPE_INT64)

    series = fdp.message_type.add(name="TimeSeries")
    _add_field(series, "labels", 1, _FDP.TYPE_MESSAGE, repeated=True, type_name="Label")
    _add_field(series, "samples", 2, _FDP.TYPE_MESSAGE, repeated=True, type_name="Sample")

    request = fdp.message_type.add(name="WriteRequest")
    _add_field(request, "timeseries", 1, _FDP.TYPE_MESSAGE, repeated=True, type_name="TimeSeries")
    return fdp


# Private pool so the schema never clashes with other prometheus protos loaded in-process.
_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file_descriptor().SerializeToString())

WriteRequest = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{_PACKAGE}.WriteRequest"))


def to_write_request(series: Iterable[TimeSeries]):
    """Build a WriteRequest message from model series (labels kept in order)."""
    request = WriteRequest()
    for ts in series:
        pb_series = request.timeseries.add()
        for lbl in ts.labels:
            pb_series.labels.add(name=lbl.name, value=lbl.value)
        for smp in ts.samples:
            pb_series.samples.add(value=smp.value, timestamp=smp.timestamp_ms)
    return request


def from_write_request(request) -> list[TimeSeries]:
    """Convert a WriteRequest message back into model series."""
    return [
        TimeSeries(
            labels=tuple(Label(lbl.name, lbl.value) for lbl in pb_series.labels),
            samples=tuple(Sample(smp.timestamp, smp.value) for smp in pb_series.samples),
        )
        for pb_series in request.timeseries
    ]


def encode(series: Iterable[TimeSeries]) -> bytes:
    """Serialize series into a snappy-compressed WriteRequest.

    Label sets are not re-validated here; a batch from the series builder is
    well-formed by construction.
    """
    try:
        raw = to_write_request(series).SerializeToString()
    except (EncodeError, TypeError, ValueError) as e:
        raise EncodingError(f"failed to serialize write request: {e}") from e
    try:
        return snappy.compress(raw)
    except Exception as e:
        raise EncodingError(f"failed to snappy-compress write request: {e}") from e


def decode(payload: bytes) -> list[TimeSeries]:
    """Decompress and parse a payload produced by encode()."""
    try:
        raw = snappy.uncompress(payload)
    except Exception as e:
        raise EncodingError(f"payload is not valid snappy data: {e}") from e
    request = WriteRequest()
    try:
        request.ParseFromString(raw)
    except DecodeError as e:
        raise EncodingError(f"payload is not a valid write request: {e}") from e
    return from_write_request(request)


def remote_write_headers(org_id: str | None = None) -> dict[str, str]:
    """HTTP headers a remote-write receiver expects for these payloads."""
    headers = {
        "Content-Type": CONTENT_TYPE,
        "Content-Encoding": CONTENT_ENCODING,
        "X-Prometheus-Remote-Write-Version": REMOTE_WRITE_VERSION,
    }
    if org_id:
        headers["X-Scope-OrgID"] = org_id
    return headers
