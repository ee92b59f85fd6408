"""Wire encoders for generated telemetry."""

from .remote_write import (
    CONTENT_ENCODING,
    CONTENT_TYPE,
    REMOTE_WRITE_PATH,
    decode,
    encode,
    remote_write_headers,
)

__all__ = [
    "CONTENT_ENCODING",
    "CONTENT_TYPE",
    "REMOTE_WRITE_PATH",
    "decode",
    "encode",
    "remote_write_headers",
]
