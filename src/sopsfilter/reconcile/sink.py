"""Output sink — hand the chosen bytes back to git untouched."""

from __future__ import annotations

from typing import BinaryIO


class WriteFailure(Exception):
    """Raised when the filter output could not be delivered."""


def emit(data: bytes, stream: BinaryIO) -> None:
    """Write *data* to *stream* verbatim and flush it."""
    try:
        written = stream.write(data)
        stream.flush()
    except OSError as exc:
        raise WriteFailure(f"failed to write filter output: {exc}") from exc
    if written is not None and written != len(data):
        raise WriteFailure(f"short write: {written} of {len(data)} bytes")
