"""Assignment-vector sinks: JSON-lines records or fixed-width binary.

Binary layout:
- ``BINARY_MAGIC`` once at the start of the stream
- per sample, ``n_precincts`` big-endian unsigned 16-bit labels in flat-index
  order, with no delimiter or length prefix

Record boundaries are implicit, so a reader must know ``n_precincts`` (the
topology document's precinct count) to split the stream.
"""
from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import BinaryIO

import orjson

from msms_canon.errors import CanonicalizeError, LabelRangeError
from msms_canon.io_utils import encode_json_line

BINARY_MAGIC = b"MSMS-U16-ASSIGN\n"
U16_MAX = 0xFFFF
_U16_BYTES = 2


def pack_u16_vector(vector: Sequence[int]) -> bytes:
    """Pack labels as big-endian u16, failing on any out-of-range label."""
    for idx, label in enumerate(vector):
        if not 0 <= label <= U16_MAX:
            raise LabelRangeError(
                f"Label {label} at flat index {idx} does not fit in 16 bits"
            )
    return struct.pack(f">{len(vector)}H", *vector)


def unpack_u16_vector(data: bytes) -> list[int]:
    if len(data) % _U16_BYTES != 0:
        raise ValueError(f"Byte length {len(data)} is not a multiple of 2")
    return list(struct.unpack(f">{len(data) // _U16_BYTES}H", data))


class AssignmentEncoder(ABC):
    """Append-only sink fed one assignment vector per sample, in order."""

    def __init__(self, sink: BinaryIO) -> None:
        self.sink = sink
        self.samples_written = 0

    def write_header(self) -> None:
        """Emit any stream preamble. Called once before the first sample."""

    @abstractmethod
    def write_assignment(self, sample: int, vector: Sequence[int]) -> None:
        ...

    def close(self) -> None:
        self.sink.flush()


class JsonlAssignmentEncoder(AssignmentEncoder):
    """Writes ``{"sample": n, "assignment": [...]}`` per line."""

    def write_assignment(self, sample: int, vector: Sequence[int]) -> None:
        # orjson only serializes 64-bit ints; the array is rendered as a raw
        # fragment so labels keep arbitrary precision
        assignment = orjson.Fragment("[" + ",".join(str(int(label)) for label in vector) + "]")
        self.sink.write(encode_json_line({"sample": sample, "assignment": assignment}))
        self.samples_written += 1


class BinaryAssignmentEncoder(AssignmentEncoder):
    """Writes the magic header then fixed-width u16 records."""

    def write_header(self) -> None:
        self.sink.write(BINARY_MAGIC)

    def write_assignment(self, sample: int, vector: Sequence[int]) -> None:
        # pack first so a bad label leaves no partial record behind
        self.sink.write(pack_u16_vector(vector))
        self.samples_written += 1


def make_encoder(sink: BinaryIO, *, binary: bool) -> AssignmentEncoder:
    if binary:
        return BinaryAssignmentEncoder(sink)
    return JsonlAssignmentEncoder(sink)


def read_binary_assignments(stream: BinaryIO, n_precincts: int) -> Iterator[list[int]]:
    """Yield assignment vectors from a stream written by the binary encoder."""
    magic = stream.read(len(BINARY_MAGIC))
    if magic != BINARY_MAGIC:
        raise CanonicalizeError("Stream does not start with the binary assignment header")
    if n_precincts == 0:
        return
    record_size = n_precincts * _U16_BYTES
    while True:
        chunk = stream.read(record_size)
        if not chunk:
            return
        if len(chunk) != record_size:
            raise CanonicalizeError(
                f"Truncated record: expected {record_size} bytes, got {len(chunk)}"
            )
        yield unpack_u16_vector(chunk)
