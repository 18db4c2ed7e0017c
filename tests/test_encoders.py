"""Tests for msms_canon.encoders."""
from __future__ import annotations

import io
import struct

import pytest

from msms_canon.encoders import (
    BINARY_MAGIC,
    BinaryAssignmentEncoder,
    JsonlAssignmentEncoder,
    make_encoder,
    pack_u16_vector,
    read_binary_assignments,
    unpack_u16_vector,
)
from msms_canon.errors import CanonicalizeError, LabelRangeError


class TestPackU16:
    def test_big_endian_fixed_width(self) -> None:
        assert pack_u16_vector([1, 258]) == b"\x00\x01\x01\x02"

    def test_bounds(self) -> None:
        assert pack_u16_vector([0, 0xFFFF]) == b"\x00\x00\xff\xff"

    def test_overflow_fails_fast(self) -> None:
        with pytest.raises(LabelRangeError, match="flat index 1"):
            pack_u16_vector([1, 65536])

    def test_unpack_rejects_odd_length(self) -> None:
        with pytest.raises(ValueError):
            unpack_u16_vector(b"\x00")


class TestJsonlEncoder:
    def test_record_shape(self) -> None:
        sink = io.BytesIO()
        enc = JsonlAssignmentEncoder(sink)
        enc.write_header()
        enc.write_assignment(1, [3, 0, 2])
        assert sink.getvalue() == b'{"sample":1,"assignment":[3,0,2]}\n'
        assert enc.samples_written == 1

    def test_labels_wider_than_u16(self) -> None:
        sink = io.BytesIO()
        JsonlAssignmentEncoder(sink).write_assignment(4, [2**40])
        assert sink.getvalue() == b'{"sample":4,"assignment":[1099511627776]}\n'


class TestBinaryEncoder:
    def test_header_then_records(self) -> None:
        sink = io.BytesIO()
        enc = BinaryAssignmentEncoder(sink)
        enc.write_header()
        enc.write_assignment(1, [1, 2])
        enc.write_assignment(2, [3, 4])
        assert sink.getvalue() == BINARY_MAGIC + struct.pack(">4H", 1, 2, 3, 4)

    def test_overflow_leaves_no_partial_record(self) -> None:
        sink = io.BytesIO()
        enc = BinaryAssignmentEncoder(sink)
        enc.write_header()
        with pytest.raises(LabelRangeError):
            enc.write_assignment(1, [1, 70000])
        assert sink.getvalue() == BINARY_MAGIC
        assert enc.samples_written == 0

    def test_make_encoder(self) -> None:
        assert isinstance(make_encoder(io.BytesIO(), binary=True), BinaryAssignmentEncoder)
        assert isinstance(make_encoder(io.BytesIO(), binary=False), JsonlAssignmentEncoder)


class TestReadBinaryAssignments:
    def test_reads_back_records(self) -> None:
        data = BINARY_MAGIC + struct.pack(">6H", 1, 2, 3, 4, 5, 6)
        assert list(read_binary_assignments(io.BytesIO(data), 3)) == [[1, 2, 3], [4, 5, 6]]

    def test_bad_magic(self) -> None:
        with pytest.raises(CanonicalizeError, match="header"):
            list(read_binary_assignments(io.BytesIO(b"STANDARD BEN FILE"), 3))

    def test_truncated_record(self) -> None:
        data = BINARY_MAGIC + struct.pack(">4H", 1, 2, 3, 4)
        with pytest.raises(CanonicalizeError, match="Truncated"):
            list(read_binary_assignments(io.BytesIO(data), 3))

    def test_empty_topology(self) -> None:
        assert list(read_binary_assignments(io.BytesIO(BINARY_MAGIC), 0)) == []
