"""Tests for msms_canon.shape_index."""
from __future__ import annotations

import io

import pytest

from msms_canon.errors import DocumentParseError, ShapeIndexError, ShapeLookupError
from msms_canon.shape_index import ShapeIndex, build_shape_index, read_shape_index


def _graph(*nodes: dict[str, object]) -> dict[str, object]:
    return {"directed": False, "nodes": list(nodes), "adjacency": []}


class TestBuildShapeIndex:
    def test_two_level_mapping(self) -> None:
        doc = _graph(
            {"county": "A", "prec": "1", "id": 0},
            {"county": "A", "prec": "2", "id": 1},
            {"county": "B", "prec": "1", "id": 2},
        )
        index = build_shape_index(doc, "county", "prec")
        assert index.to_dict() == {"A": {"1": 0, "2": 1}, "B": {"1": 2}}
        assert index.total_precinct_count == 3
        assert len(index) == 3

    def test_nodes_missing_fields_are_skipped(self) -> None:
        doc = _graph(
            {"county": "A", "prec": "1", "id": 0},
            {"county": "A", "id": 5},
            {"prec": "9", "id": 6},
            {"county": "A", "prec": "3"},
            {"county": "A", "prec": "4", "id": True},
            {"county": "A", "prec": "5", "id": -1},
            {"county": 7, "prec": "6", "id": 1},
            "not a node",
        )
        index = build_shape_index(doc, "county", "prec")
        assert index.to_dict() == {"A": {"1": 0}}

    def test_missing_nodes_gives_empty_index(self) -> None:
        assert build_shape_index({"links": []}, "county", "prec").total_precinct_count == 0
        assert build_shape_index([1, 2, 3], "county", "prec").total_precinct_count == 0

    def test_field_names_are_caller_chosen(self) -> None:
        doc = _graph({"COUNTYFP": "001", "VTD": "0042", "id": 0})
        index = build_shape_index(doc, "COUNTYFP", "VTD")
        assert index.flat_index("001", "0042") == 0

    def test_id_outside_dense_range_rejected(self) -> None:
        doc = _graph(
            {"county": "A", "prec": "1", "id": 0},
            {"county": "A", "prec": "2", "id": 7},
        )
        with pytest.raises(ShapeIndexError, match="outside"):
            build_shape_index(doc, "county", "prec")

    def test_shared_id_rejected(self) -> None:
        doc = _graph(
            {"county": "A", "prec": "1", "id": 0},
            {"county": "A", "prec": "2", "id": 0},
            {"county": "B", "prec": "1", "id": 2},
        )
        with pytest.raises(ShapeIndexError, match="Node id 0 is shared"):
            build_shape_index(doc, "county", "prec")

    def test_repeated_pair_keeps_later_id(self) -> None:
        doc = _graph(
            {"county": "A", "prec": "1", "id": 5},
            {"county": "A", "prec": "1", "id": 0},
        )
        index = build_shape_index(doc, "county", "prec")
        assert index.to_dict() == {"A": {"1": 0}}
        assert index.total_precinct_count == 1


class TestShapeIndexLookup:
    def test_unknown_region(self) -> None:
        index = ShapeIndex({"A": {"1": 0}})
        with pytest.raises(ShapeLookupError) as excinfo:
            index.precincts("Z")
        assert excinfo.value.region == "Z"
        assert excinfo.value.precinct is None
        assert str(excinfo.value) == "Unknown region 'Z'"

    def test_unknown_precinct(self) -> None:
        index = ShapeIndex({"A": {"1": 0}})
        with pytest.raises(ShapeLookupError) as excinfo:
            index.flat_index("A", "2")
        assert excinfo.value.precinct == "2"

    def test_lookup_error_is_key_error(self) -> None:
        index = ShapeIndex({"A": {"1": 0}})
        with pytest.raises(KeyError):
            index.flat_index("B", "1")

    def test_contains_and_regions(self) -> None:
        index = ShapeIndex({"A": {"1": 0}, "B": {"1": 1}})
        assert "A" in index
        assert "C" not in index
        assert list(index.regions()) == ["A", "B"]


class TestReadShapeIndex:
    def test_reads_bytes_stream(self) -> None:
        raw = b'{"nodes": [{"r": "A", "p": "1", "id": 0}, {"r": "A", "p": "2", "id": 1}]}'
        index = read_shape_index(io.BytesIO(raw), "r", "p")
        assert index.total_precinct_count == 2

    def test_reads_text_stream(self) -> None:
        raw = '{"nodes": [{"r": "A", "p": "1", "id": 0}]}'
        index = read_shape_index(io.StringIO(raw), "r", "p")
        assert index.flat_index("A", "1") == 0

    def test_invalid_json_is_fatal(self) -> None:
        with pytest.raises(DocumentParseError):
            read_shape_index(io.BytesIO(b'{"nodes": ['), "r", "p")
