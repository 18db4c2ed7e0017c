"""Two-level region -> precinct -> flat index mapping built from a dual graph.

The dual-graph JSON (as written by the multi-scale map sampler tooling) has a
top-level ``nodes`` array. Each node names its region and precinct through two
caller-chosen fields and carries a numeric ``id`` that becomes the precinct's
flat index in every assignment vector.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import IO, Any

from msms_canon.errors import ShapeIndexError, ShapeLookupError
from msms_canon.io_utils import load_json_document
from msms_canon.log_config import LogConfig

NODE_ID_FIELD = "id"


def _node_id(value: Any) -> int | None:
    # bool is an int subclass; the graph format never uses it for ids
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= 0 else None


class ShapeIndex:
    """Read-only region/precinct lookup with a dense flat-index domain."""

    __slots__ = ("_regions", "_total")

    def __init__(self, regions: Mapping[str, Mapping[str, int]]) -> None:
        self._regions: dict[str, dict[str, int]] = {
            region: dict(precincts) for region, precincts in regions.items()
        }
        self._total = sum(len(p) for p in self._regions.values())

    @property
    def total_precinct_count(self) -> int:
        return self._total

    def __len__(self) -> int:
        return self._total

    def __contains__(self, region: object) -> bool:
        return region in self._regions

    def regions(self) -> Iterator[str]:
        return iter(self._regions)

    def precincts(self, region: str) -> Mapping[str, int]:
        """Return the precinct -> flat index mapping of ``region``."""
        try:
            return self._regions[region]
        except KeyError:
            raise ShapeLookupError(region) from None

    def flat_index(self, region: str, precinct: str) -> int:
        try:
            return self.precincts(region)[precinct]
        except KeyError:
            raise ShapeLookupError(region, precinct) from None

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {region: dict(p) for region, p in self._regions.items()}

    def validate(self) -> None:
        """Ensure flat indices are unique and cover ``[0, total_precinct_count)``."""
        seen: dict[int, tuple[str, str]] = {}
        for region, precincts in self._regions.items():
            for precinct, idx in precincts.items():
                if idx >= self._total:
                    raise ShapeIndexError(
                        f"Node id {idx} for ({region!r}, {precinct!r}) is outside "
                        f"the flat index range [0, {self._total})"
                    )
                if idx in seen:
                    raise ShapeIndexError(
                        f"Node id {idx} is shared by {seen[idx]!r} and ({region!r}, {precinct!r})"
                    )
                seen[idx] = (region, precinct)


def build_shape_index(
    document: Any,
    region_field: str,
    precinct_field: str,
) -> ShapeIndex:
    """Build a ``ShapeIndex`` from an already-decoded dual-graph document.

    Nodes missing the region field, the precinct field or a non-negative
    integer ``id`` are skipped. A document without a ``nodes`` list yields an
    empty index.
    """
    regions: dict[str, dict[str, int]] = {}
    nodes = document.get("nodes") if isinstance(document, dict) else None
    if isinstance(nodes, list):
        for node in nodes:
            if not isinstance(node, dict):
                continue
            region = node.get(region_field)
            precinct = node.get(precinct_field)
            node_id = _node_id(node.get(NODE_ID_FIELD))
            if not isinstance(region, str) or not isinstance(precinct, str) or node_id is None:
                continue
            regions.setdefault(region, {})[precinct] = node_id

    index = ShapeIndex(regions)
    index.validate()
    return index


def read_shape_index(
    reader: IO[str] | IO[bytes],
    region_field: str,
    precinct_field: str,
    *,
    log_config: LogConfig | None = None,
) -> ShapeIndex:
    """Parse a dual-graph JSON stream into a ``ShapeIndex``."""
    log_config = log_config or LogConfig()
    log_config.trace("Reading dual-graph shapefile")
    index = build_shape_index(load_json_document(reader), region_field, precinct_field)
    log_config.trace(
        "Indexed %d precincts across %d regions",
        index.total_precinct_count,
        sum(1 for _ in index.regions()),
    )
    return index
