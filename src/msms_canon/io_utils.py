"""orjson-backed JSON I/O for topology documents and JSON-lines streams."""
from __future__ import annotations

from typing import IO, Any

import orjson

from msms_canon.errors import DocumentParseError


def load_json_document(reader: IO[str] | IO[bytes]) -> Any:
    """Read a whole stream and decode it as a single JSON document."""
    raw = reader.read()
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise DocumentParseError(f"Topology document is not valid JSON: {exc}") from exc


def decode_json_line(line: str | bytes, *, line_index: int) -> Any:
    """Decode one JSON-lines record; any decode failure is fatal."""
    try:
        return orjson.loads(line)
    except orjson.JSONDecodeError as exc:
        raise DocumentParseError(
            f"Sample record is not valid JSON: {exc}", line_index=line_index,
        ) from exc


def encode_json_line(obj: Any) -> bytes:
    """Serialize ``obj`` as compact JSON terminated by a newline."""
    return orjson.dumps(obj) + b"\n"


def strip_line_ending(line: str) -> str:
    """Drop a trailing ``\\n`` or ``\\r\\n`` from a line read from a text stream."""
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line
