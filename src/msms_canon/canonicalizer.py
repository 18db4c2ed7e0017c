"""Stream sampler JSONL output into canonical per-sample assignment vectors.

Input stream layout (multi-scale map sampler):
- line 0: format marker, discarded
- lines 1-2: run settings, copied verbatim to the header sink
- line i >= 3: sample ``i - 2``, a JSON object whose ``districting`` field is a
  list of ``{composite_key: label}`` objects

Each sample starts from an all-zero vector of ``total_precinct_count`` slots.
Entries are applied in record order and later writes win. A region-only key
broadcasts its label to every precinct of the region.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import IO, Any, BinaryIO, TextIO

from msms_canon.composite_key import (
    DEFAULT_GRAMMAR,
    KeyGrammar,
    classify_key,
    parse_composite_key,
)
from msms_canon.encoders import AssignmentEncoder, make_encoder
from msms_canon.errors import DocumentParseError, InvalidLabelError
from msms_canon.io_utils import decode_json_line, strip_line_ending
from msms_canon.log_config import LogConfig
from msms_canon.passthrough import (
    FIRST_SAMPLE_LINE_INDEX,
    HEADER_LINE_INDICES,
    MARKER_LINE_INDEX,
    HeaderPassthrough,
)
from msms_canon.shape_index import ShapeIndex, read_shape_index

DISTRICTING_FIELD = "districting"
DEFAULT_LABEL = 0
# orjson decodes integers beyond this as floats
DECODER_INT_MAX = 2**64 - 1


@dataclass(slots=True)
class CanonicalizeStats:
    """Counters for one streaming run."""

    samples_written: int = 0
    records_skipped: int = 0
    malformed_keys: int = 0
    header_lines: int = 0


def _check_label(value: Any, key: str) -> int:
    if isinstance(value, float) and value.is_integer() and value > DECODER_INT_MAX:
        raise InvalidLabelError(
            f"Label for key {key!r} exceeds the JSON decoder's 64-bit integer "
            f"limit (decoded as {value!r})"
        )
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidLabelError(f"Label for key {key!r} is not an integer: {value!r}")
    if value < 0:
        raise InvalidLabelError(f"Label for key {key!r} is negative: {value}")
    return value


class SampleCanonicalizer:
    """Resolves composite keys against a ``ShapeIndex`` one sample at a time."""

    def __init__(
        self,
        shape_index: ShapeIndex,
        *,
        log_config: LogConfig | None = None,
        grammar: KeyGrammar = DEFAULT_GRAMMAR,
    ) -> None:
        self.shape_index = shape_index
        self.log_config = log_config or LogConfig()
        self.grammar = grammar
        self.malformed_keys = 0

    def new_vector(self) -> list[int]:
        return [DEFAULT_LABEL] * self.shape_index.total_precinct_count

    def apply_entry(self, vector: list[int], key: str, label: Any) -> bool:
        """Write ``label`` into ``vector`` for every precinct ``key`` names.

        Returns False (after reporting) when the key has neither one nor two
        components. Unknown names raise ``ShapeLookupError``.
        """
        components = parse_composite_key(key, self.grammar)
        kind = classify_key(components)
        if kind == "malformed":
            self.malformed_keys += 1
            self.log_config.report("Skipping malformed composite key %r", key)
            return False
        if kind == "region":
            precincts = self.shape_index.precincts(components[0])
            value = _check_label(label, key)
            for idx in precincts.values():
                vector[idx] = value
        else:
            idx = self.shape_index.flat_index(components[0], components[1])
            vector[idx] = _check_label(label, key)
        return True

    def canonicalize_record(self, record: Any) -> list[int] | None:
        """Return the assignment vector for one decoded sample record.

        ``None`` means the record carries no ``districting`` list and should
        produce no output.
        """
        if not isinstance(record, dict):
            return None
        districting = record.get(DISTRICTING_FIELD)
        if not isinstance(districting, list):
            return None

        vector = self.new_vector()
        for entry in districting:
            if not isinstance(entry, dict):
                continue
            for key, label in entry.items():
                self.apply_entry(vector, key, label)
        return vector

    def run(
        self,
        lines: Iterable[str],
        encoder: AssignmentEncoder,
        header: HeaderPassthrough,
    ) -> CanonicalizeStats:
        """Consume the sampler stream in order and feed ``encoder``."""
        stats = CanonicalizeStats()
        malformed_before = self.malformed_keys
        try:
            encoder.write_header()
            for line_index, raw in enumerate(lines):
                line = strip_line_ending(raw)
                if line_index == MARKER_LINE_INDEX:
                    continue
                if line_index in HEADER_LINE_INDICES:
                    header.copy(line)
                    stats.header_lines += 1
                    continue

                sample = line_index - FIRST_SAMPLE_LINE_INDEX + 1
                record = decode_json_line(line, line_index=line_index)
                self.log_config.trace("Processing sample %d", sample)
                vector = self.canonicalize_record(record)
                if vector is None:
                    stats.records_skipped += 1
                    continue
                encoder.write_assignment(sample, vector)
                stats.samples_written += 1
        except UnicodeDecodeError as exc:
            raise DocumentParseError(f"Sample stream is not valid UTF-8: {exc}") from exc
        finally:
            encoder.close()
            header.close()

        stats.malformed_keys = self.malformed_keys - malformed_before
        self.log_config.trace("Done!")
        return stats


def canonicalize_stream(
    shape_reader: IO[str] | IO[bytes],
    reader: Iterable[str],
    writer: BinaryIO,
    header_writer: TextIO,
    *,
    region_field: str,
    precinct_field: str,
    binary: bool = False,
    log_config: LogConfig | None = None,
) -> CanonicalizeStats:
    """Build the shape index, then canonicalize ``reader`` into ``writer``.

    ``writer`` receives JSONL records, or the binary format when ``binary``;
    ``header_writer`` receives the two settings lines.
    """
    log_config = log_config or LogConfig()
    shape_index = read_shape_index(
        shape_reader, region_field, precinct_field, log_config=log_config,
    )
    canonicalizer = SampleCanonicalizer(shape_index, log_config=log_config)
    return canonicalizer.run(
        reader,
        make_encoder(writer, binary=binary),
        HeaderPassthrough(header_writer),
    )

