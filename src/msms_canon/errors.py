"""Exception hierarchy for sampler-output canonicalization.

Fatal conditions derive from ``CanonicalizeError``; the CLI turns them into an
error log line and a non-zero exit. Key-shape problems are recoverable and are
reported by the canonicalizer instead of raised.
"""
from __future__ import annotations


class CanonicalizeError(RuntimeError):
    """Base class for fatal canonicalization failures."""


class DocumentParseError(CanonicalizeError):
    """Raised when the topology document or a sample line is not valid JSON."""

    def __init__(self, message: str, *, line_index: int | None = None) -> None:
        where = f" (line {line_index})" if line_index is not None else ""
        super().__init__(f"{message}{where}")
        self.line_index = line_index


class ShapeIndexError(CanonicalizeError):
    """Raised when node ids do not form a dense ``[0, n)`` flat index range."""


class ShapeLookupError(CanonicalizeError, KeyError):
    """Raised when a composite key names an unknown region or precinct."""

    def __init__(self, region: str, precinct: str | None = None) -> None:
        if precinct is None:
            message = f"Unknown region {region!r}"
        else:
            message = f"Unknown precinct {precinct!r} in region {region!r}"
        super().__init__(message)
        self.region = region
        self.precinct = precinct

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class InvalidLabelError(CanonicalizeError):
    """Raised when a district label is not a non-negative 64-bit integer."""


class LabelRangeError(InvalidLabelError):
    """Raised when a label does not fit the binary encoder's 16-bit width."""


class CompositeKeyError(ValueError):
    """Raised by the strict key parser for keys outside the key grammar."""
