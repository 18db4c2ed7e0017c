"""Resolved run configuration for the canonicalize_jsonl CLI."""
from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class CanonicalizeConfig:
    """CLI options after parsing; paths left as ``None`` mean stdio."""

    graph_json: Path
    region: str
    subregion: str
    input_jsonl: Path | None = None
    output_file: Path | None = None
    ben: bool = False
    verbose: bool = False
    overwrite: bool = False

    def __post_init__(self) -> None:
        if not self.region:
            raise ValueError("region field name cannot be empty")
        if not self.subregion:
            raise ValueError("subregion field name cannot be empty")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> CanonicalizeConfig:
        return cls(
            graph_json=Path(args.graph_json),
            region=args.region,
            subregion=args.subregion,
            input_jsonl=Path(args.input_jsonl) if args.input_jsonl else None,
            output_file=Path(args.output_file) if args.output_file else None,
            ben=bool(args.ben),
            verbose=bool(args.verbose),
            overwrite=bool(args.overwrite),
        )
