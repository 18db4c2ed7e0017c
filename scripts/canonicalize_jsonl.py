#!/usr/bin/env python3
"""Convert multi-scale map sampler JSONL into canonical assignment samples.

Reads the sampler's hierarchical output (districts keyed by region or by
region+precinct) and writes one fixed-order assignment vector per sample,
either as JSONL records or as the fixed-width binary format (``--ben``).

Usage:
    python3 scripts/canonicalize_jsonl.py -g graph.json -r county -s precinct \\
        -i samples.jsonl -o canonical.jsonl
    cat samples.jsonl | python3 scripts/canonicalize_jsonl.py -g graph.json \\
        -r county -s precinct --ben > canonical.bin

With ``-o``, the two sampler settings lines go to ``<output>.msms_settings``;
without it, records go to stdout and settings lines to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from contextlib import ExitStack
from pathlib import Path
from typing import TextIO

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from msms_canon.canonicalizer import canonicalize_stream
from msms_canon.config import CanonicalizeConfig
from msms_canon.errors import CanonicalizeError
from msms_canon.log_config import LogConfig
from msms_canon.passthrough import settings_path_for

log = logging.getLogger("canonicalize_jsonl")

VERSION = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canonicalize_jsonl",
        description=(
            "Allows for the conversion of a JSONL file stored in the multi-scale "
            "map sampler output format into an assignment-sample JSONL file or "
            "into a binary assignment file."
        ),
    )
    parser.add_argument(
        "-g", "--graph-json", dest="graph_json", required=True,
        help="Path to the dual-graph json file",
    )
    parser.add_argument(
        "-i", "--input-jsonl", dest="input_jsonl",
        help="Path to the input jsonl file (default: stdin)",
    )
    parser.add_argument(
        "-o", "--output-file", dest="output_file",
        help="Path to the output file (default: stdout)",
    )
    parser.add_argument("-r", "--region", required=True, help="Region field name")
    parser.add_argument("-s", "--subregion", required=True, help="Subregion field name")
    parser.add_argument(
        "-b", "--ben", action="store_true",
        help="Write the fixed-width binary format instead of JSONL",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "-w", "--overwrite", action="store_true",
        help="Overwrite the output file without asking",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def confirm_overwrite(path: Path, *, stdin: TextIO, stderr: TextIO) -> bool:
    """Ask before clobbering ``path``; only an explicit ``y`` proceeds."""
    stderr.write(f"File '{path}' already exists. Would you like to overwrite? y/[n]: ")
    stderr.flush()
    return stdin.readline().strip() == "y"


def run(config: CanonicalizeConfig) -> int:
    output = config.output_file
    if output is not None and output.exists() and not config.overwrite:
        if not confirm_overwrite(output, stdin=sys.stdin, stderr=sys.stderr):
            return 0

    log_config = LogConfig(verbose=config.verbose, logger=log)
    with ExitStack() as stack:
        shape_reader = stack.enter_context(config.graph_json.open("rb"))
        if config.input_jsonl is not None:
            reader = stack.enter_context(config.input_jsonl.open(encoding="utf-8"))
        else:
            reader = sys.stdin
        if output is not None:
            writer = stack.enter_context(output.open("wb"))
            header_writer = stack.enter_context(
                settings_path_for(output).open("w", encoding="utf-8"),
            )
        else:
            writer = sys.stdout.buffer
            header_writer = sys.stderr

        stats = canonicalize_stream(
            shape_reader,
            reader,
            writer,
            header_writer,
            region_field=config.region,
            precinct_field=config.subregion,
            binary=config.ben,
            log_config=log_config,
        )

    log_config.trace(
        "Wrote %d samples (%d records skipped, %d malformed keys)",
        stats.samples_written,
        stats.records_skipped,
        stats.malformed_keys,
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    config = CanonicalizeConfig.from_args(args)
    try:
        return run(config)
    except CanonicalizeError as exc:
        log.error("%s", exc)
        return 1
    except OSError as exc:
        log.error("I/O error: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
