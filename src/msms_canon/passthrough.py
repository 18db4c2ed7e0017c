"""Verbatim copy of the sampler's header lines to a settings side channel."""
from __future__ import annotations

from pathlib import Path
from typing import TextIO

MARKER_LINE_INDEX = 0
HEADER_LINE_INDICES = (1, 2)
FIRST_SAMPLE_LINE_INDEX = 3
SETTINGS_SUFFIX = ".msms_settings"


def settings_path_for(output_path: Path) -> Path:
    """Sidecar path that receives the header lines for ``output_path``."""
    return output_path.with_name(output_path.name + SETTINGS_SUFFIX)


class HeaderPassthrough:
    """Writes each header line unchanged, newline-terminated."""

    def __init__(self, sink: TextIO) -> None:
        self.sink = sink
        self.lines_copied = 0

    def copy(self, line: str) -> None:
        self.sink.write(line)
        self.sink.write("\n")
        self.lines_copied += 1

    def close(self) -> None:
        self.sink.flush()
