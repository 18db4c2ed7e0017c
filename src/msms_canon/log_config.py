"""Explicit diagnostic configuration handed to the canonicalization core."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Trace gating plus the logger diagnostics go to.

    ``trace`` messages are emitted only when ``verbose`` is set; ``report``
    messages (skipped malformed keys) are always emitted.
    """

    verbose: bool = False
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("msms_canon"),
    )

    def trace(self, msg: str, *args: Any) -> None:
        if self.verbose:
            self.logger.debug(msg, *args)

    def report(self, msg: str, *args: Any) -> None:
        self.logger.warning(msg, *args)
