"""Per-invocation message sink.

A Reporter is created once per command and passed down the pipeline. It
forwards every message to stdlib logging and keeps warnings and errors so
a problem summary can be printed when the run ends.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

logger = logging.getLogger("rym")


@dataclass
class Reporter:
    """Collects problems raised while installing."""

    silent: bool = False
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def info(self, msg: str, *args) -> None:
        if not self.silent:
            logger.info(msg, *args)

    def debug(self, msg: str, *args) -> None:
        logger.debug(msg, *args)

    def warning(self, msg: str, *args) -> None:
        text = msg % args if args else msg
        self.warnings.append(text)
        logger.warning("%s", text)

    def error(self, msg: str, *args) -> None:
        text = msg % args if args else msg
        self.errors.append(text)
        logger.error("%s", text)

    def has_problems(self) -> bool:
        return bool(self.warnings or self.errors)

    def summary(self) -> str:
        """Render the collected problems, one per line."""
        lines: List[str] = []
        if self.warnings:
            lines.append(f":: problems summary ::\n:::: WARNINGS ({len(self.warnings)})")
            lines.extend(f"\t{w}" for w in self.warnings)
        if self.errors:
            if not lines:
                lines.append(":: problems summary ::")
            lines.append(f":::: ERRORS ({len(self.errors)})")
            lines.extend(f"\t{e}" for e in self.errors)
        return "\n".join(lines)

    def sumup_problems(self, stream: Optional[TextIO] = None) -> None:
        """Print the problem summary unless silent or nothing went wrong."""
        if self.silent or not self.has_problems():
            return
        out = stream if stream is not None else sys.stderr
        out.write(self.summary() + "\n")
