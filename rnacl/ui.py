"""Terminal messages, sample diff output and logging setup."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

from .sample import Sample
from .snapshot import SamplePresence

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_RED = "31"
_YELLOW = "33"
_CYAN = "36"

_PRESENCE_MARKS = {
    SamplePresence.ONLY_BEFORE: "-",
    SamplePresence.ONLY_AFTER: "+",
    SamplePresence.BOTH: "=",
}


def _use_color(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty()) and "NO_COLOR" not in os.environ


def _emit(label: str, color: str, msg: str) -> None:
    stream = sys.stderr
    prefix = f"\x1b[{color}m{label}\x1b[0m" if _use_color(stream) else label
    print(f"{prefix} {msg}", file=stream)


def error(msg: str) -> None:
    """Print an error message to standard error."""
    _emit("error:", _RED, msg)


def warn(msg: str) -> None:
    """Print a warning to standard error."""
    _emit("warn:", _YELLOW, msg)


def info(msg: str) -> None:
    """Print an informational message to standard error."""
    _emit("info:", _CYAN, msg)


def display_sample_diff(sample: Sample, presence: SamplePresence, out: TextIO | None = None) -> None:
    """Print a presence mark and then the sample's content."""
    out = out if out is not None else sys.stdout
    print(_PRESENCE_MARKS[presence], file=out)
    print(sample.content, file=out)


def init_logging(verbose: int = 0) -> int:
    """Configure root logging for a verbosity count and return the chosen level."""
    levels = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG}
    level = levels.get(verbose, TRACE)
    logging.basicConfig(level=level, force=True)
    return level