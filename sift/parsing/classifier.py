"""Line classification for go test -v output.

Maps a single raw log line to one of a fixed set of line kinds.  The
runner announces test context changes with ``=== RUN``, ``=== NAME``,
``=== CONT`` and ``=== PAUSE`` markers, and appends a trailer of
``--- STATUS: Name (Duration)`` lines terminated by a bare ``FAIL``.
Everything else is opaque test output.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

# Trailer line prefix (checked against the stripped line)
SUMMARY_PREFIX = "---"

# Bare token that ends the trailer of a failing run
TERMINATOR = "FAIL"

PAUSE_PREFIX = "=== PAUSE"

# Marker patterns are anchored at column 0; the name is whatever follows
# the whitespace run after the marker word.
RUN_RE = re.compile(r"^=== RUN\s+(.*)")
NAME_RE = re.compile(r"^=== NAME\s+(.*)")
CONT_RE = re.compile(r"^=== CONT\s+(.*)")


class LineKind(enum.Enum):
    """Kinds of line recognised by :func:`classify_line`."""

    RUN_START = "run_start"
    NAME_SWITCH = "name_switch"
    CONTINUATION = "continuation"
    PAUSE = "pause"
    SUMMARY_STATUS = "summary_status"
    SUMMARY_TERMINATOR = "summary_terminator"
    PLAIN = "plain"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one line.

    ``name`` carries the test name for the three context markers and is
    ``None`` for every other kind.
    """

    kind: LineKind
    name: str | None = None


PLAIN = Classification(LineKind.PLAIN)


def is_summary_line(line: str) -> bool:
    """True if the stripped line starts with the trailer prefix."""
    return line.strip().startswith(SUMMARY_PREFIX)


def is_run_start(line: str) -> bool:
    """True if the line is an anchored ``=== RUN`` marker."""
    return RUN_RE.match(line) is not None


def classify_line(line: str) -> Classification:
    """Classify a raw log line.

    Rules are applied in priority order; the first match wins.  Only the
    trailer checks and the pause check look at the stripped line, the
    RUN/NAME/CONT markers must start at column 0.
    """
    trimmed = line.strip()
    if trimmed == TERMINATOR:
        return Classification(LineKind.SUMMARY_TERMINATOR)
    if trimmed.startswith(SUMMARY_PREFIX):
        return Classification(LineKind.SUMMARY_STATUS)
    if trimmed.startswith(PAUSE_PREFIX):
        return Classification(LineKind.PAUSE)

    for pattern, kind in (
        (CONT_RE, LineKind.CONTINUATION),
        (NAME_RE, LineKind.NAME_SWITCH),
        (RUN_RE, LineKind.RUN_START),
    ):
        match = pattern.match(line)
        if match:
            return Classification(kind, match.group(1))

    return PLAIN
