"""Trailer parsing: ``--- STATUS: Name (Duration)`` lines.

After all tests complete the runner prints one status line per test,
indented four spaces per subtest level, with nested children directly
after their parent.  The order of the records is significant and is
preserved exactly.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Columns of leading indentation per subtest nesting level
INDENT_WIDTH = 4


@dataclass
class TestSummary:
    """One trailer status record."""

    status: str
    name: str
    duration: str
    level: int = 0

    @property
    def indent(self) -> str:
        return " " * (INDENT_WIDTH * self.level)

    def format_line(self) -> str:
        """Render the record back in trailer form at its nesting level."""
        return f"{self.indent}--- {self.status}: {self.name} ({self.duration})"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def leading_spaces(line: str) -> int:
    """Count leading space characters (tabs are not counted)."""
    return len(line) - len(line.lstrip(" "))


def parse_summary_line(line: str) -> TestSummary | None:
    """Decompose a raw trailer line into a :class:`TestSummary`.

    The line is split on whitespace: the ``---`` marker, the status with
    its trailing colon, the qualified test name and an optional
    parenthesised duration.  Lines with fewer than three fields are not
    status lines and yield ``None``.

    Args:
        line: The raw, untrimmed trailer line.  Its indentation gives the
            nesting level.
    """
    fields = line.split()
    if len(fields) < 3:
        return None
    status = fields[1]
    if status.endswith(":"):
        status = status[:-1]
    duration = fields[3].strip("()") if len(fields) >= 4 else ""
    return TestSummary(
        status=status,
        name=fields[2],
        duration=duration,
        level=leading_spaces(line) // INDENT_WIDTH,
    )


class SummaryBuilder:
    """Accumulates trailer records into a shared ordered list."""

    def __init__(self, summaries: list[TestSummary]) -> None:
        self.summaries = summaries

    def add(self, line: str, line_number: int = 0) -> bool:
        """Parse *line* and append the record if it is well formed.

        Malformed lines are dropped without error.

        Returns:
            True if a record was appended.
        """
        summary = parse_summary_line(line)
        if summary is None:
            return False
        self.summaries.append(summary)
        logger.debug("Added summary record at line %d: %s", line_number, summary)
        return True
