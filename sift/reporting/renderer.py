"""Console views of a parsed result.

Every view walks the ordered trailer records and looks buffers up by
name, so output order always follows the runner's own reporting order.
"""

from __future__ import annotations

import enum
import re
import sys
from typing import TextIO

from sift.parsing.driver import FAILED_STATUS, MATCH_ALL, CombinedResult
from sift.parsing.summary import TestSummary

FAILED_HEADER = "Failed Tests:"


class RenderMode(enum.Enum):
    """Output views selectable from the command line."""

    SERIALISE = "serialise"
    LIST_FAILURES = "list_failures"
    LIST_FAILURES_WITH_OUTPUT = "list_failures_with_output"
    WRITE_FILES = "write_files"
    DEFAULT = "default"


def _write_entry(
    summary: TestSummary,
    result: CombinedResult,
    out: TextIO,
    with_output: bool,
) -> None:
    print(summary.format_line(), file=out)
    if not with_output:
        return
    for line in result.buffer_for(summary.name):
        print(f"{summary.indent}    {line}", file=out)


def render_serialised(
    result: CombinedResult,
    pattern: re.Pattern[str] = MATCH_ALL,
    out: TextIO | None = None,
) -> None:
    """Every matching record followed by its indented output."""
    out = out if out is not None else sys.stdout
    for summary in result.matching(pattern):
        _write_entry(summary, result, out, with_output=True)


def render_failures(
    result: CombinedResult,
    pattern: re.Pattern[str] = MATCH_ALL,
    out: TextIO | None = None,
    with_output: bool = False,
    header: bool = True,
    failure_status: str = FAILED_STATUS,
) -> None:
    """Matching failed records, optionally with their output.

    Args:
        result: Parsed result.
        pattern: Name filter, applied with ``re.search``.
        out: Destination stream (default stdout).
        with_output: Include each failure's buffered lines.
        header: Print the ``Failed Tests:`` heading first.
        failure_status: Status token that marks a failure.
    """
    out = out if out is not None else sys.stdout
    if header:
        print(FAILED_HEADER, file=out)
    for summary in result.failures(pattern, failure_status):
        _write_entry(summary, result, out, with_output)


def render(
    result: CombinedResult,
    mode: RenderMode,
    pattern: re.Pattern[str] = MATCH_ALL,
    out: TextIO | None = None,
    failure_status: str = FAILED_STATUS,
) -> None:
    """Render *result* to *out* in one of the console modes.

    ``WRITE_FILES`` has no console form; use
    :func:`sift.reporting.writer.write_test_outputs` instead.
    """
    if mode is RenderMode.SERIALISE:
        render_serialised(result, pattern, out)
    elif mode is RenderMode.LIST_FAILURES:
        render_failures(result, pattern, out, failure_status=failure_status)
    elif mode is RenderMode.LIST_FAILURES_WITH_OUTPUT:
        render_failures(
            result, pattern, out, with_output=True, failure_status=failure_status,
        )
    elif mode is RenderMode.DEFAULT:
        render_failures(
            result, pattern, out, header=False, failure_status=failure_status,
        )
    else:
        raise ValueError(f"Mode {mode.value} has no console rendering")
