"""Single-pass parse driver.

Feeds each input line through the classifier and a monotonic phase gate
(pre-start -> streaming -> summary -> stopped), handing body lines to the
context tracker and line router and trailer lines to the summary
builder.  Several input sources are processed strictly in order and
accumulate into one shared :class:`CombinedResult`.
"""

from __future__ import annotations

import enum
import logging
import re
import sys
from dataclasses import dataclass, field
from typing import Iterable, TextIO

import requests

from sift.parsing.classifier import (
    LineKind,
    classify_line,
    is_run_start,
    is_summary_line,
)
from sift.parsing.context import ContextTracker
from sift.parsing.router import LineRouter
from sift.parsing.summary import SummaryBuilder, TestSummary
from sift.sources.reader import STDIN, SourceError, open_source

logger = logging.getLogger(__name__)

# Status token the runner uses for failed tests
FAILED_STATUS = "FAIL"

MATCH_ALL = re.compile(".*")


class Phase(enum.IntEnum):
    """Parse phases, in the only order they may be entered."""

    PRE_START = 0
    STREAMING = 1
    SUMMARY = 2
    STOPPED = 3


@dataclass
class CombinedResult:
    """Buffers and trailer records accumulated across all sources.

    The two collections are keyed independently: a summary may have no
    buffer (the test printed nothing) and a buffer may have no summary
    (the stream ended before the trailer).  Always look names up.
    """

    buffers: dict[str, list[str]] = field(default_factory=dict)
    summaries: list[TestSummary] = field(default_factory=list)

    def buffer_for(self, name: str) -> list[str]:
        """Lines attributed to *name*, or an empty list."""
        return self.buffers.get(name, [])

    def matching(self, pattern: re.Pattern[str] = MATCH_ALL) -> list[TestSummary]:
        """Summaries whose name matches *pattern*, in trailer order."""
        return [s for s in self.summaries if pattern.search(s.name)]

    def failures(
        self,
        pattern: re.Pattern[str] = MATCH_ALL,
        status: str = FAILED_STATUS,
    ) -> list[TestSummary]:
        """Matching summaries with the failure status, in trailer order."""
        return [s for s in self.matching(pattern) if s.status == status]


@dataclass
class ParseState:
    """Per-source parse state."""

    tracker: ContextTracker = field(default_factory=ContextTracker)
    phase: Phase = Phase.PRE_START
    line_number: int = 0

    def advance(self, phase: Phase) -> None:
        if phase < self.phase:
            raise ValueError(f"Cannot move from {self.phase.name} back to {phase.name}")
        self.phase = phase


def _chomp(line: str) -> str:
    """Drop one trailing newline and one trailing carriage return."""
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


class ParseDriver:
    """Parses one input source into a shared :class:`CombinedResult`."""

    def __init__(
        self,
        result: CombinedResult,
        passthrough: TextIO | None = None,
    ) -> None:
        self.result = result
        self.state = ParseState()
        self.router = LineRouter(result.buffers, passthrough)
        self.builder = SummaryBuilder(result.summaries)

    @property
    def stopped(self) -> bool:
        return self.state.phase is Phase.STOPPED

    def feed(self, raw: str) -> bool:
        """Process one line.

        Returns:
            False once the trailer terminator has been seen; the caller
            must not feed further lines from this source.
        """
        if self.stopped:
            return False

        state = self.state
        state.line_number += 1
        line = _chomp(raw)
        lineno = state.line_number
        logger.debug("Reading line %d: %s", lineno, line)

        if state.phase is Phase.PRE_START:
            if not is_run_start(line):
                return True
            state.advance(Phase.STREAMING)
            logger.debug("Found first '=== RUN' marker, starting parsing.")

        if state.phase is Phase.STREAMING and is_summary_line(line):
            state.advance(Phase.SUMMARY)
            logger.debug(
                "Encountered first summary line at line %d, switching to summary mode.",
                lineno,
            )

        classification = classify_line(line)
        kind = classification.kind

        if state.phase is Phase.SUMMARY:
            if kind is LineKind.SUMMARY_TERMINATOR:
                state.advance(Phase.STOPPED)
                logger.debug(
                    "Encountered FAIL terminator at line %d; parsing now stopped", lineno
                )
                return False
            if kind is LineKind.SUMMARY_STATUS:
                self.builder.add(line, lineno)
            return True

        if kind is LineKind.RUN_START:
            state.tracker.apply(classification, lineno)
            self.router.register(state.tracker.active_test, lineno)
        elif kind in (LineKind.NAME_SWITCH, LineKind.CONTINUATION, LineKind.PAUSE):
            state.tracker.apply(classification, lineno)
        else:
            # Includes a bare "FAIL" seen before the trailer: it is body text.
            self.router.route(state.tracker.active_test, line, lineno)
        return True

    def run(self, lines: Iterable[str]) -> CombinedResult:
        """Feed *lines* until exhausted or the terminator is reached.

        Lines after the terminator are never pulled from the iterable.
        """
        for line in lines:
            if not self.feed(line):
                break
        return self.result


def parse_lines(
    lines: Iterable[str],
    result: CombinedResult | None = None,
    passthrough: TextIO | None = None,
) -> CombinedResult:
    """Parse one line sequence, accumulating into *result*.

    Args:
        lines: Raw lines, with or without trailing newlines.
        result: Shared result to extend; a new one is created if omitted.
        passthrough: Stream for lines seen while no test is active.

    Returns:
        The (possibly shared) result.
    """
    if result is None:
        result = CombinedResult()
    return ParseDriver(result, passthrough).run(lines)


def parse_sources(
    sources: Iterable[str],
    result: CombinedResult | None = None,
    passthrough: TextIO | None = None,
    session: requests.Session | None = None,
    timeout: float | None = None,
    errors: TextIO | None = None,
) -> CombinedResult:
    """Parse every source in order into one shared result.

    A source that cannot be opened or fetched is reported and skipped.
    A read failure part way through a source is reported and whatever
    was parsed from that source before the failure is kept.

    Args:
        sources: File paths, http(s) URLs, or ``"-"`` for stdin.  An empty
            sequence reads stdin.
        result: Shared result to extend; a new one is created if omitted.
        passthrough: Stream for lines seen while no test is active.
        session: Optional requests session for URL sources.
        timeout: Request timeout in seconds for URL sources.
        errors: Stream for error notices (default ``sys.stderr``).
    """
    if result is None:
        result = CombinedResult()
    err = errors if errors is not None else sys.stderr

    source_list = list(sources)
    if not source_list:
        logger.debug("No arguments provided, reading from stdin.")
        source_list = [STDIN]

    for source in source_list:
        try:
            with open_source(source, session=session, timeout=timeout) as lines:
                try:
                    parse_lines(lines, result, passthrough)
                except (OSError, UnicodeDecodeError, requests.RequestException) as e:
                    print(f"Error reading input {source}: {e}", file=err)
        except SourceError as e:
            print(f"Error: {e}", file=err)
    return result
