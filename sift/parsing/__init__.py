"""Log attribution core: classifier, context tracker, router, trailer parser."""

from sift.parsing.classifier import Classification, LineKind, classify_line
from sift.parsing.context import ContextTracker
from sift.parsing.driver import (
    CombinedResult,
    ParseDriver,
    ParseState,
    Phase,
    parse_lines,
    parse_sources,
)
from sift.parsing.router import LineRouter
from sift.parsing.summary import SummaryBuilder, TestSummary, parse_summary_line

__all__ = [
    "Classification",
    "CombinedResult",
    "ContextTracker",
    "LineKind",
    "LineRouter",
    "ParseDriver",
    "ParseState",
    "Phase",
    "SummaryBuilder",
    "TestSummary",
    "classify_line",
    "parse_lines",
    "parse_sources",
    "parse_summary_line",
]
