"""Entry point for the go test log sifter.

Reads ``go test -v`` output from stdin, files or URLs, attributes every
output line to the test that produced it, and prints a failure summary,
a full serialisation, or writes one log file per test.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path

from sift.config import SiftConfig
from sift.parsing.driver import parse_sources
from sift.reporting.renderer import RenderMode, render
from sift.reporting.reporter import Reporter
from sift.reporting.writer import OutputConflictError, write_test_outputs

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Reconstruct per-test output from interleaved go test -v logs"
    )
    parser.add_argument(
        "-l",
        dest="list_failures",
        action="store_true",
        default=False,
        help="Print summary of failures (list test names with failures)",
    )
    parser.add_argument(
        "-L",
        dest="list_failures_with_output",
        action="store_true",
        default=False,
        help="Print summary of failures and include the full output for each failure",
    )
    parser.add_argument(
        "-s",
        dest="serialise",
        action="store_true",
        default=False,
        help="Serialise all output to stdout without summarising or writing directories",
    )
    parser.add_argument(
        "-w",
        dest="write_files",
        action="store_true",
        default=False,
        help="Write each test's output to individual files",
    )
    parser.add_argument(
        "-F",
        dest="force",
        action="store_true",
        default=False,
        help="Force directory creation even if directories exist",
    )
    parser.add_argument(
        "-o",
        dest="output_dir",
        type=Path,
        default=None,
        help="Base directory to write output files (default: current directory)",
    )
    parser.add_argument(
        "-t",
        dest="test_pattern",
        type=str,
        default=None,
        help="Regular expression to filter test names for summary output (default: .*)",
    )
    parser.add_argument(
        "-d",
        dest="debug",
        action="store_true",
        default=False,
        help="Enable debug output",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="Path to a JSON config file (default: ./.go_test_sift.json if present)",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Also write a structured report (.json, or .yaml/.yml for YAML)",
    )
    parser.add_argument(
        "sources",
        nargs="*",
        help="Log files or http(s) URLs to read (default: stdin)",
    )
    return parser.parse_args(argv)


def select_mode(args: argparse.Namespace) -> RenderMode:
    """Pick the output mode; serialise wins, then the failure lists, then -w."""
    if args.serialise:
        return RenderMode.SERIALISE
    if args.list_failures_with_output:
        return RenderMode.LIST_FAILURES_WITH_OUTPUT
    if args.list_failures:
        return RenderMode.LIST_FAILURES
    if args.write_files:
        return RenderMode.WRITE_FILES
    return RenderMode.DEFAULT


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    _configure_logging(args.debug)

    config = SiftConfig.discover(args.config_file)
    config.set_config(
        test_pattern=args.test_pattern,
        output_dir=str(args.output_dir) if args.output_dir is not None else None,
        force=args.force or None,
    )

    try:
        pattern = re.compile(config.test_pattern)
    except re.error as e:
        print(f"Invalid regular expression for -t: {e}", file=sys.stderr)
        return 1

    result = parse_sources(args.sources, timeout=config.request_timeout)

    if args.report:
        reporter = Reporter(result, pattern)
        reporter.set_sources(args.sources)
        try:
            reporter.write(args.report)
        except OSError as e:
            print(f"Error writing report {args.report}: {e}", file=sys.stderr)
            return 1
        print(f"Report written to: {args.report}", file=sys.stderr)

    mode = select_mode(args)
    if mode is RenderMode.WRITE_FILES:
        try:
            report = write_test_outputs(
                result,
                config.output_dir,
                force=config.force,
                log_name=config.log_file_name,
            )
        except OutputConflictError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        logger.debug(
            "Wrote %d test log files under %s (%d failed)",
            len(report.written), config.output_dir, len(report.failed),
        )
        return 0

    render(result, mode, pattern, failure_status=config.failure_status)
    return 0


if __name__ == "__main__":
    sys.exit(main())
