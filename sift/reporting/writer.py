"""Write each test's buffered output to its own file.

Test ``Parent/Child`` is written to ``<base>/Parent/Child/output.log``,
so subtests land in directories nested under their parent.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from sift.parsing.driver import CombinedResult

logger = logging.getLogger(__name__)

DEFAULT_LOG_NAME = "output.log"


class OutputConflictError(Exception):
    """A target directory already exists and overwriting is not forced."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"directory '{path}' already exists.")
        self.path = path


@dataclass
class WriteReport:
    """Files written and per-test failures from one write pass."""

    written: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)


def plan_output_dirs(result: CombinedResult, base: Path) -> list[tuple[str, Path]]:
    """Target directory for every buffered test, sorted by test name."""
    return [(name, base / name) for name in sorted(result.buffers)]


def check_conflicts(targets: list[tuple[str, Path]]) -> None:
    """Raise if any target directory already exists.

    Raises:
        OutputConflictError: For the first existing directory found.
    """
    for _, path in targets:
        if path.exists():
            raise OutputConflictError(path)


def write_test_outputs(
    result: CombinedResult,
    base: Path,
    force: bool = False,
    log_name: str = DEFAULT_LOG_NAME,
    errors: TextIO | None = None,
) -> WriteReport:
    """Write one log file per buffered test under *base*.

    Without *force* every target is checked before anything is created,
    so a conflict leaves the filesystem untouched.  After that check a
    failure to create or write one test's file is reported and the
    remaining tests are still written.

    Args:
        result: Parsed result whose buffers are written.
        base: Output base directory.
        force: Write into directories that already exist.
        log_name: File name created inside each test directory.
        errors: Stream for per-test error notices (default stderr).

    Returns:
        WriteReport listing written and failed file paths.

    Raises:
        OutputConflictError: If a target exists and *force* is False.
    """
    err = errors if errors is not None else sys.stderr
    targets = plan_output_dirs(result, base)
    if not force:
        check_conflicts(targets)

    report = WriteReport()
    for name, dir_path in targets:
        file_path = dir_path / log_name
        try:
            dir_path.mkdir(parents=True, exist_ok=True)
            logger.debug("Created directory: %s", dir_path)
            with open(file_path, "w", encoding="utf-8") as f:
                for line in result.buffers[name]:
                    f.write(line + "\n")
        except OSError as e:
            print(f"Error writing {file_path}: {e}", file=err)
            report.failed.append(file_path)
            continue
        logger.debug("Wrote file: %s", file_path)
        report.written.append(file_path)
    return report
