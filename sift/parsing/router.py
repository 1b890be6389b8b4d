"""Per-test output buffers.

The router owns the mapping from qualified test name to the ordered list
of raw lines attributed to that test.  Buffers are created on the first
``=== RUN`` of a name and only ever appended to.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

logger = logging.getLogger(__name__)


class LineRouter:
    """Appends body lines to the buffer of the active test.

    Args:
        buffers: Mapping of test name to buffered lines.  Shared with the
            ``CombinedResult`` so that every input source feeds the same
            buffers.
        passthrough: Stream receiving lines that arrive while no test is
            active.  Defaults to ``sys.stdout`` at write time.
    """

    def __init__(
        self,
        buffers: dict[str, list[str]],
        passthrough: TextIO | None = None,
    ) -> None:
        self.buffers = buffers
        self.passthrough = passthrough

    def register(self, name: str, line_number: int = 0) -> bool:
        """Create an empty buffer for *name* if it has none yet.

        Returns:
            True if a new buffer was created.
        """
        if name in self.buffers:
            return False
        self.buffers[name] = []
        logger.debug("New test started at line %d: %s", line_number, name)
        return True

    def route(self, active_test: str, line: str, line_number: int = 0) -> None:
        """Attribute *line* verbatim to *active_test*.

        With no active test the line is written straight to the
        passthrough stream instead.
        """
        if not active_test:
            out = self.passthrough if self.passthrough is not None else sys.stdout
            print(line, file=out)
            return
        self.buffers.setdefault(active_test, []).append(line)
        logger.debug("Collected line %d for test %s", line_number, active_test)
