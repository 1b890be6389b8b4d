"""Test context tracking across interleaved parallel test output.

``go test -v`` interleaves output from parallel tests and subtests and
only tells us who is talking through ``=== RUN``, ``=== NAME`` and
``=== CONT`` markers.  The tracker keeps the currently active test and
the most recently established base name, and resolves ``=== NAME``
markers that refer to a parent while one of its subtests is still
producing output.

The resolution is best-effort.  Deeply parallel sibling subtests that
interleave NAME/CONT markers can still be misattributed; the rules here
are the documented behaviour and are kept as they are.
"""

from __future__ import annotations

import logging

from sift.parsing.classifier import Classification, LineKind

logger = logging.getLogger(__name__)

# Separator between a parent test name and its subtest names
PATH_SEPARATOR = "/"


def is_descendant(name: str, ancestor: str) -> bool:
    """True if *name* is a strict descendant of *ancestor*.

    ``is_descendant("TestA/Sub", "TestA")`` is true, ``"TestAB"`` is not a
    descendant of ``"TestA"`` and a name is never its own descendant.
    """
    return name.startswith(ancestor + PATH_SEPARATOR)


class ContextTracker:
    """Maintains the active test name for one input source."""

    def __init__(self) -> None:
        self.active_test: str = ""
        self.base_name: str = ""

    @property
    def has_active_test(self) -> bool:
        return self.active_test != ""

    def apply(self, classification: Classification, line_number: int = 0) -> None:
        """Update the context from a classified marker line.

        Non-marker kinds leave the context untouched.
        """
        kind = classification.kind
        name = classification.name or ""

        if kind is LineKind.RUN_START:
            self.active_test = name
        elif kind is LineKind.CONTINUATION:
            self.active_test = name
            self.base_name = name
            logger.debug("Resuming test context: %s at line %d", name, line_number)
        elif kind is LineKind.NAME_SWITCH:
            self._switch(name, line_number)
        elif kind is LineKind.PAUSE:
            logger.debug("Encountered PAUSE for test context at line %d", line_number)

    def _switch(self, name: str, line_number: int) -> None:
        # A NAME for the parent of the in-progress subtest re-enters the
        # subtest rather than resetting to the parent.
        if self.base_name and is_descendant(self.base_name, name):
            self.active_test = self.base_name
            logger.debug(
                "Continuing context for subtest: %s at line %d",
                self.active_test, line_number,
            )
            return
        self.active_test = name
        self.base_name = name
        logger.debug("Switching context to test: %s at line %d", name, line_number)
