"""Structured report generation for parsed test logs.

Produces a JSON or YAML document with one entry per trailer record, in
trailer order, carrying the record's status, duration, nesting level and
the output lines attributed to it.
"""

from __future__ import annotations

import datetime
import json
import re
from pathlib import Path
from typing import Any

import yaml

from sift.parsing.driver import MATCH_ALL, CombinedResult

# Runner status tokens counted in the report summary
STATUS_COUNTERS = {
    "PASS": "passed",
    "FAIL": "failed",
    "SKIP": "skipped",
}

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


class Reporter:
    """Builds JSON/YAML reports from a :class:`CombinedResult`."""

    def __init__(
        self,
        result: CombinedResult,
        pattern: re.Pattern[str] = MATCH_ALL,
    ) -> None:
        self.result = result
        self.pattern = pattern
        self.sources: list[str] = []

    def set_sources(self, sources: list[str]) -> None:
        """Record the input sources the result was parsed from."""
        self.sources = list(sources)

    def generate_report(self) -> dict[str, Any]:
        """Generate the report data structure.

        Returns:
            Dictionary suitable for JSON or YAML serialization.
        """
        summaries = self.result.matching(self.pattern)
        now = datetime.datetime.now(tz=datetime.timezone.utc).isoformat()

        report: dict[str, Any] = {
            "generated_at": now,
            "summary": self._compute_summary(
                [s.status for s in summaries]
            ),
            "tests": [
                {
                    **s.to_dict(),
                    "output": list(self.result.buffer_for(s.name)),
                }
                for s in summaries
            ],
        }
        if self.sources:
            report["sources"] = self.sources

        reported = {s.name for s in self.result.summaries}
        unreported = sorted(
            name for name in self.result.buffers
            if name not in reported and self.pattern.search(name)
        )
        if unreported:
            report["unreported"] = unreported

        return {"report": report}

    def _compute_summary(self, statuses: list[str]) -> dict[str, int]:
        counts = {"total": len(statuses), "other": 0}
        for key in STATUS_COUNTERS.values():
            counts[key] = 0
        for status in statuses:
            key = STATUS_COUNTERS.get(status, "other")
            counts[key] += 1
        return counts

    def write_report(self, path: Path) -> None:
        """Write the report as a JSON file."""
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report, f, indent=2)

    def write_yaml(self, path: Path) -> None:
        """Write the report as a YAML file."""
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(report, f, sort_keys=False)

    def write(self, path: Path) -> None:
        """Write YAML for ``.yaml``/``.yml`` paths and JSON otherwise."""
        if path.suffix.lower() in YAML_SUFFIXES:
            self.write_yaml(path)
        else:
            self.write_report(path)
