"""Tests for the parse driver and phase gate."""

from __future__ import annotations

import io
import re
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from sift.parsing.driver import (
    CombinedResult,
    ParseDriver,
    ParseState,
    Phase,
    parse_lines,
    parse_sources,
)
from sift.parsing.summary import TestSummary


INTERLEAVED_LOG = """\
go: downloading example.com/dep v1.0.0
=== RUN   TestParent
=== PAUSE TestParent
=== RUN   TestSolo
    solo_test.go:10: solo setup
=== NAME  TestSolo
    solo_test.go:11: solo done
=== CONT  TestParent
    parent_test.go:5: parent setup
=== RUN   TestParent/Child
=== PAUSE TestParent/Child
=== CONT  TestParent/Child
    parent_test.go:12: child working
=== NAME  TestParent
    parent_test.go:13: child still working
--- FAIL: TestParent (0.02s)
    --- FAIL: TestParent/Child (0.01s)
--- PASS: TestSolo (0.00s)
FAIL
exit status 1
FAIL\texample.com/pkg\t0.031s
"""


def _lines(text: str) -> list[str]:
    return text.splitlines(keepends=True)


class TestPreStart:
    """Tests for the pre-start phase."""

    def test_lines_before_first_run_discarded(self):
        result = parse_lines(["noise", "more noise", "=== RUN   TestA", "body"])
        assert result.buffers == {"TestA": ["body"]}

    def test_no_run_marker_yields_nothing(self):
        result = parse_lines(["--- FAIL: TestA (0.00s)", "FAIL", "x"])
        assert result.buffers == {}
        assert result.summaries == []

    def test_first_run_line_is_processed(self):
        """The RUN that opens the gate also registers its test."""
        result = parse_lines(["=== RUN   TestA"])
        assert result.buffers == {"TestA": []}


class TestStreaming:
    """Tests for attribution during streaming."""

    def test_interleaved_attribution(self):
        result = parse_lines(_lines(INTERLEAVED_LOG))
        assert result.buffers == {
            "TestParent": ["    parent_test.go:5: parent setup"],
            "TestSolo": [
                "    solo_test.go:10: solo setup",
                "    solo_test.go:11: solo done",
            ],
            "TestParent/Child": [
                "    parent_test.go:12: child working",
                "    parent_test.go:13: child still working",
            ],
        }

    def test_newlines_stripped(self):
        result = parse_lines(["=== RUN   TestA\r\n", "body\r\n", "tail\n"])
        assert result.buffers["TestA"] == ["body", "tail"]

    def test_bare_fail_before_trailer_is_body(self):
        """FAIL only terminates once the trailer has started."""
        result = parse_lines(["=== RUN   TestA", "FAIL", "after"])
        assert result.buffers["TestA"] == ["FAIL", "after"]

    def test_indented_marker_is_body(self):
        result = parse_lines(["=== RUN   TestA", "    === RUN   TestB"])
        assert result.buffers == {"TestA": ["    === RUN   TestB"]}

    def test_empty_run_name_passes_through(self):
        """With an empty RUN name there is no active test."""
        out = io.StringIO()
        result = parse_lines(["=== RUN   ", "stray"], passthrough=out)
        assert out.getvalue() == "stray\n"
        assert result.buffers == {"": []}

    def test_subtest_shadowing(self):
        """NAME Parent after CONT Parent/Child stays on the child."""
        result = parse_lines([
            "=== RUN   Parent",
            "=== NAME  Parent",
            "parent line",
            "=== CONT  Parent/Child",
            "child line 1",
            "=== NAME  Parent",
            "child line 2",
        ])
        assert result.buffers["Parent"] == ["parent line"]
        assert result.buffers["Parent/Child"] == ["child line 1", "child line 2"]

    def test_every_body_line_attributed_once(self):
        lines = ["=== RUN   TestA"]
        lines += [f"line {i}" for i in range(50)]
        lines += ["=== RUN   TestB", "b", "=== CONT  TestA", "last"]
        result = parse_lines(lines)
        collected = [l for buf in result.buffers.values() for l in buf]
        assert sorted(collected) == sorted(
            [f"line {i}" for i in range(50)] + ["b", "last"]
        )
        assert result.buffers["TestA"][:50] == [f"line {i}" for i in range(50)]


class TestSummaryPhase:
    """Tests for the trailer phase."""

    def test_trailer_records(self):
        result = parse_lines(_lines(INTERLEAVED_LOG))
        assert result.summaries == [
            TestSummary("FAIL", "TestParent", "0.02s", 0),
            TestSummary("FAIL", "TestParent/Child", "0.01s", 1),
            TestSummary("PASS", "TestSolo", "0.00s", 0),
        ]

    def test_triggering_line_not_routed(self):
        result = parse_lines(["=== RUN   TestA", "--- PASS: TestA (0.00s)"])
        assert result.buffers["TestA"] == []
        assert len(result.summaries) == 1

    def test_body_lines_in_summary_phase_ignored(self):
        result = parse_lines([
            "=== RUN   TestA",
            "--- FAIL: TestA (0.00s)",
            "    a_test.go:3: late output",
            "=== RUN   TestB",
        ])
        assert result.buffers == {"TestA": []}
        assert [s.name for s in result.summaries] == ["TestA"]

    def test_malformed_trailer_dropped(self):
        result = parse_lines([
            "=== RUN   TestA",
            "--- FAIL:",
            "--- PASS: TestA (0.00s)",
        ])
        assert [s.name for s in result.summaries] == ["TestA"]

    def test_terminator_stops_consumption(self):
        """Nothing after the terminator is pulled from the iterator."""
        consumed: list[str] = []

        def gen():
            for line in [
                "=== RUN   TestA",
                "--- FAIL: TestA (0.00s)",
                "FAIL",
                "--- PASS: TestB (0.00s)",
                "more",
            ]:
                consumed.append(line)
                yield line

        result = parse_lines(gen())
        assert consumed[-1] == "FAIL"
        assert len(consumed) == 3
        assert [s.name for s in result.summaries] == ["TestA"]


class TestParseDriver:
    """Tests for ParseDriver state."""

    def test_phase_progression(self):
        driver = ParseDriver(CombinedResult())
        assert driver.state.phase is Phase.PRE_START
        driver.feed("=== RUN   TestA")
        assert driver.state.phase is Phase.STREAMING
        driver.feed("--- FAIL: TestA (0.00s)")
        assert driver.state.phase is Phase.SUMMARY
        assert driver.feed("FAIL") is False
        assert driver.stopped
        assert driver.feed("--- PASS: TestB (0.00s)") is False
        assert len(driver.result.summaries) == 1

    def test_line_numbers_count_every_line(self):
        driver = ParseDriver(CombinedResult())
        driver.run(["noise", "=== RUN   TestA", "x"])
        assert driver.state.line_number == 3

    def test_phase_cannot_go_back(self):
        state = ParseState(phase=Phase.SUMMARY)
        with pytest.raises(ValueError, match="back"):
            state.advance(Phase.STREAMING)


class TestCombinedResult:
    """Tests for CombinedResult lookups."""

    def _result(self) -> CombinedResult:
        return CombinedResult(
            buffers={"TestFoo": ["a"], "Orphan": ["o"]},
            summaries=[
                TestSummary("FAIL", "TestFoo", "0.01s", 0),
                TestSummary("PASS", "TestBar", "0.00s", 0),
                TestSummary("FAIL", "TestBar/x", "0.00s", 1),
            ],
        )

    def test_buffer_for_missing(self):
        assert self._result().buffer_for("TestBar") == []

    def test_matching(self):
        names = [s.name for s in self._result().matching(re.compile("Bar"))]
        assert names == ["TestBar", "TestBar/x"]

    def test_failures(self):
        names = [s.name for s in self._result().failures()]
        assert names == ["TestFoo", "TestBar/x"]

    def test_failures_custom_status(self):
        names = [s.name for s in self._result().failures(status="PASS")]
        assert names == ["TestBar"]


class TestDeterminism:
    """Tests for repeatable parsing."""

    def test_same_input_same_result(self):
        first = parse_lines(_lines(INTERLEAVED_LOG))
        second = parse_lines(_lines(INTERLEAVED_LOG))
        assert first == second


class TestParseSources:
    """Tests for multi-source parsing."""

    def test_sources_merge_in_order(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            first = Path(tmpdir) / "first.log"
            second = Path(tmpdir) / "second.log"
            first.write_text(
                "=== RUN   TestA\none\n--- PASS: TestA (0.00s)\nFAIL\nignored\n"
            )
            second.write_text(
                "=== RUN   TestA\ntwo\n=== RUN   TestB\nb\n--- FAIL: TestB (0.10s)\n"
            )
            result = parse_sources([str(first), str(second)])

        assert result.buffers == {"TestA": ["one", "two"], "TestB": ["b"]}
        assert [s.name for s in result.summaries] == ["TestA", "TestB"]

    def test_missing_file_skipped(self):
        err = io.StringIO()
        with tempfile.TemporaryDirectory() as tmpdir:
            good = Path(tmpdir) / "good.log"
            good.write_text("=== RUN   TestA\nok\n")
            result = parse_sources(
                [str(Path(tmpdir) / "missing.log"), str(good)], errors=err,
            )
        assert result.buffers == {"TestA": ["ok"]}
        assert "Error opening file" in err.getvalue()
        assert "missing.log" in err.getvalue()

    def test_empty_sources_reads_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("=== RUN   TestA\nfrom stdin\n"))
        result = parse_sources([])
        assert result.buffers == {"TestA": ["from stdin"]}

    def test_progress_line_kept_whole(self, monkeypatch):
        """A lone carriage return does not split a body line."""
        log = b"=== RUN   TestA\nprogress 10%\rprogress 100%\n--- FAIL: TestA (0.00s)\nFAIL\n"
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "progress.log"
            path.write_bytes(log)
            from_file = parse_sources([str(path)])

        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(log)))
        from_stdin = parse_sources([])

        for result in (from_file, from_stdin):
            assert result.buffers == {"TestA": ["progress 10%\rprogress 100%"]}

    def test_url_source_uses_session(self):
        response = MagicMock()
        response.encoding = "utf-8"
        response.iter_content.return_value = iter(
            ["=== RUN   TestA\nremote\n", "--- FAIL: TestA (0.00s)\nFAIL\n"]
        )
        session = MagicMock()
        session.get.return_value = response

        result = parse_sources(["https://ci.example.com/log.txt"], session=session)

        session.get.assert_called_once()
        assert result.buffers == {"TestA": ["remote"]}
        assert result.failures()[0].name == "TestA"
        response.close.assert_called_once()

    def test_fetch_failure_skipped(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        err = io.StringIO()
        result = parse_sources(
            ["http://ci.example.com/log.txt"], session=session, errors=err,
        )
        assert result == CombinedResult()
        assert "Error fetching URL http://ci.example.com/log.txt" in err.getvalue()

    def test_read_error_keeps_partial_result(self):
        def broken():
            yield "=== RUN   TestA\n"
            yield "partial\n"
            raise requests.exceptions.ChunkedEncodingError("connection reset")

        response = MagicMock()
        response.encoding = "utf-8"
        response.iter_content.return_value = broken()
        session = MagicMock()
        session.get.return_value = response
        err = io.StringIO()

        result = parse_sources(
            ["https://ci.example.com/a.log"], session=session, errors=err,
        )

        assert result.buffers == {"TestA": ["partial"]}
        assert "Error reading input https://ci.example.com/a.log" in err.getvalue()
