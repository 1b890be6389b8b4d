"""Result output: console views, per-test log files and JSON/YAML reports."""

from sift.reporting.renderer import RenderMode, render
from sift.reporting.reporter import Reporter
from sift.reporting.writer import OutputConflictError, WriteReport, write_test_outputs

__all__ = [
    "OutputConflictError",
    "RenderMode",
    "Reporter",
    "WriteReport",
    "render",
    "write_test_outputs",
]
