"""Sifter configuration file management.

Reads and writes an optional JSON configuration file holding defaults
for the command-line options.  Values given on the command line take
precedence over the file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# File looked up in the working directory when --config-file is not given
DEFAULT_CONFIG_NAME = ".go_test_sift.json"

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "test_pattern": ".*",
    "output_dir": ".",
    "force": False,
    "failure_status": "FAIL",
    "log_file_name": "output.log",
    "request_timeout": 30.0,
}


class SiftConfig:
    """Manages the JSON configuration file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        if path is not None and path.exists():
            self._load()

    @classmethod
    def discover(cls, path: Path | None = None) -> SiftConfig:
        """Load *path*, or the default file in the working directory."""
        if path is None:
            default = Path(DEFAULT_CONFIG_NAME)
            return cls(default if default.exists() else None)
        return cls(path)

    def _load(self) -> None:
        """Load config from the file."""
        assert self.path is not None
        try:
            text = self.path.read_text()
            data = json.loads(text)
            if isinstance(data, dict):
                self._data = {**DEFAULT_CONFIG, **data}
        except (json.JSONDecodeError, OSError):
            self._data = dict(DEFAULT_CONFIG)

    def save(self) -> None:
        """Write config to the file."""
        if self.path is None:
            raise ValueError("No config file path specified")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2)
            f.write("\n")

    @property
    def config(self) -> dict[str, Any]:
        """Get the full configuration dict."""
        return dict(self._data)

    @property
    def test_pattern(self) -> str:
        """Regular expression filtering test names in the output."""
        return str(self._data.get("test_pattern", DEFAULT_CONFIG["test_pattern"]))

    @property
    def output_dir(self) -> Path:
        """Base directory for per-test output files."""
        return Path(self._data.get("output_dir", DEFAULT_CONFIG["output_dir"]))

    @property
    def force(self) -> bool:
        """Whether existing output directories may be written into."""
        return bool(self._data.get("force", DEFAULT_CONFIG["force"]))

    @property
    def failure_status(self) -> str:
        return str(self._data.get("failure_status", DEFAULT_CONFIG["failure_status"]))

    @property
    def log_file_name(self) -> str:
        return str(self._data.get("log_file_name", DEFAULT_CONFIG["log_file_name"]))

    @property
    def request_timeout(self) -> float:
        """Seconds to wait for a URL source to respond."""
        return float(
            self._data.get("request_timeout", DEFAULT_CONFIG["request_timeout"])
        )

    def set_config(self, **values: Any) -> None:
        """Update known configuration values; ``None`` values are ignored.

        Raises:
            KeyError: If a key is not a known configuration option.
        """
        for key, value in values.items():
            if key not in DEFAULT_CONFIG:
                raise KeyError(f"Unknown config option: {key}")
            if value is not None:
                self._data[key] = value
