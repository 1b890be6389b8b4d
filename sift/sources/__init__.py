"""Input acquisition: stdin, local files and http(s) URLs."""

from sift.sources.reader import STDIN, SourceError, is_url, open_source

__all__ = [
    "STDIN",
    "SourceError",
    "is_url",
    "open_source",
]
