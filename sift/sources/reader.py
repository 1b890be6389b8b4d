r"""Input source acquisition.

A source is standard input (``"-"``), an absolute http/https URL fetched
with a single GET, or a local file path.  Every source is split into
lines on ``\n`` only; a lone ``\r`` or any other line break character
stays inside the line.  Acquisition failures are raised as
:class:`SourceError` so the caller can report them and move on to the
next source.  Nothing is retried.
"""

from __future__ import annotations

import contextlib
import io
import logging
import sys
from typing import Iterable, Iterator
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

STDIN = "-"

URL_SCHEMES = frozenset({"http", "https"})

# Seconds to wait for a URL source to respond
DEFAULT_TIMEOUT = 30.0

# Bytes read per chunk from a streamed response
CHUNK_SIZE = 512


class SourceError(Exception):
    """An input source could not be opened or fetched."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source


def is_url(source: str) -> bool:
    """True if *source* is an absolute http or https URL."""
    try:
        parsed = urlparse(source)
    except ValueError:
        return False
    return parsed.scheme in URL_SCHEMES and bool(parsed.netloc)


def iter_response_lines(response: requests.Response) -> Iterator[str]:
    r"""Split a streamed response body on ``\n``.

    ``Response.iter_lines`` splits with ``str.splitlines`` and can emit an
    empty line when a CRLF straddles a chunk boundary, so the body is
    split here instead.  Lines are yielded without the ``\n``; a final
    unterminated line is yielded as is.
    """
    pending = ""
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE, decode_unicode=True):
        pending += chunk
        *lines, pending = pending.split("\n")
        yield from lines
    if pending:
        yield pending


@contextlib.contextmanager
def _fetch(
    url: str,
    session: requests.Session | None,
    timeout: float | None,
) -> Iterator[Iterable[str]]:
    logger.debug("Fetching URL: %s", url)
    http = session if session is not None else requests
    try:
        response = http.get(
            url,
            stream=True,
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise SourceError(url, f"Error fetching URL {url}: {e}") from e

    # iter_content only decodes when an encoding is known
    if response.encoding is None:
        response.encoding = "utf-8"
    try:
        yield iter_response_lines(response)
    finally:
        response.close()


@contextlib.contextmanager
def _open_file(path: str) -> Iterator[Iterable[str]]:
    logger.debug("Opening file: %s", path)
    try:
        f = open(path, encoding="utf-8", errors="replace", newline="\n")
    except OSError as e:
        raise SourceError(path, f"Error opening file {path}: {e}") from e
    with f:
        yield f


@contextlib.contextmanager
def _open_stdin() -> Iterator[Iterable[str]]:
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        # Already a text stream without a byte layer (e.g. a StringIO)
        yield sys.stdin
        return
    wrapper = io.TextIOWrapper(
        buffer, encoding="utf-8", errors="replace", newline="\n",
    )
    try:
        yield wrapper
    finally:
        # Leave sys.stdin open for the caller
        wrapper.detach()


@contextlib.contextmanager
def open_source(
    source: str,
    session: requests.Session | None = None,
    timeout: float | None = None,
) -> Iterator[Iterable[str]]:
    """Open *source* and yield an iterable of its text lines.

    Args:
        source: ``"-"`` for stdin, an http(s) URL, or a file path.
        session: Optional requests session used for URL sources.
        timeout: Request timeout in seconds for URL sources.

    Raises:
        SourceError: If the file cannot be opened or the URL cannot be
            fetched.
    """
    if source == STDIN:
        with _open_stdin() as lines:
            yield lines
    elif is_url(source):
        with _fetch(source, session, timeout) as lines:
            yield lines
    else:
        with _open_file(source) as lines:
            yield lines
