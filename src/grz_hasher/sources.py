"""Byte sources for the engine: files, strings and HTTP(S) URLs, each openable at a resume offset."""

from __future__ import annotations

import io
import logging
from os import PathLike
from pathlib import Path
from typing import Any, BinaryIO

import requests

from .constants import DEFAULT_HTTP_TIMEOUT
from .exceptions import InvalidOffset, RangeNotSupported, UnexpectedStatusCode

log = logging.getLogger(__name__)


def _check_offset(offset: int, total: int | None) -> None:
    if offset < 0:
        raise InvalidOffset(f"Offset must not be negative, got {offset}")
    if total is not None and offset > total:
        raise InvalidOffset(f"Offset {offset} lies beyond the end of the source ({total} bytes)")


def open_file(path: str | PathLike, offset: int = 0) -> tuple[BinaryIO, int]:
    """
    Open a file for hashing, positioned at `offset`.

    :param path: path to the file
    :param offset: number of bytes already hashed (from a saved session)
    :returns: (file object, file size in bytes); the caller owns the file object
    :raises InvalidOffset: if the offset is negative or beyond the end of the file
    """
    path = Path(path)
    total = path.stat().st_size
    _check_offset(offset, total)

    f = open(path, "rb")
    try:
        if offset:
            f.seek(offset)
    except OSError:
        f.close()
        raise

    log.debug(f"Opened {path} at offset {offset} of {total} bytes")
    return f, total


def string_source(*strings: str, offset: int = 0, encoding: str = "utf-8") -> tuple[io.BytesIO, int]:
    """
    Create a source from the concatenation of encoded strings.

    :returns: (source, total size in bytes)
    :raises InvalidOffset: if the offset is negative or beyond the end of the data
    """
    data = b"".join(s.encode(encoding) for s in strings)
    _check_offset(offset, len(data))
    source = io.BytesIO(data)
    source.seek(offset)
    return source, len(data)


def content_length(
    url: str,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> tuple[int | None, bool]:
    """
    Ask the server for the size of a resource and whether it accepts range requests.

    :returns: (size in bytes or None if unknown, range requests supported)
    """
    session = session or requests.Session()
    response = session.head(url, allow_redirects=True, timeout=timeout)
    response.raise_for_status()

    length = response.headers.get("Content-Length")
    total = int(length) if length is not None and length.isdigit() else None
    range_supported = response.headers.get("Accept-Ranges", "").lower() == "bytes"

    log.debug(f"HEAD {url}: Content-Length={total}, range requests supported: {range_supported}")
    return total, range_supported


class HttpSource:
    """
    Streams the body of an HTTP response.

    The body is read undecoded, so bytes and offsets match the resource on the server.
    """

    def __init__(self, response: requests.Response, content_length: int | None = None):
        self._response = response
        self._content_length = content_length
        self._bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        data = self._response.raw.read(None if size < 0 else size)
        if data:
            self._bytes_read += len(data)
        return data

    def close(self) -> None:
        self._response.close()

    @property
    def content_length(self) -> int | None:
        """Return the content length of the whole resource, if known."""
        return self._content_length

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    def __enter__(self) -> HttpSource:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def open_url(
    url: str,
    offset: int = 0,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> tuple[HttpSource | io.BytesIO, int | None]:
    """
    Open a URL for hashing, starting at `offset` via a range request.

    :param url: HTTP(S) URL
    :param offset: number of bytes already hashed (from a saved session)
    :param session: requests session to use, a new one by default
    :param timeout: request timeout in seconds
    :returns: (source, size of the whole resource or None if unknown)
    :raises InvalidOffset: if the offset is negative or beyond the end of the resource
    :raises RangeNotSupported: if resuming needs range requests the server does not support
    :raises UnexpectedStatusCode: if the server does not answer with 200 (or 206 when resuming)
    """
    session = session or requests.Session()
    total, range_supported = content_length(url, session=session, timeout=timeout)
    _check_offset(offset, total)

    if offset and total is not None and offset == total:
        log.debug(f"Nothing left to read from {url} at offset {offset}")
        return io.BytesIO(b""), total

    headers = {"Accept-Encoding": "identity"}
    expected_status = requests.codes.ok
    if offset:
        if not range_supported:
            raise RangeNotSupported(f"Server of {url} does not support range requests, cannot resume at {offset}")
        headers["Range"] = f"bytes={offset}-"
        expected_status = requests.codes.partial_content

    response = session.get(url, headers=headers, stream=True, timeout=timeout)
    if response.status_code != expected_status:
        response.close()
        raise UnexpectedStatusCode(url, expected_status, response.status_code)

    log.debug(f"GET {url} from offset {offset}: status {response.status_code}")
    return HttpSource(response, total), total
