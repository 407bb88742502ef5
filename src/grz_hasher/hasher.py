"""High-level API: hash files, URLs and strings, with pause and resume."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from os import PathLike
from typing import Any

import requests

from .accumulators import AccumulatorSet
from .cancellation import CancelToken
from .constants import DEFAULT_BUFFER_SIZE, DEFAULT_HTTP_TIMEOUT, DEFAULT_PROGRESS_INTERVAL
from .digests import supported_algorithms
from .engine import EventStream, Readable, StreamingEngine
from .events import ErrorEvent, OKEvent, ProgressEvent, StopEvent
from .exceptions import ConsumerProtocolViolation, HashingInterruptedError
from .session import SavedSession
from .sources import open_file, open_url, string_source

log = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], Any]


class Hasher:
    """
    Computes checksums of one byte source.

    Either starts from scratch for `algorithms` (all supported algorithms by
    default) or continues a saved session, in which case the source must be
    positioned at `session.computed`. The `from_*` constructors take care of
    that and own the source they open.

    Usage:
        with Hasher.from_file("data.bin", ["SHA-256"]) as hasher:
            with hasher.start(CancelToken(timeout=10)) as events:
                terminal = events.wait()

        if isinstance(terminal, StopEvent):
            session = terminal.session()
            with Hasher.from_file("data.bin", session=session) as hasher:
                current, checksums = hasher.compute()
    """

    def __init__(
        self,
        source: Readable,
        algorithms: Iterable[str] | None = None,
        *,
        session: SavedSession | None = None,
        total: int | None = None,
        close_source: bool = False,
        name: str | None = None,
    ):
        """
        :param source: object with a read(size) method
        :param algorithms: algorithm names; with a session they must match its states
        :param session: saved session to continue
        :param total: size of the whole stream in bytes, if known
        :param close_source: close the source when the run ends or the hasher is closed
        :param name: description of the source, stored in saved sessions
        """
        if session is None:
            self._accumulators = AccumulatorSet.create(
                supported_algorithms() if algorithms is None else list(algorithms)
            )
            self._offset = 0
        else:
            self._accumulators = AccumulatorSet.restore(
                session.states, algorithms=None if algorithms is None else list(algorithms)
            )
            self._offset = session.computed

        self._source = source
        self._total = total
        self._close_source = close_source
        self._name = name
        self._engine: StreamingEngine | None = None
        self._terminal_event: OKEvent | StopEvent | ErrorEvent | None = None

    @classmethod
    def from_file(
        cls,
        path: str | PathLike,
        algorithms: Iterable[str] | None = None,
        *,
        session: SavedSession | None = None,
    ) -> Hasher:
        """Hash a file, resuming at `session.computed` if a session is given."""
        offset = session.computed if session is not None else 0
        f, total = open_file(path, offset)
        try:
            return cls(f, algorithms, session=session, total=total, close_source=True, name=str(path))
        except Exception:
            f.close()
            raise

    @classmethod
    def from_url(
        cls,
        url: str,
        algorithms: Iterable[str] | None = None,
        *,
        session: SavedSession | None = None,
        http_session: requests.Session | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> Hasher:
        """Hash a remote resource, resuming with a range request if a session is given."""
        offset = session.computed if session is not None else 0
        source, total = open_url(url, offset, session=http_session, timeout=timeout)
        try:
            return cls(source, algorithms, session=session, total=total, close_source=True, name=url)
        except Exception:
            source.close()
            raise

    @classmethod
    def from_strings(
        cls,
        strings: Iterable[str],
        algorithms: Iterable[str] | None = None,
        *,
        session: SavedSession | None = None,
    ) -> Hasher:
        """Hash the UTF-8 encoded concatenation of strings."""
        offset = session.computed if session is not None else 0
        source, total = string_source(*strings, offset=offset)
        return cls(source, algorithms, session=session, total=total, close_source=True)

    @classmethod
    def from_string(
        cls,
        string: str,
        algorithms: Iterable[str] | None = None,
        *,
        session: SavedSession | None = None,
    ) -> Hasher:
        """Hash the UTF-8 encoding of a string."""
        return cls.from_strings([string], algorithms, session=session)

    @property
    def algorithms(self) -> list[str]:
        return self._accumulators.algorithms

    @property
    def total(self) -> int | None:
        return self._total

    @property
    def offset(self) -> int:
        """Bytes covered by the resumed session."""
        return self._offset

    @property
    def name(self) -> str | None:
        return self._name

    def start(
        self,
        cancel_token: CancelToken | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        progress_interval: float | None = DEFAULT_PROGRESS_INTERVAL,
    ) -> EventStream:
        """
        Start hashing on a worker thread.

        A hasher can only be started once; to continue after a stop, create a
        new one from the StopEvent's session.

        :returns: stream of progress events and exactly one terminal event
        """
        if self._engine is not None:
            raise ConsumerProtocolViolation("Hasher has already been started")
        self._engine = StreamingEngine(
            self._source,
            self._accumulators,
            total=self._total,
            offset=self._offset,
            buffer_size=buffer_size,
            cancel_token=cancel_token,
            progress_interval=progress_interval,
            close_source=self._close_source,
        )
        return self._engine.start()

    def compute(
        self,
        cancel_token: CancelToken | None = None,
        on_progress: ProgressCallback | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        progress_interval: float | None = DEFAULT_PROGRESS_INTERVAL,
    ) -> tuple[int, dict[str, bytes]]:
        """
        Hash the whole source, blocking until done.

        :param on_progress: called with every ProgressEvent
        :returns: (bytes hashed including the resumed session, checksums by algorithm)
        :raises HashingInterruptedError: if the token was cancelled; carries the session to resume
        """
        progress_interval = progress_interval if on_progress is not None else None
        with self.start(cancel_token, buffer_size, progress_interval) as events:
            for event in events:
                if isinstance(event, ProgressEvent):
                    on_progress(event)
                else:
                    self._terminal_event = event

        return self._result(self._terminal_event)

    def _result(self, event: OKEvent | StopEvent | ErrorEvent | None) -> tuple[int, dict[str, bytes]]:
        if isinstance(event, OKEvent):
            return event.current, event.checksums
        if isinstance(event, StopEvent):
            raise HashingInterruptedError(event.session(source=self._name, total=self._total), event.cause)
        if isinstance(event, ErrorEvent):
            raise event.error
        raise ConsumerProtocolViolation(f"Unexpected terminal event: {event!r}")

    def checksums(self) -> dict[str, bytes]:
        """Return the checksums; only final after an OKEvent."""
        return self._accumulators.digests()

    def checksum_strings(self) -> dict[str, str]:
        """Return the checksums as hex strings; only final after an OKEvent."""
        return self._accumulators.hexdigests()

    def states(self) -> dict[str, bytes]:
        """Return the exported states; meant to be called after a StopEvent."""
        return self._accumulators.export_state()

    def match(self, checksum: str) -> tuple[bool, str | None]:
        """Check if a hex checksum matches any algorithm's checksum."""
        return self._accumulators.match(checksum)

    def close(self) -> None:
        """Close the source if this hasher owns it and it was never handed to an engine."""
        if self._close_source and self._engine is None:
            close = getattr(self._source, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> Hasher:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def checksums(
    source: Readable,
    total: int | None = None,
    *,
    algorithms: Iterable[str] | None = None,
    session: SavedSession | None = None,
    cancel_token: CancelToken | None = None,
    on_progress: ProgressCallback | None = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    progress_interval: float | None = DEFAULT_PROGRESS_INTERVAL,
) -> tuple[int, dict[str, bytes]]:
    """
    Compute checksums of a reader, blocking until done.

    When resuming with `session`, the reader must be positioned at `session.computed`.

    :returns: (bytes hashed including the resumed session, checksums by algorithm)
    :raises HashingInterruptedError: if the token was cancelled; `.session` resumes the computation
    """
    hasher = Hasher(source, algorithms, session=session, total=total)
    return hasher.compute(cancel_token, on_progress, buffer_size, progress_interval)


def file_checksums(
    path: str | PathLike,
    *,
    algorithms: Iterable[str] | None = None,
    session: SavedSession | None = None,
    cancel_token: CancelToken | None = None,
    on_progress: ProgressCallback | None = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    progress_interval: float | None = DEFAULT_PROGRESS_INTERVAL,
) -> tuple[int, dict[str, bytes]]:
    """Compute checksums of a file, resuming from `session` if given."""
    with Hasher.from_file(path, algorithms, session=session) as hasher:
        return hasher.compute(cancel_token, on_progress, buffer_size, progress_interval)


def url_checksums(
    url: str,
    *,
    algorithms: Iterable[str] | None = None,
    session: SavedSession | None = None,
    cancel_token: CancelToken | None = None,
    on_progress: ProgressCallback | None = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    progress_interval: float | None = DEFAULT_PROGRESS_INTERVAL,
    http_session: requests.Session | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> tuple[int, dict[str, bytes]]:
    """Compute checksums of a remote resource, resuming with a range request if `session` is given."""
    with Hasher.from_url(url, algorithms, session=session, http_session=http_session, timeout=timeout) as hasher:
        return hasher.compute(cancel_token, on_progress, buffer_size, progress_interval)
