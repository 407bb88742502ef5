"""Streaming engine: reads a source in chunks and feeds an accumulator set on a worker thread."""

from __future__ import annotations

import enum
import logging
import queue
import threading
import time
from typing import Any, Protocol

from .accumulators import AccumulatorSet
from .cancellation import CancelToken
from .constants import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_PROGRESS_INTERVAL,
    MAX_BUFFER_SIZE,
    MIN_BUFFER_SIZE,
    WORKER_JOIN_TIMEOUT,
)
from .events import ErrorEvent, Event, OKEvent, ProgressEvent, StopEvent
from .exceptions import ConsumerProtocolViolation, SourceReadError, StateExportUnsupported
from .utils.threads import create_worker_thread, safe_join_thread

log = logging.getLogger(__name__)


class Readable(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class EngineState(enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"
    FAILED = "failed"


def clamp_buffer_size(buffer_size: Any) -> int:
    """Clamp a buffer size to [MIN_BUFFER_SIZE, MAX_BUFFER_SIZE]; non-integers fall back to the default."""
    if isinstance(buffer_size, bool) or not isinstance(buffer_size, int):
        return DEFAULT_BUFFER_SIZE
    return max(MIN_BUFFER_SIZE, min(MAX_BUFFER_SIZE, buffer_size))


class EventStream:
    """
    Consumer side of an engine run.

    Iterating yields the run's events in order and ends right after the
    terminal event. Meant for a single consumer thread.

    Usage:
        with engine.start() as events:
            for event in events:
                if isinstance(event, ProgressEvent):
                    print(f"{event.percent:.2f}%")
                elif isinstance(event, OKEvent):
                    print(event.checksum_strings())
    """

    def __init__(self, channel: queue.Queue, thread: threading.Thread, cancel_token: CancelToken):
        self._channel = channel
        self._thread = thread
        self._cancel_token = cancel_token
        self._terminal_event: Event | None = None

    def __iter__(self) -> EventStream:
        return self

    def __next__(self) -> Event:
        if self._terminal_event is not None:
            raise StopIteration
        event = self._channel.get()
        if event.terminal:
            self._terminal_event = event
            safe_join_thread(self._thread, WORKER_JOIN_TIMEOUT, log)
        return event

    @property
    def finished(self) -> bool:
        return self._terminal_event is not None

    @property
    def terminal_event(self) -> Event | None:
        """The terminal event, once it has been received."""
        return self._terminal_event

    def cancel(self) -> None:
        """Ask the engine to stop after the current chunk."""
        self._cancel_token.cancel()

    def wait(self) -> Event:
        """Consume all remaining events and return the terminal one."""
        for _ in self:
            pass
        assert self._terminal_event is not None
        return self._terminal_event

    def close(self) -> None:
        """Cancel the run if it is still going and drain it."""
        if not self.finished:
            self.cancel()
            self.wait()

    def __enter__(self) -> EventStream:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class StreamingEngine:
    """
    Hashes a byte source into an accumulator set on a dedicated worker thread.

    The run loop polls the cancel token before each read, reads up to
    `buffer_size` bytes, and feeds them to the accumulators. An empty read is
    the end of the stream. Exactly one terminal event is sent per run:

    - OKEvent when the source is exhausted,
    - StopEvent with the exported states when the token was cancelled,
    - ErrorEvent when reading failed or the states could not be exported.

    Events travel over a queue holding at most one event, so the worker blocks
    until the consumer catches up.
    """

    __log = log.getChild("StreamingEngine")

    def __init__(
        self,
        source: Readable,
        accumulators: AccumulatorSet,
        *,
        total: int | None = None,
        offset: int = 0,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        cancel_token: CancelToken | None = None,
        progress_interval: float | None = DEFAULT_PROGRESS_INTERVAL,
        close_source: bool = False,
    ):
        """
        :param source: object with a read(size) method returning bytes, b"" at the end
        :param accumulators: the accumulators to feed
        :param total: size of the whole stream including `offset`, if known; only used for progress
        :param offset: bytes already covered by the accumulators' restored states
        :param buffer_size: maximum chunk size, clamped to the supported range
        :param cancel_token: token to stop the run early
        :param progress_interval: minimum seconds between progress events; None disables them, 0 reports every chunk
        :param close_source: close the source when the run ends
        """
        if accumulators.sealed:
            raise ConsumerProtocolViolation("Accumulator set has been sealed; restore a new one from its states")

        self._source = source
        self._accumulators = accumulators
        self._total = total
        self._offset = offset
        self._buffer_size = clamp_buffer_size(buffer_size)
        self._cancel_token = cancel_token or CancelToken()
        self._progress_interval = progress_interval if progress_interval is None or progress_interval >= 0 else None
        self._close_source = close_source

        self._state = EngineState.PENDING
        self._state_lock = threading.Lock()

        if self._buffer_size != buffer_size:
            self.__log.debug(f"Buffer size {buffer_size!r} clamped to {self._buffer_size}")

    @property
    def state(self) -> EngineState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: EngineState) -> None:
        with self._state_lock:
            self._state = state

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def cancel_token(self) -> CancelToken:
        return self._cancel_token

    @property
    def accumulators(self) -> AccumulatorSet:
        return self._accumulators

    def start(self) -> EventStream:
        """
        Start the run on a worker thread.

        :returns: the stream of events of this run
        :raises ConsumerProtocolViolation: if the engine was started before
        """
        with self._state_lock:
            if self._state is not EngineState.PENDING:
                raise ConsumerProtocolViolation(f"Engine cannot be started again (state: {self._state.value})")
            self._state = EngineState.RUNNING

        channel: queue.Queue = queue.Queue(maxsize=1)
        self.__log.debug(
            f"Starting {self._accumulators.algorithms} with buffer size {self._buffer_size}, "
            f"offset {self._offset}, total {self._total}"
        )
        thread = create_worker_thread(lambda: self._run(channel), name="grz-hasher-engine")
        return EventStream(channel, thread, self._cancel_token)

    def _run(self, channel: queue.Queue) -> None:
        terminal: Event | None = None
        try:
            terminal = self._loop(channel)
        except BaseException as e:
            # reported to the consumer as an ErrorEvent, never re-raised on the worker
            self.__log.exception("Hashing failed unexpectedly")
            terminal = self._fail(e)
        finally:
            if terminal is None:
                terminal = self._fail(RuntimeError("Hashing ended without a result"))
            self._accumulators.seal()
            close = getattr(self._source, "close", None)
            if self._close_source and close is not None:
                try:
                    close()
                except Exception as e:
                    self.__log.warning(f"Failed to close source: {e}")

            channel.put(terminal)

    def _loop(self, channel: queue.Queue) -> Event:
        last_report = time.monotonic()

        while True:
            if self._cancel_token.cancelled:
                return self._stop()

            try:
                chunk = self._read()
            except SourceReadError as e:
                self.__log.error(f"Reading from source failed after {self._accumulators.computed} bytes: {e}")
                return self._fail(e)

            if not chunk:
                return self._complete()

            self._accumulators.write(chunk)

            if self._progress_interval is not None:
                now = time.monotonic()
                if now - last_report >= self._progress_interval:
                    last_report = now
                    event = ProgressEvent(self._total, self._accumulators.computed, self._offset)
                    self.__log.debug(f"Progress: {event.current}/{self._total} bytes")
                    channel.put(event)

    def _read(self) -> bytes:
        try:
            chunk = self._source.read(self._buffer_size)
        except Exception as e:
            raise SourceReadError(f"Failed to read from source: {e}") from e
        if chunk is None:
            raise SourceReadError("Source returned no data without reaching the end of the stream")
        return chunk

    def _stop(self) -> Event:
        computed = self._accumulators.computed
        try:
            states = self._accumulators.export_state()
        except StateExportUnsupported as e:
            self.__log.error(f"Stopped after {computed} bytes, but the state cannot be saved: {e}")
            return self._fail(e)

        self._set_state(EngineState.STOPPED)
        cause = self._cancel_token.reason or "cancelled"
        self.__log.info(f"Hashing {cause} after {self._offset + computed} bytes")
        return StopEvent(computed, states, self._offset, cause)

    def _complete(self) -> Event:
        self._set_state(EngineState.COMPLETED)
        computed = self._accumulators.computed
        self.__log.info(f"Hashing completed: {self._offset + computed} bytes")
        return OKEvent(computed, self._accumulators.digests(), self._offset)

    def _fail(self, error: BaseException) -> Event:
        self._set_state(EngineState.FAILED)
        return ErrorEvent(error)
