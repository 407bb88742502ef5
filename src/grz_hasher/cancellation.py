"""Cooperative cancellation for hashing runs."""

from __future__ import annotations

import logging
import os
import signal
import threading
import time
from typing import Any

from .constants import EXIT_INTERRUPTED

log = logging.getLogger(__name__)

CANCELLED = "cancelled"
DEADLINE_EXCEEDED = "deadline exceeded"


class CancelToken:
    """
    Signal to stop a running computation, by explicit request or by deadline.

    The engine polls the token between chunks; a chunk being hashed is always
    finished first.

    :param timeout: seconds from now after which the token counts as cancelled
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def deadline(self) -> float | None:
        """Deadline in time.monotonic() seconds, if any."""
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left until the deadline, None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self.reason is not None

    @property
    def reason(self) -> str | None:
        """Why the token is cancelled, or None if it is not."""
        if self._event.is_set():
            return CANCELLED
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DEADLINE_EXCEEDED
        return None

    def __repr__(self) -> str:
        return f"<CancelToken reason={self.reason!r} remaining={self.remaining()!r}>"


class SignalManager:
    """
    Context manager that turns Ctrl+C into a graceful stop.

    Handles SIGINT with two-stage behavior:
    - First signal: cancel the token; the engine stops after the current chunk and exports its state
    - Second signal: force immediate exit
    """

    def __init__(self, token: CancelToken, logger: logging.Logger | None = None):
        """
        :param token: token to cancel on the first interrupt
        :param logger: Optional logger for interrupt messages
        """
        self._token = token
        self._log = logger or log
        self._original_handler: Any = None

    def __enter__(self) -> SignalManager:
        """Install signal handler."""

        def signal_handler(signum: int, frame: Any) -> None:
            if self._token.reason == CANCELLED:
                self._log.warning("Received second interrupt - forcing immediate exit...")
                os._exit(EXIT_INTERRUPTED)
            self._log.warning("Interrupt received! Stopping after the current chunk...")
            self._log.info("Press Ctrl+C again to force exit without saving the session.")
            self._token.cancel()

        self._original_handler = signal.signal(signal.SIGINT, signal_handler)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Restore original signal handler."""
        if self._original_handler is not None:
            signal.signal(signal.SIGINT, self._original_handler)
            self._original_handler = None
