"""Helpers for the engine's worker thread and its event channel."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

log = logging.getLogger(__name__)


def safe_join_thread(thread: threading.Thread, timeout: float, logger: logging.Logger | None = None) -> None:
    """
    Join a thread with timeout and warn if it is still running.

    :param thread: Thread to join
    :param timeout: Timeout in seconds
    :param logger: Optional logger for warnings
    """
    _log = logger or log
    thread.join(timeout=timeout)
    if thread.is_alive():
        _log.warning(f"Thread {thread.name} did not finish within {timeout}s")


def create_worker_thread(target: Callable[[], None], name: str) -> threading.Thread:
    """
    Create and start a named daemon worker thread.

    :param target: Worker function to run
    :param name: Thread name for debugging
    :returns: Started thread
    """
    thread = threading.Thread(target=target, name=name, daemon=True)
    thread.start()
    return thread
