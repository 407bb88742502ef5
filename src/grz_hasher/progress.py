"""Progress bar rendering for hashing runs."""

from __future__ import annotations

from typing import Any

from tqdm.auto import tqdm

from .constants import TQDM_DEFAULTS
from .events import ProgressEvent


class TqdmProgress:
    """
    Renders ProgressEvents as a tqdm bar.

    The bar starts at `offset` so resumed computations show their overall progress.
    Instances are callable and can be passed as `on_progress` callback.
    """

    def __init__(self, total: int | None, offset: int = 0, desc: str = "Hashing", disable: bool = False):
        self._pbar = tqdm(total=total, initial=offset, desc=desc, disable=disable, **TQDM_DEFAULTS)

    @property
    def n(self) -> int:
        return self._pbar.n

    def observe(self, event: ProgressEvent) -> None:
        """Move the bar to the event's position."""
        self.update_to(event.current)

    def update_to(self, current: int) -> None:
        """Move the bar forward to `current` bytes."""
        delta = current - self._pbar.n
        if delta > 0:
            self._pbar.update(delta)

    __call__ = observe

    def close(self) -> None:
        self._pbar.close()

    def __enter__(self) -> TqdmProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
