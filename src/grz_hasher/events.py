"""
Events emitted by the streaming engine.

A run emits zero or more ProgressEvents followed by exactly one terminal
event: OKEvent, StopEvent or ErrorEvent. Nothing follows the terminal event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar

from .session import SavedSession


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Event:
    """Base class of all engine events."""

    terminal: ClassVar[bool] = False

    when: datetime = field(default_factory=_now, kw_only=True)


@dataclass(frozen=True)
class ProgressEvent(Event):
    """
    Reports how many bytes have been hashed so far.

    `computed` counts the bytes of this run, `offset` the bytes covered by resumed state.
    """

    total: int | None
    computed: int
    offset: int = 0

    @property
    def current(self) -> int:
        """Bytes hashed overall, including resumed state."""
        return self.offset + self.computed

    @property
    def total_known(self) -> bool:
        return self.total is not None and self.total > 0

    @property
    def percent(self) -> float:
        """Percentage of the total, or 0 if the total is unknown."""
        if not self.total_known:
            return 0.0
        return self.current / self.total * 100


@dataclass(frozen=True)
class StopEvent(Event):
    """The run was cancelled; `states` allows resuming after `offset + computed` bytes."""

    terminal: ClassVar[bool] = True

    computed: int
    states: dict[str, bytes]
    offset: int = 0
    cause: str = "cancelled"

    @property
    def current(self) -> int:
        return self.offset + self.computed

    def session(self, source: str | None = None, total: int | None = None) -> SavedSession:
        """Return the saved session to resume this computation."""
        return SavedSession(computed=self.current, states=self.states, source=source, total=total)


@dataclass(frozen=True)
class ErrorEvent(Event):
    """The run failed; no resumable state is attached."""

    terminal: ClassVar[bool] = True

    error: BaseException


@dataclass(frozen=True)
class OKEvent(Event):
    """The whole stream was hashed."""

    terminal: ClassVar[bool] = True

    computed: int
    checksums: dict[str, bytes]
    offset: int = 0

    @property
    def current(self) -> int:
        return self.offset + self.computed

    def checksum_strings(self) -> dict[str, str]:
        """Return the checksums as hex strings."""
        return {alg: checksum.hex() for alg, checksum in self.checksums.items()}
