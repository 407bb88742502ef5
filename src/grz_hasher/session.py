"""Saved sessions: what a caller keeps to resume an interrupted computation."""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import Any

from pydantic import ConfigDict, Field, field_serializer, field_validator

from .models.config import StrictBaseModel

log = logging.getLogger(__name__)


class SavedSession(StrictBaseModel):
    """
    Number of bytes hashed so far and the exported accumulator states.

    To resume, the next byte read from the source must be the byte at offset `computed`.
    """

    model_config = ConfigDict(frozen=True)

    computed: int = Field(ge=0)
    """
    Number of bytes covered by `states`.
    """

    states: dict[str, bytes]
    """
    Exported accumulator states by algorithm name. Serialized as base64 in JSON.
    """

    source: str | None = None
    """
    File path or URL the session belongs to (informational).
    """

    total: int | None = None
    """
    Size of the source in bytes, if known (informational).
    """

    @field_validator("states", mode="before")
    @classmethod
    def decode_states(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {
                str(alg).strip().upper(): base64.b64decode(blob, validate=True) if isinstance(blob, str) else blob
                for alg, blob in value.items()
            }
        return value

    @field_serializer("states", when_used="json")
    def encode_states(self, states: dict[str, bytes]) -> dict[str, str]:
        return {alg: base64.b64encode(blob).decode("ascii") for alg, blob in states.items()}

    @classmethod
    def from_path(cls, path: str | PathLike) -> SavedSession:
        """Read a session from a JSON file."""
        path = Path(path)
        session = cls.model_validate_json(path.read_text())
        log.debug(f"Loaded session from {path}: {session.computed} bytes computed")
        return session

    def to_path(self, path: str | PathLike) -> None:
        """Write the session to a JSON file."""
        path = Path(path)
        path.write_text(self.model_dump_json(indent=2))
        log.debug(f"Saved session to {path}: {self.computed} bytes computed")
