from __future__ import annotations

import logging
from collections.abc import Iterable
from os import PathLike
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import DEFAULT_BUFFER_SIZE, DEFAULT_HTTP_TIMEOUT, DEFAULT_PROGRESS_INTERVAL
from ..digests import canonical_algorithm, supported_algorithms
from ..exceptions import UnsupportedAlgorithm
from ..utils.config import read_and_merge_config_files

log = logging.getLogger(__name__)


class StrictBaseModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        use_enum_values=True,
    )


class StrictBaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid", validate_assignment=True, use_enum_values=True, env_nested_delimiter="__"
    )


class HasherConfig(StrictBaseSettings):
    model_config = SettingsConfigDict(env_prefix="grz_hasher_")

    algorithms: list[str] = Field(default_factory=supported_algorithms)
    """
    Hash algorithms to compute. Defaults to all supported algorithms.
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    """
    Size of the chunks read from the source in bytes.
    Values outside the supported range are clamped.
    """

    progress_interval: float | None = DEFAULT_PROGRESS_INTERVAL
    """
    Minimum number of seconds between two progress updates.
    Set to null to disable progress reporting.
    """

    timeout: float | None = None
    """
    Stop hashing after this many seconds (optional).
    The computation can be resumed from the saved session.
    """

    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    """
    Timeout for HTTP requests in seconds.
    """

    @field_validator("algorithms")
    @classmethod
    def check_algorithms(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one hash algorithm is required")
        try:
            return sorted({canonical_algorithm(alg) for alg in v})
        except UnsupportedAlgorithm as e:
            raise ValueError(f"{e}; supported: {', '.join(supported_algorithms())}") from e

    @classmethod
    def from_path(cls, path: str | PathLike) -> Self:
        return cls.from_paths([path])

    @classmethod
    def from_paths(cls, paths: Iterable[str | PathLike]) -> Self:
        """Load and merge YAML config files; environment variables fill in unset keys."""
        configuration = read_and_merge_config_files(list(paths))
        return cls(**configuration)
