"""Resumable multi-algorithm checksums over byte streams."""

from .accumulators import AccumulatorSet
from .cancellation import CancelToken, SignalManager
from .digests import Accumulator, canonical_algorithm, new_accumulator, supported_algorithms
from .engine import EngineState, EventStream, StreamingEngine
from .events import ErrorEvent, Event, OKEvent, ProgressEvent, StopEvent
from .exceptions import (
    AlgorithmSetMismatch,
    ConsumerProtocolViolation,
    HasherError,
    HashingInterruptedError,
    InvalidOffset,
    NoAlgorithmSpecified,
    NoStateProvided,
    RangeNotSupported,
    SourceReadError,
    StateExportUnsupported,
    StateImportFailed,
    UnexpectedStatusCode,
    UnsupportedAlgorithm,
)
from .hasher import Hasher, checksums, file_checksums, url_checksums
from .session import SavedSession

__all__ = [
    "Accumulator",
    "AccumulatorSet",
    "AlgorithmSetMismatch",
    "CancelToken",
    "ConsumerProtocolViolation",
    "EngineState",
    "ErrorEvent",
    "Event",
    "EventStream",
    "Hasher",
    "HasherError",
    "HashingInterruptedError",
    "InvalidOffset",
    "NoAlgorithmSpecified",
    "NoStateProvided",
    "OKEvent",
    "ProgressEvent",
    "RangeNotSupported",
    "SavedSession",
    "SignalManager",
    "SourceReadError",
    "StateExportUnsupported",
    "StateImportFailed",
    "StopEvent",
    "StreamingEngine",
    "UnexpectedStatusCode",
    "UnsupportedAlgorithm",
    "canonical_algorithm",
    "checksums",
    "file_checksums",
    "new_accumulator",
    "supported_algorithms",
    "url_checksums",
]
