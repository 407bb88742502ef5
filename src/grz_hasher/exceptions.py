class HasherError(Exception):
    """Base exception for all hasher errors."""


class UnsupportedAlgorithm(HasherError, ValueError):
    """Raised when a hash algorithm name is not in the registry."""

    def __init__(self, algorithm: object):
        self.algorithm = algorithm
        super().__init__(f"Unsupported hash algorithm: {algorithm!r}")


class NoAlgorithmSpecified(HasherError, ValueError):
    """Raised when an accumulator set is created without any algorithm."""


class NoStateProvided(HasherError, ValueError):
    """Raised when an accumulator set is restored from empty or missing states."""


class AlgorithmSetMismatch(HasherError, ValueError):
    """Raised when saved states and the requested algorithms disagree."""

    def __init__(self, states: list[str], algorithms: list[str]):
        self.states = states
        self.algorithms = algorithms
        super().__init__(f"Saved states cover {states}, but algorithms {algorithms} were requested")


class InvalidOffset(HasherError, ValueError):
    """Raised when a resume offset is negative or lies beyond the end of the source."""


class StateImportFailed(HasherError):
    """Raised when a state blob cannot be loaded into an accumulator."""

    def __init__(self, algorithm: str, reason: str):
        self.algorithm = algorithm
        self.reason = reason
        super().__init__(f"Cannot import {algorithm} state: {reason}")


class StateExportUnsupported(HasherError):
    """Raised when an accumulator cannot snapshot its state."""

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"{algorithm} accumulator does not support state export")


class SourceReadError(HasherError):
    """Raised when reading from the byte source fails."""


class RangeNotSupported(HasherError):
    """Raised when a resumed URL download needs a range request the server does not accept."""


class UnexpectedStatusCode(HasherError):
    """Raised when an HTTP response carries an unexpected status code."""

    def __init__(self, url: str, expected: int, actual: int):
        self.url = url
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected status code {expected} from {url}, got {actual}")


class ConsumerProtocolViolation(HasherError):
    """Raised when an ended accumulator set or engine is used again."""


class HashingInterruptedError(HasherError):
    """Raised by the blocking helpers when a computation was stopped before the end of the stream."""

    def __init__(self, session, cause: str):
        self.session = session
        self.cause = cause
        super().__init__(f"Hashing {cause} after {session.computed} bytes")
