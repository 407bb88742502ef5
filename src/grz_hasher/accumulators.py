"""A set of digest accumulators fed in lockstep from one byte stream."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .digests import Accumulator, canonical_algorithm, new_accumulator
from .exceptions import (
    AlgorithmSetMismatch,
    ConsumerProtocolViolation,
    NoAlgorithmSpecified,
    NoStateProvided,
)

log = logging.getLogger(__name__)


def _canonical_set(algorithms: Iterable[str]) -> list[str]:
    return sorted({canonical_algorithm(alg) for alg in algorithms})


class AccumulatorSet:
    """
    Named accumulators processing the same byte stream.

    A set is either created empty for a list of algorithms, or restored from
    states exported by an earlier set. The counter `computed` tracks the bytes
    written since then. Once sealed (after completion or interruption) the set
    only answers queries; continuing requires restoring a new set from the
    exported states.

    Usage:
        accumulators = AccumulatorSet.create(["MD5", "SHA-256"])
        accumulators.write(b"first part")
        states = accumulators.export_state()
        accumulators.seal()

        resumed = AccumulatorSet.restore(states)
        resumed.write(b"second part")
        digests = resumed.digests()
    """

    def __init__(self, accumulators: Mapping[str, Accumulator]):
        if not accumulators:
            raise NoAlgorithmSpecified("At least one hash algorithm is required")
        self._accumulators = dict(accumulators)
        self._computed = 0
        self._sealed = False

    @classmethod
    def create(cls, algorithms: Iterable[str] | None) -> AccumulatorSet:
        """
        Create a set of fresh accumulators.

        :param algorithms: algorithm names, case-insensitive
        :raises NoAlgorithmSpecified: if no algorithm is given
        :raises UnsupportedAlgorithm: if any algorithm is unknown
        """
        names = _canonical_set(algorithms or [])
        if not names:
            raise NoAlgorithmSpecified("At least one hash algorithm is required")
        return cls({name: new_accumulator(name) for name in names})

    @classmethod
    def restore(
        cls,
        states: Mapping[str, bytes] | None,
        algorithms: Iterable[str] | None = None,
    ) -> AccumulatorSet:
        """
        Create a set from exported states.

        The keys of `states` select the algorithms. If `algorithms` is passed as well,
        it must name exactly the same algorithms.

        :param states: mapping of algorithm name to exported state
        :param algorithms: optional algorithm names to cross-check against the states
        :raises NoStateProvided: if `states` is empty or None
        :raises AlgorithmSetMismatch: if `algorithms` disagrees with the state keys
        :raises UnsupportedAlgorithm: if a state key is unknown
        :raises StateImportFailed: if a state cannot be imported
        """
        if not states:
            raise NoStateProvided("No saved states to resume from")

        canonical_states = {canonical_algorithm(alg): blob for alg, blob in states.items()}
        if algorithms is not None:
            requested = _canonical_set(algorithms)
            if requested != sorted(canonical_states):
                raise AlgorithmSetMismatch(sorted(canonical_states), requested)

        accumulators = {}
        for name, blob in sorted(canonical_states.items()):
            accumulator = new_accumulator(name)
            accumulator.import_state(blob)
            accumulators[name] = accumulator

        log.debug(f"Restored accumulators for {sorted(accumulators)}")
        return cls(accumulators)

    @property
    def algorithms(self) -> list[str]:
        """Return the active algorithm names, sorted."""
        return sorted(self._accumulators)

    @property
    def computed(self) -> int:
        """Return the number of bytes written since creation or restore."""
        return self._computed

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def supports_snapshot(self) -> bool:
        """Return whether every accumulator can export its state."""
        return all(acc.supports_snapshot for acc in self._accumulators.values())

    def write(self, chunk: bytes) -> None:
        """
        Feed a chunk to every accumulator.

        :raises ConsumerProtocolViolation: if the set has been sealed
        """
        if self._sealed:
            raise ConsumerProtocolViolation("Cannot write into a sealed accumulator set; restore a new one")
        for accumulator in self._accumulators.values():
            accumulator.write(chunk)
        self._computed += len(chunk)

    def seal(self) -> None:
        """End this set's lineage; further writes are rejected."""
        self._sealed = True

    def digests(self) -> dict[str, bytes]:
        """
        Return the current digest of every algorithm.

        Only final once the whole stream has been written.
        """
        return {name: acc.sum() for name, acc in self._accumulators.items()}

    def hexdigests(self) -> dict[str, str]:
        """Return the current digests as hex strings."""
        return {name: acc.hexsum() for name, acc in self._accumulators.items()}

    def export_state(self) -> dict[str, bytes]:
        """
        Snapshot every accumulator.

        :raises StateExportUnsupported: if an accumulator cannot export its state
        """
        return {name: acc.export_state() for name, acc in self._accumulators.items()}

    def match(self, checksum: str) -> tuple[bool, str | None]:
        """
        Check whether a hex checksum equals the digest of any algorithm.

        :param checksum: hex string, case-insensitive
        :returns: (matched, algorithm) tuple; algorithm is None when nothing matched
        """
        checksum = checksum.strip().lower()
        for name, digest in sorted(self.hexdigests().items()):
            if digest == checksum:
                return True, name
        return False, None

    def __repr__(self) -> str:
        return f"<AccumulatorSet {self.algorithms} computed={self._computed} sealed={self._sealed}>"
