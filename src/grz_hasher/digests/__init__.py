"""Registry of the supported digest algorithms."""

from __future__ import annotations

from collections.abc import Callable
from types import MappingProxyType

from ..exceptions import UnsupportedAlgorithm
from .base import Accumulator, BlockDigest, Md5, Sha1, Sha256, Sha512
from .crc32 import Crc32

_REGISTRY: MappingProxyType[str, Callable[[], Accumulator]] = MappingProxyType(
    {
        "MD5": Md5,
        "SHA-1": Sha1,
        "SHA-256": Sha256,
        "SHA-512": Sha512,
        "CRC-32": Crc32,
    }
)


def supported_algorithms() -> list[str]:
    """Return the supported algorithm names, sorted lexically."""
    return sorted(_REGISTRY)


def canonical_algorithm(name: str) -> str:
    """
    Normalize an algorithm name (case-insensitive) to its registry key.

    :raises UnsupportedAlgorithm: if the name is not in the registry
    """
    if not isinstance(name, str):
        raise UnsupportedAlgorithm(name)
    canonical = name.strip().upper()
    if canonical not in _REGISTRY:
        raise UnsupportedAlgorithm(name)
    return canonical


def new_accumulator(name: str) -> Accumulator:
    """Create a fresh accumulator for the given algorithm."""
    return _REGISTRY[canonical_algorithm(name)]()


__all__ = [
    "Accumulator",
    "BlockDigest",
    "Crc32",
    "Md5",
    "Sha1",
    "Sha256",
    "Sha512",
    "canonical_algorithm",
    "new_accumulator",
    "supported_algorithms",
]
