"""Accumulator interface and the resumable hashlib-backed block digests."""

from __future__ import annotations

import io
import pickle
import struct
from abc import ABC, abstractmethod

import rehash

from ..exceptions import StateExportUnsupported, StateImportFailed

# Header of every exported block digest state: magic followed by the byte count
_LENGTH = struct.Struct(">Q")

# globals a pickled rehash object may reference
_ALLOWED_GLOBALS = {
    ("copyreg", "__newobj__"),
    ("copyreg", "_reconstructor"),
    ("builtins", "object"),
}


class _StateUnpickler(pickle.Unpickler):
    """Unpickler that only resolves rehash types."""

    def find_class(self, module: str, name: str):
        root = module.split(".", 1)[0]
        if root in {"rehash", "_rehash"} or (module, name) in _ALLOWED_GLOBALS:
            return super().find_class(module, name)
        raise pickle.UnpicklingError(f"global '{module}.{name}' is forbidden in a hash state")


class Accumulator(ABC):
    """
    A mutable digest state bound to one hash algorithm.

    Usage:
        acc = new_accumulator("SHA-256")
        acc.write(data1)
        blob = acc.export_state()

        resumed = new_accumulator("SHA-256")
        resumed.import_state(blob)
        resumed.write(data2)
        digest = resumed.sum()
    """

    name: str
    digest_size: int
    block_size: int

    # whether export_state/import_state are available
    supports_snapshot: bool = False

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Consume a chunk of data."""

    @abstractmethod
    def sum(self) -> bytes:
        """Return the digest of all data written so far without changing the state."""

    def hexsum(self) -> str:
        """Return the digest as a lower-case hex string."""
        return self.sum().hex()

    def export_state(self) -> bytes:
        """Return a self-contained snapshot of the state."""
        raise StateExportUnsupported(self.name)

    def import_state(self, blob: bytes) -> None:
        """Replace the state with a snapshot taken by export_state."""
        raise StateImportFailed(self.name, "accumulator does not support state import")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class BlockDigest(Accumulator):
    """
    MD5, SHA-1 and the SHA-2 family on top of rehash's resumable hashlib objects.

    Hashing runs in OpenSSL; snapshots use rehash's own serialization of the
    digest context.

    Snapshot layout:
        magic | byte length (uint64, big-endian) | pickled rehash object
    """

    supports_snapshot = True

    magic: bytes
    # constructor name in rehash (and hashlib)
    hash_name: str

    def __init__(self):
        self._hash = getattr(rehash, self.hash_name)()
        self._length = 0

    def write(self, data: bytes) -> None:
        if not data:
            return
        self._hash.update(data)
        self._length += len(data)

    def sum(self) -> bytes:
        return self._hash.digest()

    @property
    def length(self) -> int:
        """Number of bytes covered by the state."""
        return self._length

    def export_state(self) -> bytes:
        return self.magic + _LENGTH.pack(self._length) + pickle.dumps(self._hash)

    def import_state(self, blob: bytes) -> None:
        if not isinstance(blob, bytes | bytearray | memoryview):
            raise StateImportFailed(self.name, f"expected bytes, got {type(blob).__name__}")
        blob = bytes(blob)
        if not blob.startswith(self.magic):
            raise StateImportFailed(self.name, "invalid hash state identifier")
        header_size = len(self.magic) + _LENGTH.size
        if len(blob) <= header_size:
            raise StateImportFailed(self.name, f"invalid hash state size {len(blob)}")

        (length,) = _LENGTH.unpack_from(blob, len(self.magic))
        payload = io.BytesIO(blob[header_size:])
        try:
            state = _StateUnpickler(payload).load()
        except Exception as e:
            raise StateImportFailed(self.name, f"corrupt hash state: {e}") from e
        if payload.read():
            raise StateImportFailed(self.name, "trailing data after hash state")
        if (
            not callable(getattr(state, "update", None))
            or not callable(getattr(state, "digest", None))
            or len(state.digest()) != self.digest_size
        ):
            raise StateImportFailed(self.name, "hash state belongs to another algorithm")

        self._hash = state
        self._length = length


class Md5(BlockDigest):
    name = "MD5"
    digest_size = 16
    block_size = 64
    magic = b"md5\x01"
    hash_name = "md5"


class Sha1(BlockDigest):
    name = "SHA-1"
    digest_size = 20
    block_size = 64
    magic = b"sha\x01"
    hash_name = "sha1"


class Sha256(BlockDigest):
    name = "SHA-256"
    digest_size = 32
    block_size = 64
    magic = b"sha\x03"
    hash_name = "sha256"


class Sha512(BlockDigest):
    name = "SHA-512"
    digest_size = 64
    block_size = 128
    magic = b"sha\x07"
    hash_name = "sha512"
