"""CRC-32 (IEEE 802.3 polynomial)."""

from __future__ import annotations

import binascii
import struct

from ..exceptions import StateImportFailed
from .base import Accumulator

_MAGIC = b"crc\x01"
_STATE = struct.Struct(">II")
_POLYNOMIAL = 0xEDB88320


def _ieee_table() -> list[int]:
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            crc = (crc >> 1) ^ _POLYNOMIAL if crc & 1 else crc >> 1
        table.append(crc)
    return table


# checksum of the lookup table, stored in snapshots to tell polynomials apart
_TABLE_SUM = binascii.crc32(struct.pack(">256I", *_ieee_table()))


class Crc32(Accumulator):
    name = "CRC-32"
    digest_size = 4
    block_size = 1
    supports_snapshot = True

    def __init__(self):
        self._crc = 0

    def write(self, data: bytes) -> None:
        self._crc = binascii.crc32(data, self._crc)

    def sum(self) -> bytes:
        return (self._crc & 0xFFFFFFFF).to_bytes(4, "big")

    def export_state(self) -> bytes:
        return _MAGIC + _STATE.pack(_TABLE_SUM, self._crc)

    def import_state(self, blob: bytes) -> None:
        if not isinstance(blob, bytes | bytearray | memoryview):
            raise StateImportFailed(self.name, f"expected bytes, got {type(blob).__name__}")
        blob = bytes(blob)
        if not blob.startswith(_MAGIC):
            raise StateImportFailed(self.name, "invalid hash state identifier")
        if len(blob) != len(_MAGIC) + _STATE.size:
            raise StateImportFailed(self.name, f"invalid hash state size {len(blob)}")

        table_sum, crc = _STATE.unpack_from(blob, len(_MAGIC))
        if table_sum != _TABLE_SUM:
            raise StateImportFailed(self.name, "tables do not match")
        self._crc = crc
