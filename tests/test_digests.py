import hashlib
import pickle
import zlib

import pytest
from grz_hasher.digests import canonical_algorithm, new_accumulator, supported_algorithms
from grz_hasher.exceptions import StateImportFailed, UnsupportedAlgorithm

from .conftest import GOPHER, GOPHER_SHA256

REFERENCE = {
    "MD5": lambda d: hashlib.md5(d).digest(),
    "SHA-1": lambda d: hashlib.sha1(d).digest(),
    "SHA-256": lambda d: hashlib.sha256(d).digest(),
    "SHA-512": lambda d: hashlib.sha512(d).digest(),
    "CRC-32": lambda d: (zlib.crc32(d) & 0xFFFFFFFF).to_bytes(4, "big"),
}


MAGICS = {
    "MD5": b"md5\x01",
    "SHA-1": b"sha\x01",
    "SHA-256": b"sha\x03",
    "SHA-512": b"sha\x07",
    "CRC-32": b"crc\x01",
}


def test_supported_algorithms():
    assert supported_algorithms() == ["CRC-32", "MD5", "SHA-1", "SHA-256", "SHA-512"]


@pytest.mark.parametrize(
    "name,expected",
    [("md5", "MD5"), ("sha-256", "SHA-256"), (" Sha-1 ", "SHA-1"), ("crc-32", "CRC-32")],
)
def test_canonical_algorithm(name, expected):
    assert canonical_algorithm(name) == expected


@pytest.mark.parametrize("name", ["SHA256", "sha3-256", "", None, 5])
def test_canonical_algorithm_unsupported(name):
    with pytest.raises(UnsupportedAlgorithm) as excinfo:
        canonical_algorithm(name)
    assert excinfo.value.algorithm == name


def test_sha256_known_vector():
    acc = new_accumulator("SHA-256")
    acc.write(GOPHER.encode())
    assert acc.hexsum() == GOPHER_SHA256


@pytest.mark.parametrize("algorithm", sorted(REFERENCE))
@pytest.mark.parametrize("size", [0, 1, 55, 56, 63, 64, 65, 111, 112, 127, 128, 129, 1000])
def test_digest_matches_reference(algorithm, size, data):
    payload = data[:size]
    acc = new_accumulator(algorithm)
    acc.write(payload)
    assert acc.sum() == REFERENCE[algorithm](payload)
    assert len(acc.sum()) == acc.digest_size


@pytest.mark.parametrize("algorithm", sorted(REFERENCE))
def test_digest_chunking_is_irrelevant(algorithm, data):
    acc = new_accumulator(algorithm)
    for start in range(0, len(data), 37):
        acc.write(data[start : start + 37])
    assert acc.sum() == REFERENCE[algorithm](data)


@pytest.mark.parametrize("algorithm", sorted(REFERENCE))
def test_sum_does_not_change_state(algorithm, data):
    acc = new_accumulator(algorithm)
    acc.write(data[:100])
    first = acc.sum()
    assert acc.sum() == first

    acc.write(data[100:])
    assert acc.sum() == REFERENCE[algorithm](data)


@pytest.mark.parametrize("algorithm", sorted(REFERENCE))
@pytest.mark.parametrize("split", [0, 1, 63, 64, 65, 127, 128, 200, 1000])
def test_resume_at_any_split_point(algorithm, split, data):
    """
    GIVEN an accumulator that consumed the first `split` bytes
    WHEN its state is exported into a fresh accumulator that consumes the rest
    THEN the digest equals the digest of the whole data in one pass
    """
    acc = new_accumulator(algorithm)
    acc.write(data[:split])
    blob = acc.export_state()

    resumed = new_accumulator(algorithm)
    resumed.import_state(blob)
    resumed.write(data[split:])

    assert resumed.sum() == REFERENCE[algorithm](data)


@pytest.mark.parametrize("algorithm", sorted(REFERENCE))
def test_state_identifier(algorithm, data):
    acc = new_accumulator(algorithm)
    assert acc.supports_snapshot
    acc.write(data[:70])
    assert acc.export_state().startswith(MAGICS[algorithm])


def test_crc32_state_size(data):
    acc = new_accumulator("CRC-32")
    acc.write(data)
    assert len(acc.export_state()) == 12


@pytest.mark.parametrize("algorithm", ["MD5", "SHA-1", "SHA-256", "SHA-512"])
def test_state_records_length(algorithm, data):
    acc = new_accumulator(algorithm)
    acc.write(data[:70])
    blob = acc.export_state()
    assert int.from_bytes(blob[4:12], "big") == 70

    resumed = new_accumulator(algorithm)
    resumed.import_state(blob)
    assert resumed.length == 70


@pytest.mark.parametrize("algorithm", sorted(REFERENCE))
def test_import_rejects_wrong_magic(algorithm):
    blob = bytearray(new_accumulator(algorithm).export_state())
    blob[0] ^= 0xFF
    with pytest.raises(StateImportFailed, match="identifier"):
        new_accumulator(algorithm).import_state(bytes(blob))


def test_crc32_import_rejects_wrong_size():
    blob = new_accumulator("CRC-32").export_state()
    with pytest.raises(StateImportFailed, match="size"):
        new_accumulator("CRC-32").import_state(blob[:-1])
    with pytest.raises(StateImportFailed, match="size"):
        new_accumulator("CRC-32").import_state(blob + b"\x00")


@pytest.mark.parametrize("algorithm", ["MD5", "SHA-1", "SHA-256", "SHA-512"])
def test_import_rejects_damaged_state(algorithm):
    blob = new_accumulator(algorithm).export_state()
    with pytest.raises(StateImportFailed, match="size"):
        new_accumulator(algorithm).import_state(blob[:12])
    with pytest.raises(StateImportFailed, match="corrupt"):
        new_accumulator(algorithm).import_state(blob[:-1])
    with pytest.raises(StateImportFailed, match="trailing data"):
        new_accumulator(algorithm).import_state(blob + b"\x00")


@pytest.mark.parametrize("algorithm", ["MD5", "SHA-256"])
def test_import_rejects_foreign_objects(algorithm):
    """
    GIVEN a state whose payload unpickles to something other than a hash object
    WHEN it is imported
    THEN the import fails without resolving the referenced global
    """
    blob = MAGICS[algorithm] + (0).to_bytes(8, "big") + pickle.dumps(len)
    with pytest.raises(StateImportFailed, match="forbidden"):
        new_accumulator(algorithm).import_state(blob)


def test_import_rejects_hash_object_of_other_size():
    sha1_blob = new_accumulator("SHA-1").export_state()
    blob = b"md5\x01" + sha1_blob[4:]
    with pytest.raises(StateImportFailed, match="another algorithm"):
        new_accumulator("MD5").import_state(blob)


@pytest.mark.parametrize("algorithm", sorted(REFERENCE))
def test_import_rejects_non_bytes(algorithm):
    with pytest.raises(StateImportFailed) as excinfo:
        new_accumulator(algorithm).import_state("not bytes")
    assert excinfo.value.algorithm == algorithm


def test_import_rejects_state_of_other_algorithm():
    blob = new_accumulator("SHA-256").export_state()
    with pytest.raises(StateImportFailed):
        new_accumulator("SHA-512").import_state(blob)
    with pytest.raises(StateImportFailed):
        new_accumulator("MD5").import_state(blob)


def test_crc32_rejects_other_table():
    blob = bytearray(new_accumulator("CRC-32").export_state())
    blob[4] ^= 0x01
    with pytest.raises(StateImportFailed, match="tables do not match"):
        new_accumulator("CRC-32").import_state(bytes(blob))


def test_failed_import_keeps_previous_state(data):
    acc = new_accumulator("SHA-1")
    acc.write(data)
    with pytest.raises(StateImportFailed):
        acc.import_state(b"garbage")
    assert acc.sum() == REFERENCE["SHA-1"](data)
