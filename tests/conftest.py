import io
import os

import pytest

GOPHER = "The tunneling gopher digs downwards, unaware of what he will find."
GOPHER_SHA256 = "57d51a066f3a39942649cd9a76c77e97ceab246756ff3888659e6aa5a07f4a52"


@pytest.fixture(scope="session", autouse=True)
def mock_home(tmp_path_factory):
    # Create a temporary directory for the session
    temp_home = tmp_path_factory.mktemp("fake_home")

    # Set the environment variable
    os.environ["HOME"] = str(temp_home)
    os.environ["USERPROFILE"] = str(temp_home)  # For Windows compatibility

    return temp_home


@pytest.fixture
def no_default_config(tmp_path, monkeypatch):
    """Point the default config path somewhere that does not exist."""
    monkeypatch.setattr("grz_hasher.cli.DEFAULT_CONFIG_PATH", tmp_path / "missing" / "config.yaml")


@pytest.fixture
def data() -> bytes:
    """Deterministic test data spanning several blocks of every algorithm."""
    return bytes((i * 31 + 7) % 251 for i in range(1000))


@pytest.fixture
def data_file(tmp_path, data):
    path = tmp_path / "data.bin"
    path.write_bytes(data)
    return path


class CancellingReader(io.BytesIO):
    """Reader that cancels a token during its n-th read; that read still returns data."""

    def __init__(self, data: bytes, token, cancel_after: int):
        super().__init__(data)
        self.token = token
        self.cancel_after = cancel_after
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.reads == self.cancel_after:
            self.token.cancel()
        return super().read(size)


class FailingReader:
    """Reader that returns `good_reads` chunks and then raises."""

    def __init__(self, good_reads: int = 0, error: Exception | None = None):
        self.good_reads = good_reads
        self.error = error or OSError("disk on fire")
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.reads > self.good_reads:
            raise self.error
        return b"x" * size
