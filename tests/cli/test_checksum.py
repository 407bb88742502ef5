import hashlib
import json

import pytest
from click.testing import CliRunner
from grz_hasher.cancellation import CancelToken
from grz_hasher.constants import EXIT_INTERRUPTED
from grz_hasher.exceptions import HashingInterruptedError
from grz_hasher.hasher import file_checksums
from grz_hasher.main import build_cli
from grz_hasher.session import SavedSession

from ..conftest import GOPHER, GOPHER_SHA256

pytestmark = pytest.mark.usefixtures("no_default_config")


def invoke(*args):
    runner = CliRunner()
    cli = build_cli()
    return runner.invoke(cli, ["--log-level", "ERROR", "checksum", "--no-progress", *args])


def test_checksum_string():
    result = invoke("--string", GOPHER, "--alg", "sha-256")

    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"SHA-256  {GOPHER_SHA256}  <strings>"


def test_checksum_file_json(data_file, data):
    result = invoke(str(data_file), "--json")

    assert result.exit_code == 0, result.output
    output = json.loads(result.output)
    assert output["source"] == str(data_file)
    assert output["size"] == len(data)
    assert output["checksums"]["MD5"] == hashlib.md5(data).hexdigest()
    assert output["checksums"]["SHA-512"] == hashlib.sha512(data).hexdigest()
    assert sorted(output["checksums"]) == ["CRC-32", "MD5", "SHA-1", "SHA-256", "SHA-512"]


def test_checksum_algorithms_from_config(tmp_path, data_file, data):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("algorithms: [md5, sha-1]\n")

    result = invoke(str(data_file), "--config-file", str(config_file))

    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines == [
        f"MD5  {hashlib.md5(data).hexdigest()}  {data_file}",
        f"SHA-1  {hashlib.sha1(data).hexdigest()}  {data_file}",
    ]


def test_checksum_invalid_config(tmp_path, data_file):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("algorithms: [whirlpool]\n")

    result = invoke(str(data_file), "--config-file", str(config_file))

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


@pytest.mark.parametrize("args", [[], ["some-file", "--string", "abc"]])
def test_checksum_needs_exactly_one_source(args):
    result = invoke(*args)
    assert result.exit_code == 2


def test_checksum_missing_file(tmp_path):
    result = invoke(str(tmp_path / "missing.bin"))
    assert result.exit_code == 1


@pytest.mark.parametrize("case", [str.lower, str.upper])
def test_checksum_match(data_file, data, case):
    result = invoke(str(data_file), "--alg", "SHA-1", "--alg", "MD5", "--match", case(hashlib.md5(data).hexdigest()))
    assert result.exit_code == 0, result.output


def test_checksum_no_match(data_file):
    result = invoke(str(data_file), "--alg", "MD5", "--match", "0" * 32)
    assert result.exit_code == 1


def test_checksum_match_json(data_file, data):
    result = invoke(str(data_file), "--alg", "SHA-256", "--json", "--match", hashlib.sha256(data).hexdigest())

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["matched"] == "SHA-256"


def test_checksum_timeout_saves_session(tmp_path, data_file):
    """
    GIVEN a timeout that has already expired
    WHEN the checksum command runs with a session file
    THEN it exits as interrupted and saves a session at offset 0
    """
    session_file = tmp_path / "session.json"

    result = invoke(str(data_file), "--alg", "MD5", "--timeout", "0", "--session-file", str(session_file))

    assert result.exit_code == EXIT_INTERRUPTED
    session = SavedSession.from_path(session_file)
    assert session.computed == 0
    assert list(session.states) == ["MD5"]
    assert session.source == str(data_file)


def test_checksum_resumes_session(tmp_path, data_file, data):
    """
    GIVEN a session file saved by an interrupted computation
    WHEN the checksum command runs with that session file
    THEN it completes the computation and removes the session file
    """
    token = CancelToken()
    with pytest.raises(HashingInterruptedError) as excinfo:
        file_checksums(
            data_file,
            algorithms=["SHA-256"],
            cancel_token=token,
            on_progress=lambda event: token.cancel(),
            buffer_size=64,
            progress_interval=0,
        )
    session_file = tmp_path / "session.json"
    excinfo.value.session.to_path(session_file)

    result = invoke(str(data_file), "--session-file", str(session_file), "--json")

    assert result.exit_code == 0, result.output
    output = json.loads(result.output)
    assert output["checksums"] == {"SHA-256": hashlib.sha256(data).hexdigest()}
    assert output["size"] == len(data)
    assert not session_file.exists()


def test_checksum_session_algorithm_mismatch(tmp_path, data_file):
    session_file = tmp_path / "session.json"
    invoke(str(data_file), "--alg", "MD5", "--timeout", "0", "--session-file", str(session_file))

    result = invoke(str(data_file), "--alg", "SHA-1", "--session-file", str(session_file))

    assert result.exit_code == 1
    assert session_file.exists()


def test_checksum_session_for_other_source(tmp_path, data_file):
    """
    GIVEN a session file saved for one file
    WHEN the checksum command resumes it for another file
    THEN it fails without printing a checksum and keeps the session file
    """
    session_file = tmp_path / "session.json"
    invoke(str(data_file), "--alg", "MD5", "--timeout", "0", "--session-file", str(session_file))
    other = tmp_path / "other.bin"
    other.write_bytes(b"other content")

    result = invoke(str(other), "--session-file", str(session_file))

    assert result.exit_code == 1
    assert "--force" in result.output
    assert "MD5" not in result.output
    assert session_file.exists()


def test_checksum_session_for_other_size(tmp_path, data_file, data):
    session_file = tmp_path / "session.json"
    invoke(str(data_file), "--alg", "MD5", "--timeout", "0", "--session-file", str(session_file))
    assert SavedSession.from_path(session_file).total == len(data)
    data_file.write_bytes(data + b"appended")

    result = invoke(str(data_file), "--session-file", str(session_file))

    assert result.exit_code == 1
    assert f"{len(data)} bytes" in result.output
    assert session_file.exists()


def test_checksum_force_resumes_session_for_other_source(tmp_path, data_file):
    session_file = tmp_path / "session.json"
    invoke(str(data_file), "--alg", "MD5", "--timeout", "0", "--session-file", str(session_file))
    other = tmp_path / "other.bin"
    other.write_bytes(b"other content")

    result = invoke(str(other), "--session-file", str(session_file), "--force")

    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"MD5  {hashlib.md5(b'other content').hexdigest()}  {other}"
    assert not session_file.exists()
