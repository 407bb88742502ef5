import copy

import pytest
from grz_hasher.utils.config import merge_config_dicts, read_and_merge_config_files


def test_merge_config_dicts_no_conflict():
    a = {
        "algorithms": ["MD5", "SHA-1"],
        "http": {
            "headers": ["Accept"],
            "timeout": 10,
        },
        "buffer_size": 1024,
    }
    b = {
        "http": {
            "headers": ["Authorization"],
            "retries": 3,
        },
        "timeout": 60.0,
    }
    expected = {
        "algorithms": ["MD5", "SHA-1"],
        "http": {
            "headers": ["Authorization"],  # from b, replaces a's list
            "timeout": 10,
            "retries": 3,
        },
        "buffer_size": 1024,
        "timeout": 60.0,
    }
    assert merge_config_dicts(a, b) == expected


def test_merge_config_dicts_missing_values():
    a = {
        "http": {
            "timeout": None,
        },
        "algorithms": ["MD5"],
    }
    b = {
        "http": {
            "timeout": 10,
        },
        "algorithms": None,
    }
    expected = {
        "http": {
            "timeout": 10,  # from b, as a's value is None
        },
        "algorithms": ["MD5"],  # unchanged as b's value is None
    }
    assert merge_config_dicts(a, b) == expected


def test_merge_config_dicts_conflict():
    a = {"http": {"timeout": "ten"}}
    b = {"http": {"timeout": [10]}}
    with pytest.raises(ValueError) as excinfo:
        merge_config_dicts(a, b)
    assert "Conflict at http.timeout" in str(excinfo.value)


def test_merge_config_dicts_unmodified_inputs():
    a = {"algorithms": ["MD5"], "http": {"headers": ["Accept"]}}
    b = {"http": {"headers": ["Range"], "retries": 3}, "timeout": 1.0}

    a_original = copy.deepcopy(a)
    b_original = copy.deepcopy(b)

    result = merge_config_dicts(a, b)
    result["algorithms"].append("SHA-1")
    result["http"]["headers"].append("Accept-Encoding")

    assert a == a_original
    assert b == b_original


def test_read_and_merge_config_files(tmp_path):
    first = tmp_path / "first.yaml"
    first.write_text("algorithms: [MD5]\nbuffer_size: 1024\n")
    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    second = tmp_path / "second.yaml"
    second.write_text("buffer_size: 2048\n")

    assert read_and_merge_config_files([first, empty, second]) == {"algorithms": ["MD5"], "buffer_size": 2048}


def test_read_and_merge_config_files_errors(tmp_path):
    not_a_mapping = tmp_path / "list.yaml"
    not_a_mapping.write_text("- MD5\n")

    with pytest.raises(RuntimeError, match="list.yaml"):
        read_and_merge_config_files([not_a_mapping])
    with pytest.raises(RuntimeError):
        read_and_merge_config_files([tmp_path / "missing.yaml"])
