import logging
from copy import deepcopy
from os import PathLike
from pathlib import Path

import yaml

__all__ = [
    "merge_config_dicts",
    "read_and_merge_config_files",
]

log = logging.getLogger(__name__)


def _merge_into(target: dict, source: dict, path: list[str]) -> dict:
    for key, source_val in source.items():
        key_path = [*path, str(key)]

        if key not in target:
            target[key] = source_val
            continue

        target_val = target[key]
        if source_val is None:
            continue
        if target_val is None:
            target[key] = source_val
        elif isinstance(target_val, dict) and isinstance(source_val, dict):
            _merge_into(target_val, source_val, key_path)
        elif type(target_val) == type(source_val):
            log.warning(f"Overriding configuration key {'.'.join(key_path)} with value: {source_val}")
            target[key] = deepcopy(source_val)
        else:
            raise ValueError(f"Conflict at {'.'.join(key_path)}: {target_val!r} != {source_val!r}")
    return target


def merge_config_dicts(a: dict, b: dict) -> dict:
    """Merge two configuration dictionaries recursively.

    This function merges dictionary ``b`` into a copy of dictionary ``a``.

    - For keys present in both ``a`` and ``b``:
        - If both values are dictionaries, they are merged recursively.
        - If the value types match, ``b`` replaces the value in ``a`` (e.g. a later
          config file overrides the list of ``algorithms``).
        - If one of both values is ``None``, the non-``None`` value is used.
        - Otherwise a ``ValueError`` is raised.
    - For keys present only in ``b``, they are added.

    :param a: The base configuration.
    :param b: The configuration to merge on top of ``a``.
    :return: The merged dictionary; neither input is modified.
    :raises ValueError: If there is a conflict between values that cannot be merged.
    """
    return _merge_into(deepcopy(a), deepcopy(b), path=[])


def read_and_merge_config_files(config_files: list[str | PathLike]) -> dict:
    """
    Read YAML configuration files and merge them in order.

    Empty files contribute nothing.

    :param config_files: paths of the files, later files take precedence
    :return: Merged configuration dictionary.
    :raises RuntimeError: If there is an error reading any of the configuration files.
    """
    configuration: dict[str, object] = {}
    for config_file in map(Path, config_files):
        try:
            with open(config_file) as fd:
                content = yaml.safe_load(fd) or {}
            if not isinstance(content, dict):
                raise ValueError(f"Expected a mapping at the top level, got {type(content).__name__}")
            configuration = merge_config_dicts(configuration, content)
        except Exception as e:
            raise RuntimeError(f"Error reading configuration file: '{config_file}'") from e

    return configuration
