"""
Configuration loading for ZIP operations.
Simple YAML-based configuration with sensible defaults.

Example ``zip-ops.yml``::

    archive:
      destination_directory: build/dist
      destination_file_name: app.zip
      compression_level: 9
    sources:
      directories: [src, resources]
      files:
        - name: LICENSE.txt
          path: ../LICENSE
    filters:
      included: ['.*\\.py$']
      excluded: ['^test_']
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError
from .models import NamedFile
from .zip_operation import DEFAULT_COMPRESSION_LEVEL, ZipOperation

ENV_PREFIX = "ZIPOPS_"
ENV_SECTION_SEPARATOR = "__"
RAW_ENV_SECTIONS = ("filters",)

DEFAULT_CONFIG: Dict[str, Any] = {
    "archive": {
        "destination_directory": None,
        "destination_file_name": None,
        "compression_level": DEFAULT_COMPRESSION_LEVEL,
    },
    "sources": {
        "directories": [],
        "files": [],
    },
    "filters": {
        "included": [],
        "excluded": [],
    },
}


def load_config(
    config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Load configuration from a YAML file with fallback to defaults.

    Args:
        config_path: Optional path to a YAML config file
        environ: Environment used for overrides (default: os.environ)

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config_file = Path(config_path)
        if not config_file.is_file():
            raise ConfigurationError(f"Config file not found: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping at the top level: {config_file}"
            )

        config = _deep_merge(config, user_config)
        config["base_directory"] = str(config_file.resolve().parent)

    return _apply_env_overrides(config, os.environ if environ is None else environ)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge ``override`` into a copy of ``base``."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_env_overrides(
    config: Dict[str, Any], environ: Mapping[str, str]
) -> Dict[str, Any]:
    """
    Apply environment variable overrides to config.

    Environment variables follow pattern: ZIPOPS_<SECTION>__<KEY>=value
    Example: ZIPOPS_ARCHIVE__COMPRESSION_LEVEL=9

    Values under the filters section are kept verbatim, one pattern per line.
    """
    for env_key, env_value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        key_parts = env_key[len(ENV_PREFIX) :].lower().split(ENV_SECTION_SEPARATOR)
        if len(key_parts) < 2 or not all(key_parts):
            continue

        current = config
        for part in key_parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        if key_parts[0] in RAW_ENV_SECTIONS:
            current[key_parts[-1]] = [
                line for line in env_value.splitlines() if line.strip()
            ]
        else:
            current[key_parts[-1]] = _convert_env_value(env_value)

    return config


def _convert_env_value(value: str) -> Any:
    """Convert environment variable string to appropriate Python type."""
    if value.lower() in ("true", "yes", "on"):
        return True
    elif value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    # List conversion (comma-separated)
    if "," in value:
        return [item.strip() for item in value.split(",")]

    return value


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _pattern_list(value: Any) -> list:
    # YAML reads bare numbers such as 2024 as ints
    return [p if hasattr(p, "search") else str(p) for p in _as_list(value)]


def _resolve(path: Any, base_directory: Optional[str]) -> Path:
    resolved = Path(os.path.expanduser(str(path)))
    if base_directory and not resolved.is_absolute():
        resolved = Path(base_directory) / resolved
    return resolved


def _named_file_from_config(item: Any, base_directory: Optional[str]) -> NamedFile:
    if not isinstance(item, dict) or "path" not in item:
        raise ConfigurationError(f"Source file entries need a 'path': {item!r}")

    path = _resolve(item["path"], base_directory)
    return NamedFile(str(item.get("name") or path.name), path)


def operation_from_config(config: Dict[str, Any]) -> ZipOperation:
    """
    Build a ZipOperation from a loaded configuration dictionary.

    Relative paths resolve against the config file's directory when known.
    """
    base_directory = config.get("base_directory")
    archive = config.get("archive") or {}
    sources = config.get("sources") or {}
    filters = config.get("filters") or {}

    operation = ZipOperation()
    operation.add_source_directories(
        _resolve(d, base_directory) for d in _as_list(sources.get("directories"))
    )
    operation.add_source_files(
        _named_file_from_config(item, base_directory)
        for item in _as_list(sources.get("files"))
    )
    operation.add_included(_pattern_list(filters.get("included")))
    operation.add_excluded(_pattern_list(filters.get("excluded")))

    if archive.get("destination_directory"):
        operation.set_destination_directory(
            _resolve(archive["destination_directory"], base_directory)
        )
    if archive.get("destination_file_name"):
        operation.set_destination_file_name(str(archive["destination_file_name"]))

    level = archive.get("compression_level", DEFAULT_COMPRESSION_LEVEL)
    try:
        operation.set_compression_level(int(level))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid compression level: {level!r}") from e

    return operation
