"""Loading of the static file-key to project mapping."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Mapping

import yaml

logger = logging.getLogger(__name__)

YAML_EXTENSIONS = (".yaml", ".yml")


class ConfigError(ValueError):
    """Raised when the configuration file cannot be read or is invalid."""


def load_config(config_path: str) -> Dict[str, Any]:
    """Read the configuration document.

    JSON by default; ``.yaml``/``.yml`` files are parsed with PyYAML.

    Args:
        config_path: Path to the configuration file.

    Returns:
        The decoded top-level mapping.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.lower().endswith(YAML_EXTENSIONS):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping at the top level")
    return data


def parse_file_map(data: Mapping[str, Any]) -> Dict[str, str]:
    """Validate the ``files`` section and return the key to project mapping.

    Keys are normalized without a leading slash, matching how request paths
    are turned into keys.

    Raises:
        ConfigError: If the section is missing or holds non-string entries.
    """
    files = data.get("files")
    if not isinstance(files, dict):
        raise ConfigError("Config must contain a 'files' mapping of key to project")

    file_map: Dict[str, str] = {}
    for key, project in files.items():
        if not isinstance(key, str) or not key.strip("/"):
            raise ConfigError(f"Invalid file key: {key!r}")
        if not isinstance(project, str) or not project.strip():
            raise ConfigError(f"Invalid project for file key '{key}': {project!r}")
        normalized = key.lstrip("/")
        if normalized in file_map:
            raise ConfigError(f"Duplicate file key: '{normalized}'")
        file_map[normalized] = project.strip()
    return file_map


def load_file_map(config_path: str) -> Dict[str, str]:
    """Load and validate the file mapping from ``config_path``."""
    file_map = parse_file_map(load_config(config_path))
    logger.info("Loaded %d file mapping(s) from %s", len(file_map), config_path)
    return file_map
