"""
Configuration management for the zipper.
Simple YAML-based configuration with sensible defaults.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .colored_logger import get_colored_logger

logger = get_colored_logger(__name__)

ENV_PREFIX = "ZIPPER_"
CONFIG_FILE_NAMES = ("zipper.yml", ".zipper.yml")

DEFAULT_CONFIG = {
    "scanner": {
        "case_sensitive": False,
        "follow_symlinks": False,
    },
    "archive": {
        "max_zip_size": 0,
        "compression": "deflated",
        "compression_ratio": 4.0,
        "chunk_size": 8192,
    },
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load zipper configuration from a YAML file with fallback to defaults.

    Args:
        config_path: Optional path to config file. When omitted, ``zipper.yml``
            and ``.zipper.yml`` in the working directory are tried.

    Returns:
        Configuration dictionary
    """
    if config_path:
        config_file = Path(config_path)
    else:
        config_file = None
        for name in CONFIG_FILE_NAMES:
            candidate = Path.cwd() / name
            if candidate.exists():
                config_file = candidate
                break

    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_file is not None:
        if config_file.exists():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    user_config = yaml.safe_load(f) or {}
                if not isinstance(user_config, dict):
                    raise ValueError("top level must be a mapping")
                _check_sections(user_config)

                config = _deep_merge(config, user_config)
                logger.debug("Configuration loaded from %s", config_file)

            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning("Failed to load config from %s: %s", config_file, e)
                logger.warning("Using default configuration")
        else:
            logger.warning("Config file not found: %s", config_file)

    return _apply_env_overrides(config)


def _check_sections(user_config: Dict[str, Any]) -> None:
    """Known sections must be mappings when present."""
    for section in DEFAULT_CONFIG:
        if section in user_config and not isinstance(user_config[section], dict):
            raise ValueError(f"section '{section}' must be a mapping")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to config.

    Environment variables follow the pattern ZIPPER_<SECTION>_<KEY>=value, e.g.
    ZIPPER_ARCHIVE_MAX_ZIP_SIZE=1048576. Only the first underscore after the
    section separates it from the key, so keys may contain underscores.
    """
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        section, _, key = env_key[len(ENV_PREFIX) :].lower().partition("_")
        if not section or not key:
            continue

        section_config = config.setdefault(section, {})
        if not isinstance(section_config, dict):
            logger.warning("Ignoring %s, '%s' is not a mapping", env_key, section)
            continue

        section_config[key] = _convert_env_value(env_value)

    return config


def _convert_env_value(value: str) -> Any:
    """Convert an environment variable string to bool, int, float or str."""
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value
