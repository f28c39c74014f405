"""
Configuration loading - file discovery, YAML parsing, and overrides.

Precedence (highest first): command line, environment, config file,
built-in defaults.
"""

import logging
import os
from pathlib import Path

import yaml

from ..utils.constants import ENV_CROP_OUTPUT, ENV_VIDEO_INPUT, ENV_VIDEO_OUTPUT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "config.yaml"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    ENV_VIDEO_INPUT: ("source", "uri"),
    ENV_VIDEO_OUTPUT: ("output", "uri"),
    ENV_CROP_OUTPUT: ("output", "crop_uri"),
}


class ConfigValidationError(Exception):
    """Raised when config cannot be loaded or fails validation."""


def find_config_file(config_path: str | None = None) -> Path | None:
    """
    Find config file in standard locations.

    Search order:
    1. Specified path (if provided)
    2. Current directory (config.yaml)
    3. ~/.config/detect-crop/config.yaml

    Args:
        config_path: User-specified config path

    Returns:
        Path to config file, or None when no file exists (defaults apply)

    Raises:
        ConfigValidationError: If a specified path does not exist
    """
    if config_path:
        specified = Path(config_path)
        if specified.exists():
            return specified
        raise ConfigValidationError(f"Specified config file not found: {config_path}")

    search_paths = [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path.home() / ".config" / "detect-crop" / DEFAULT_CONFIG_NAME,
    ]

    for path in search_paths:
        if path.exists():
            logger.info(f"Using config: {path}")
            return path

    logger.info("No config file found - using built-in defaults")
    return None


def load_config_file(config_file: Path) -> dict:
    """
    Parse a YAML config file.

    Supports pointer files: if config only contains `use: path/to/config.yaml`,
    that file is loaded instead (resolved relative to the pointer file).

    Raises:
        ConfigValidationError: On invalid YAML or a non-mapping document
    """
    try:
        with open(config_file, encoding="utf-8") as f:
            config = yaml.safe_load(f)

        if isinstance(config, dict) and list(config.keys()) == ["use"]:
            pointer_path = Path(config_file).parent / config["use"]
            logger.info(f"Config pointer: {config_file} -> {config['use']}")
            with open(pointer_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
            config_file = pointer_path

    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(f"Cannot read {config_file}: {e}") from e

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigValidationError(f"Config root must be a mapping: {config_file}")

    # Sections written with no keys mean "all defaults"
    config = {key: {} if value is None else value for key, value in config.items()}

    logger.info(f"Configuration loaded from {config_file}")
    return config


def load_config_with_env(config: dict) -> dict:
    """
    Apply environment variable overrides to config.

    Args:
        config: Base configuration dictionary

    Returns:
        Configuration with environment variables applied
    """
    for env_name, (section, key) in ENV_OVERRIDES.items():
        if env_name in os.environ:
            logger.info(f"Using {section}.{key} from environment: {env_name}")
            if config.get(section) is None:
                config[section] = {}
            config[section][key] = os.environ[env_name]
    return config


def apply_overrides(config: dict, overrides: dict[str, object]) -> dict:
    """
    Apply dotted-path overrides, skipping None values.

    Example:
        apply_overrides(config, {"policy.crop.width": 320, "source.uri": None})
    """
    for dotted, value in overrides.items():
        if value is None:
            continue
        *sections, key = dotted.split(".")
        target = config
        for section in sections:
            # An empty YAML section ("policy:") loads as None
            if target.get(section) is None:
                target[section] = {}
            target = target[section]
        target[key] = value
    return config


def load_config(config_path: str | None = None) -> dict:
    """
    Load config from file (if any) and apply environment overrides.

    Returns:
        Raw configuration dictionary (not yet validated)
    """
    config_file = find_config_file(config_path)
    config = load_config_file(config_file) if config_file else {}
    return load_config_with_env(config)
