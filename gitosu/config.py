#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Optional, Tuple

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("gitosu")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. GITOSU_CONFIG environment variable
    2. ~/.gitosu/ directory
    """
    if 'GITOSU_CONFIG' in os.environ:
        path = Path(os.environ['GITOSU_CONFIG'])
        if path.exists():
            return path
        logger.warning(f"GITOSU_CONFIG points to missing file {path}, ignoring")

    gitosu_dir = Path.home() / '.gitosu'
    for filename in CONFIG_FILENAMES:
        path = gitosu_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path
    return gitosu_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "exports_directory": "",       # Empty means current working directory
            "repositories_directory": "",  # Empty means current working directory
            "keep_latest_osz": False,      # Commit the latest archive next to map/
            "archive_extension": ".osz",
        },
        "watch": {
            "recursive": False,
        },
        "git": {
            "timeout_seconds": 120,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def _read_config_file(config_path: Path) -> dict:
    """Parse a config file according to its suffix."""
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ['.yaml', '.yml']:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
            if not isinstance(file_config, dict):
                raise ValueError("top level must be a mapping")
            config = merge_configs(config, file_config)
            logger.debug(f"Loaded configuration from {config_path}")
        except (OSError, ValueError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: GITOSU_SECTION_KEY
    For example: GITOSU_GENERAL_KEEP_LATEST_OSZ=true
    """
    env_prefix = "GITOSU_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'GITOSU_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            # If we are at the end of the env var, we have found the key to set
            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            # Otherwise, we descend into the dictionary
            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def configure_logging(config, debug: bool = False) -> None:
    """Apply the logging section (or --debug) to the root logger."""
    if debug:
        level = logging.DEBUG
        fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    else:
        level_name = str(config.get('logging', {}).get('level', 'INFO')).upper()
        level = getattr(logging, level_name, logging.INFO)
        fmt = config.get('logging', {}).get('format', '%(levelname)s: %(message)s')

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        handler.setFormatter(logging.Formatter(fmt))


def _resolve_directory(value: Optional[str], label: str) -> Path:
    if not value:
        return Path.cwd()
    path = Path(value).expanduser()
    if not path.exists():
        raise ConfigError(f"{label} directory doesn't exist: {path}")
    if not path.is_dir():
        raise ConfigError(f"{label} path is not a directory: {path}")
    return path


def resolve_repositories_directory(config, repositories: Optional[str] = None) -> Path:
    """Resolve only the repositories directory (see resolve_directories)."""
    general = config.get('general', {})
    return _resolve_directory(
        repositories or general.get('repositories_directory'), "Repositories"
    )


def resolve_directories(
    config,
    exports: Optional[str] = None,
    repositories: Optional[str] = None,
) -> Tuple[Path, Path]:
    """
    Resolve the exports and repositories directories.

    Explicit arguments win over the config file; empty values fall back to
    the current working directory.

    Raises:
        ConfigError: if a configured directory does not exist
    """
    general = config.get('general', {})
    exports_dir = _resolve_directory(exports or general.get('exports_directory'), "Exports")
    repos_dir = resolve_repositories_directory(config, repositories)
    return exports_dir, repos_dir
