# setup/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the proxy setup.

Handles loading settings from Pydantic model defaults, environment
variables, YAML files and command-line arguments, applying this order of
precedence (later wins):
1. Pydantic Model Defaults
2. Environment Variables (via Pydantic's BaseSettings)
3. YAML Configuration File
4. Service-specific YAML files in config_files/
5. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .config_models import AppSettings

module_logger = logging.getLogger(__name__)

CONFIG_DIR = "config_files"
SERVICES = ("nginx", "certbot")

# CLI argument name -> (settings section or None for top level, field name)
CLI_ARGUMENT_MAP = {
    "domain": (None, "domain"),
    "email": (None, "email"),
    "interactive": (None, "interactive"),
    "resume": (None, "resume"),
    "site_name": ("nginx", "site_name"),
    "upstream_port": ("nginx", "upstream_port"),
    "staging": ("certbot", "staging"),
}


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates `source` in place with values from `overrides`.
    Nested dictionaries are merged; None values never replace existing keys.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def _load_yaml_dict(
    path: Path, logger_to_use: logging.Logger
) -> Optional[Dict[str, Any]]:
    """Read a YAML mapping; None when absent, unreadable or not a mapping."""
    if not path.is_file():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(f"Could not parse YAML config file '{path}': {e}.")
        return None
    except IOError as e:
        logger_to_use.warning(f"Could not read config file '{path}': {e}.")
        return None
    if yaml_data is None:
        return None
    if not isinstance(yaml_data, dict):
        logger_to_use.warning(
            f"Config file '{path}' does not contain a valid YAML dictionary. Ignoring."
        )
        return None
    return yaml_data


def load_service_config(
    service_name: str,
    config_root: Path,
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Loads config_files/<service_name>.yaml below config_root, if present.
    """
    logger_to_use = current_logger if current_logger else module_logger
    service_config_path = config_root / CONFIG_DIR / f"{service_name}.yaml"
    service_config = _load_yaml_dict(service_config_path, logger_to_use)
    if service_config is None:
        logger_to_use.debug(
            f"No service-specific config for '{service_name}' at {service_config_path}."
        )
        return {}
    logger_to_use.info(
        f"Loaded configuration for {service_name} from {service_config_path}"
    )
    return service_config


def cli_overrides(cli_args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed CLI arguments into a nested settings dictionary."""
    overrides: Dict[str, Any] = {}
    for cli_key, cli_value in vars(cli_args).items():
        if cli_value is None or cli_key not in CLI_ARGUMENT_MAP:
            continue
        section, field_name = CLI_ARGUMENT_MAP[cli_key]
        if section is None:
            overrides[field_name] = cli_value
        else:
            overrides.setdefault(section, {})[field_name] = cli_value
    return overrides


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: str = "config.yaml",
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads application settings with the precedence described in the module
    docstring.

    Args:
        cli_args: Parsed command-line arguments (from argparse).
        config_file_path: Path to the YAML configuration file. Its directory
            is also searched for config_files/<service>.yaml.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        SystemExit: The merged configuration does not validate.
    """
    logger_to_use = current_logger if current_logger else module_logger

    # Model defaults < .env < environment variables.
    current_values_dict = AppSettings().model_dump(exclude_defaults=False)

    yaml_config_path = Path(config_file_path)
    yaml_data = _load_yaml_dict(yaml_config_path, logger_to_use)
    if yaml_data:
        current_values_dict = _deep_update(current_values_dict, yaml_data)
        logger_to_use.info(f"Loaded main configuration from {yaml_config_path}")
    else:
        logger_to_use.info(
            f"Configuration file '{yaml_config_path}' not found or empty. "
            "Using defaults, environment variables, and CLI args."
        )

    config_root = yaml_config_path.resolve().parent
    for service in SERVICES:
        service_config = load_service_config(service, config_root, logger_to_use)
        if service_config:
            current_values_dict[service] = _deep_update(
                current_values_dict.get(service) or {}, service_config
            )

    if cli_args is not None:
        current_values_dict = _deep_update(
            current_values_dict, cli_overrides(cli_args)
        )

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    logger_to_use.debug("Successfully loaded and validated application settings")
    return final_settings
