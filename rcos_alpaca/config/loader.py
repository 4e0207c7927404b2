"""
Configuration loader for loading and validating config.json.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import AppConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from JSON file.

    Args:
        path: Path to config.json file. If None, looks for config.json in current directory.

    Returns:
        Validated AppConfig instance.

    Raises:
        ConfigurationError: If config file is invalid.
    """
    config_path = Path(path or DEFAULT_CONFIG_FILE)

    if not config_path.exists():
        logger.info(
            f"Config file not found: {config_path}. Creating with default configuration."
        )
        config = AppConfig()
        try:
            save_config(config, str(config_path))
        except ConfigurationError as e:
            logger.warning(f"Failed to create default config file: {e}")
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {config_path}: {e}") from e

    # Comment keys are allowed at the top level only
    config_dict = {k: v for k, v in config_dict.items() if not k.startswith("_")}

    try:
        config = AppConfig(**config_dict)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field = " -> ".join(str(x) for x in error["loc"])
            errors.append(f"  - {field}: {error['msg']}")

        error_message = "Configuration validation failed:\n" + "\n".join(errors)
        raise ConfigurationError(error_message) from e

    logger.info(f"Configuration loaded from {config_path}")
    return config


def save_config(config: AppConfig, path: Optional[str] = None) -> None:
    """
    Save configuration to JSON file.

    Args:
        config: AppConfig instance to save.
        path: Path to config.json file. If None, uses "config.json" in current directory.

    Raises:
        ConfigurationError: If config file cannot be written.
    """
    config_path = Path(path or DEFAULT_CONFIG_FILE)

    save_data = {
        "_comment": "RCOS TCC Alpaca Driver Configuration",
        **config.model_dump(),
    }

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(save_data, f, indent=2)
    except OSError as e:
        raise ConfigurationError(f"Failed to write {config_path}: {e}") from e

    logger.info(f"Configuration saved to {config_path}")
