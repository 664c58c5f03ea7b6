"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, ValidationError, handle_config_error
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

# This global variable will hold the single instance of the loaded AppConfig.
_CONFIG: Optional[AppConfig] = None

# Defines the default path to the main configuration file, relative to this script's location.
# This can be programmatically overridden (e.g., in tests or by the CLI main.py)
# to load a different configuration.
_DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"
_CONFIG_FILE_PATH = _DEFAULT_CONFIG_FILE_PATH


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Args:
        config_path: Path to the config.toml file

    Note:
        The cached configuration is dropped so the next get_config()
        reads the new file.
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Parse config.toml into raw section tables.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file is not valid TOML
    """
    logger.info(f"Reading proflaunch configuration from: {config_path}")
    if not config_path.is_file():
        raise FileNotFoundError(f"proflaunch configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValidationError(
                f"{config_path} is not valid TOML: {e}",
                field_name="config",
                value=str(config_path),
            ) from e


def _load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the application configuration from TOML.

    A missing file at the default location yields the built-in defaults, so
    the package works when installed without its conf/ directory. A missing
    file that was explicitly requested is an error.

    Raises:
        FileNotFoundError: If an explicitly configured file is missing
        ValidationError: If the file is malformed or fails validation
    """
    if config_path == _DEFAULT_CONFIG_FILE_PATH and not config_path.exists():
        logger.info(f"No configuration file at {config_path}, using defaults")
        return AppConfig()

    try:
        config_data = _read_config_file(config_path)
        app_config = validate_app_config(config_data)
        logger.info(f"Successfully loaded configuration from {config_path}")
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """
    Check if configuration has been loaded and cached.
    """
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "install_root": _CONFIG.tools.install_root if _CONFIG else None,
        "log_level": _CONFIG.logging.level if _CONFIG else None,
    }
