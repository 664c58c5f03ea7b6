"""
Configuration validation utilities.

This module turns the raw `[launcher]`, `[tools]` and `[logging]` tables into
validated configuration dataclasses.
"""

import logging
from typing import Any, Dict

from ..models.config import AppConfig, LauncherConfig, LoggingConfig, ToolsConfig
from ..validation import (
    ValidationError,
    validate_bool,
    validate_enum_choice,
    validate_executable_name,
    validate_optional_string,
    validate_path_exists,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _require_table(data: Any, section: str) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(
            f"[{section}] must be a table",
            field_name=section,
            value=data,
        )
    return data


def validate_launcher_config(launcher_data: Dict[str, Any]) -> LauncherConfig:
    """
    Validate and create a LauncherConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    launcher_data = _require_table(launcher_data, "launcher")

    wait_on_normal_exit = validate_bool(
        launcher_data.get("wait_on_normal_exit", False),
        field_name="launcher.wait_on_normal_exit",
    )
    wait_on_abnormal_exit = validate_bool(
        launcher_data.get("wait_on_abnormal_exit", False),
        field_name="launcher.wait_on_abnormal_exit",
    )
    assets_dir = validate_optional_string(
        launcher_data.get("assets_dir"),
        field_name="launcher.assets_dir",
    )
    if assets_dir is not None:
        assets_dir = validate_path_exists(assets_dir, field_name="launcher.assets_dir")

    return LauncherConfig(
        wait_on_normal_exit=wait_on_normal_exit,
        wait_on_abnormal_exit=wait_on_abnormal_exit,
        assets_dir=assets_dir,
    )


def validate_tools_config(tools_data: Dict[str, Any]) -> ToolsConfig:
    """
    Validate and create a ToolsConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    tools_data = _require_table(tools_data, "tools")

    install_root = validate_optional_string(
        tools_data.get("install_root"),
        field_name="tools.install_root",
    )
    perf_monitor = validate_executable_name(
        tools_data.get("perf_monitor", ToolsConfig.perf_monitor),
        field_name="tools.perf_monitor",
    )
    perf_cmd = validate_executable_name(
        tools_data.get("perf_cmd", ToolsConfig.perf_cmd),
        field_name="tools.perf_cmd",
    )

    return ToolsConfig(
        install_root=install_root,
        perf_monitor=perf_monitor,
        perf_cmd=perf_cmd,
    )


def validate_logging_config(logging_data: Dict[str, Any]) -> LoggingConfig:
    """
    Validate and create a LoggingConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    logging_data = _require_table(logging_data, "logging")

    level = validate_enum_choice(
        logging_data.get("level", "INFO"),
        choices=LOG_LEVELS,
        field_name="logging.level",
        case_sensitive=False,
    )
    return LoggingConfig(level=level)


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """
    Validate every section of a parsed config.toml.

    Unknown top-level sections are ignored with a warning.
    """
    known = {"launcher", "tools", "logging"}
    for section in config_data:
        if section not in known:
            logger.warning(f"Ignoring unknown configuration section [{section}]")

    return AppConfig(
        launcher=validate_launcher_config(config_data.get("launcher", {})),
        tools=validate_tools_config(config_data.get("tools", {})),
        logging=validate_logging_config(config_data.get("logging", {})),
    )
