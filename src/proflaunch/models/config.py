"""
Configuration data models.

This module contains the configuration structures for the launcher behavior,
the profiler tool lookup and logging, loaded from `config.toml`.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class LauncherConfig:
    """
    Options applied to every profiled target, loaded from `[launcher]`.
    """

    # Ask the loader to keep the console open after a normal exit.
    wait_on_normal_exit: bool = False
    # Ask the loader to keep the console open after an abnormal exit.
    wait_on_abnormal_exit: bool = False
    # Directory holding proflaun.py and the VsPyProf modules. None means the package directory.
    assets_dir: Optional[str] = None


@dataclass
class ToolsConfig:
    """
    Where to find the profiling tool suite, loaded from `[tools]`.
    """

    # IDE install directory (e.g. ".../Common7/IDE"). None falls back to DevEnvDir.
    install_root: Optional[str] = None
    # Long-lived sampling monitor executable name.
    perf_monitor: str = "VSPerfMon.exe"
    # One-shot control tool executable name.
    perf_cmd: str = "VSPerfCmd.exe"


@dataclass
class LoggingConfig:
    """
    Logging settings, loaded from `[logging]`.
    """

    level: str = "INFO"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    launcher: LauncherConfig = field(default_factory=LauncherConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
