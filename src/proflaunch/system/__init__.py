"""
System interaction utilities for launching profiled processes.

This module provides:

- Executable header inspection to determine the target architecture
- Windows-style argument quoting and helper command execution
- Hidden, detached starting of background profiler tools
- Profiler tool and loader asset location
"""

# Executable inspection
from .binary import detect_architecture, probe_architecture

# Command execution
from .commands import (
    join_arguments,
    quote_single_argument,
    run_hidden_and_capture,
    start_hidden_detached,
)

# Tool and asset location
from .tools import (
    AssetLocator,
    ConfigInstallRoot,
    InstallRootProvider,
    StaticInstallRoot,
    ToolPathResolver,
)

__all__ = [
    # Executable inspection
    "detect_architecture",
    "probe_architecture",
    # Commands
    "join_arguments",
    "quote_single_argument",
    "run_hidden_and_capture",
    "start_hidden_detached",
    # Tools
    "AssetLocator",
    "ConfigInstallRoot",
    "InstallRootProvider",
    "StaticInstallRoot",
    "ToolPathResolver",
]
