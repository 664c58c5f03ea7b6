"""
Data models for the profiling launcher.

Configuration Models:
- Launcher options applied to each target
- Profiling tool lookup settings
- Logging settings

Runtime Models:
- Executable architectures and the supported subset
- Session lifecycle states
- Prepared launch commands
- Helper command results and session completion events
"""

# Configuration models
from .config import AppConfig, LauncherConfig, LoggingConfig, ToolsConfig

# Runtime models
from .runtime import (
    SUPPORTED_ARCHITECTURES,
    Architecture,
    CommandResult,
    LaunchCommand,
    SessionResult,
    SessionState,
)

__all__ = [
    # Configuration
    "AppConfig",
    "LauncherConfig",
    "LoggingConfig",
    "ToolsConfig",
    # Runtime
    "SUPPORTED_ARCHITECTURES",
    "Architecture",
    "CommandResult",
    "LaunchCommand",
    "SessionResult",
    "SessionState",
]
