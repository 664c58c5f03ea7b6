"""
proflaunch: Launch processes under the Visual Studio sampling profiler.

A profiling session arms the performance monitor, starts the target through
the proflaun.py loader with the matching VsPyProf module, and shuts the
monitor down again once the target exits, however it exits.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Error taxonomy, input validation and error reporting
- system: Executable inspection, command execution and tool lookup
- executor: Target command line and environment construction
- monitoring: Performance monitor arm/disarm control
- orchestration: Session lifecycle, exit watching and signal handling
- cli: Command-line interface

Usage:
    From command line:
        proflaunch run -o trace.vsp python.exe script.py

    Programmatically:
        from proflaunch import ProfileSession
        with ProfileSession("python.exe", "script.py", "C:/work") as session:
            session.start_profiling("C:/traces/run.vsp")
            result = session.wait()
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .orchestration import ExitSubscription, ProfileSession
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    Architecture,
    LauncherConfig,
    LaunchCommand,
    SessionResult,
    SessionState,
    ToolsConfig,
)

# Errors and reporting
from .validation import (
    ErrorContext,
    ErrorHandler,
    InvalidSessionStateError,
    LaunchFailedError,
    MonitorCommandError,
    MonitorStartFailedError,
    MonitorStopFailedError,
    ProfilingError,
    ToolsNotFoundError,
    UnsupportedArchitectureError,
    ValidationError,
    get_error_handler,
)

# System utilities
from .system import (
    StaticInstallRoot,
    detect_architecture,
    probe_architecture,
    quote_single_argument,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "ProfileSession",
    "ExitSubscription",
    "main_cli",
    # Models
    "AppConfig",
    "Architecture",
    "LauncherConfig",
    "LaunchCommand",
    "SessionResult",
    "SessionState",
    "ToolsConfig",
    # Errors and reporting
    "ErrorContext",
    "ErrorHandler",
    "InvalidSessionStateError",
    "LaunchFailedError",
    "MonitorCommandError",
    "MonitorStartFailedError",
    "MonitorStopFailedError",
    "ProfilingError",
    "ToolsNotFoundError",
    "UnsupportedArchitectureError",
    "ValidationError",
    "get_error_handler",
    # System utilities
    "StaticInstallRoot",
    "detect_architecture",
    "probe_architecture",
    "quote_single_argument",
]
