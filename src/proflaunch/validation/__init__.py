"""
Validation and error handling for the proflaunch package.

This module provides the profiling error taxonomy, input validation and
structured reporting for errors raised away from the caller's thread.
"""

# Core exception classes and error handling
from .exceptions import (
    ErrorSeverity,
    InvalidSessionStateError,
    LaunchFailedError,
    MonitorCommandError,
    MonitorStartFailedError,
    MonitorStopFailedError,
    ProfilingError,
    ToolsNotFoundError,
    UnsupportedArchitectureError,
    ValidationError,
    format_command_failure,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

# Structured reporting for background failures
from .error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSink,
    ErrorType,
    get_error_handler,
)

# Validation functions
from .validators import (
    validate_bool,
    validate_enum_choice,
    validate_env_assignments,
    validate_executable_name,
    validate_optional_string,
    validate_path_exists,
)

__all__ = [
    # Exceptions
    "ErrorSeverity",
    "InvalidSessionStateError",
    "LaunchFailedError",
    "MonitorCommandError",
    "MonitorStartFailedError",
    "MonitorStopFailedError",
    "ProfilingError",
    "ToolsNotFoundError",
    "UnsupportedArchitectureError",
    "ValidationError",
    "format_command_failure",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Reporting
    "ErrorContext",
    "ErrorHandler",
    "ErrorSink",
    "ErrorType",
    "get_error_handler",
    # Validators
    "validate_bool",
    "validate_enum_choice",
    "validate_env_assignments",
    "validate_executable_name",
    "validate_optional_string",
    "validate_path_exists",
]
