"""
Exception types and error management.

This module provides the profiling error taxonomy together with the
consistent-logging helpers used across the application.
"""

import logging
import os
import sys
from enum import Enum
from typing import Any, List, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    Used for configuration values and command-line input.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class ProfilingError(Exception):
    """Base class for every failure of a profiling session."""


class UnsupportedArchitectureError(ProfilingError):
    """The target executable is not an x86 or amd64 image."""

    def __init__(self, architecture: Any, path: Optional[str] = None):
        super().__init__(f"Unsupported architecture: {getattr(architecture, 'value', architecture)}")
        self.architecture = architecture
        self.path = path


class LaunchFailedError(ProfilingError):
    """The OS refused to start the target process."""


class ToolsNotFoundError(ProfilingError):
    """The profiling tool directory could not be derived."""


class InvalidSessionStateError(ProfilingError):
    """An operation was requested in a state that does not allow it."""


class MonitorCommandError(ProfilingError):
    """
    A profiler helper invocation exited with a non-zero code.

    The message embeds the helper's captured output verbatim so the failure
    can be diagnosed from the message alone.
    """

    def __init__(self, summary: str, returncode: int,
                 stdout_lines: Optional[List[str]] = None,
                 stderr_lines: Optional[List[str]] = None):
        self.summary = summary
        self.returncode = returncode
        self.stdout_lines = list(stdout_lines or [])
        self.stderr_lines = list(stderr_lines or [])
        super().__init__(format_command_failure(summary, self.stdout_lines, self.stderr_lines))


class MonitorStartFailedError(MonitorCommandError):
    """The sampling monitor did not become ready."""


class MonitorStopFailedError(MonitorCommandError):
    """The sampling monitor could not be shut down."""


def format_command_failure(summary: str, stdout_lines: List[str], stderr_lines: List[str],
                           newline: Optional[str] = None) -> str:
    """
    Render a helper failure as ``summary``, then its output and error blocks.

    Args:
        summary: First line of the message
        stdout_lines: Captured standard output lines
        stderr_lines: Captured standard error lines
        newline: Line separator, defaults to the platform separator

    Returns:
        The formatted message
    """
    nl = newline if newline is not None else os.linesep
    return "{summary}{nl}{nl}Output:{nl}{out}{nl}{nl}Error:{nl}{err}".format(
        summary=summary,
        nl=nl,
        out=nl.join(stdout_lines),
        err=nl.join(stderr_lines),
    )


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    # Handle both enum and string severity values
    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle CLI-related errors by logging and exiting."""
    exit_code = kwargs.pop('exit_code', 1)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
