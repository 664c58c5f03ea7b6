"""
Runtime data models.

This module contains data structures used during a profiling run, including
the detected architecture, the session state machine, prepared command lines
and the results of helper and target processes.
"""

import os
import shlex
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class Architecture(Enum):
    """Processor architecture of an executable image."""

    X86 = "x86"
    AMD64 = "amd64"
    ARM = "arm"
    ARM64 = "arm64"
    IA64 = "ia64"
    UNKNOWN = "unknown"


# Only these can be profiled; the instrumentation modules exist for no other.
SUPPORTED_ARCHITECTURES = frozenset({Architecture.X86, Architecture.AMD64})


class SessionState(Enum):
    """Lifecycle states of a profiling session."""

    CREATED = "created"
    ARMED = "armed"
    RUNNING = "running"
    STOPPING = "stopping"
    EXITED = "exited"
    FAILED = "failed"


@dataclass(frozen=True)
class LaunchCommand:
    """
    An executable plus a Windows-style argument string.

    The argument string is kept opaque: callers may hand in their own quoting
    and it is passed through untouched.
    """

    executable: str
    arguments: str = ""

    @property
    def command_line(self) -> str:
        """The full command line as the target process sees it."""
        head = subprocess.list2cmdline([self.executable])
        if not self.arguments:
            return head
        return f"{head} {self.arguments}"

    def to_popen_args(self, windows: Optional[bool] = None) -> Union[str, List[str]]:
        """
        Convert to the first argument of ``subprocess.Popen``.

        Windows takes the command line verbatim; elsewhere the argument
        string is split with POSIX rules.
        """
        if windows is None:
            windows = os.name == "nt"
        if windows:
            return self.command_line
        return [self.executable, *shlex.split(self.arguments)]


@dataclass
class CommandResult:
    """Exit code and captured output of a helper tool invocation."""

    returncode: int
    stdout_lines: List[str] = field(default_factory=list)
    stderr_lines: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class SessionResult:
    """
    Completion event delivered once per session after the target exits.
    """

    # Exit code of the target process (negative signal number on POSIX kills).
    exit_code: Optional[int]
    # True when the exit followed a stop_profiling() request.
    forced: bool = False
    # The failure raised while shutting the monitor down, if any.
    disarm_error: Optional[Exception] = None

    @property
    def disarmed(self) -> bool:
        return self.disarm_error is None
