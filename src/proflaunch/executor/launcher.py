"""
Target process launching.

This module builds the command line that runs a target executable through the
profiler loader script, prepares its environment, and starts it as a visible
child process whose standard streams are left alone.
"""

import logging
import os
import subprocess
from typing import Dict, Mapping, Optional

from ..models.config import LauncherConfig
from ..models.runtime import Architecture, LaunchCommand
from ..system.commands import quote_single_argument
from ..system.tools import AssetLocator
from ..validation import LaunchFailedError

logger = logging.getLogger(__name__)

WAIT_ON_NORMAL_EXIT_ENV = "VSPYPROF_WAIT_ON_NORMAL_EXIT"
WAIT_ON_ABNORMAL_EXIT_ENV = "VSPYPROF_WAIT_ON_ABNORMAL_EXIT"

_SEPARATORS = "".join(sep for sep in (os.sep, os.altsep, "/", "\\") if sep)


def normalize_working_directory(directory: Optional[str]) -> str:
    """Trim trailing path separators; an empty directory means ".".

    A bare root such as "/" is kept as is.

    Examples:
        >>> normalize_working_directory("")
        '.'
        >>> normalize_working_directory("/work/project/")
        '/work/project'
    """
    if not directory:
        return "."
    trimmed = directory.rstrip(_SEPARATORS)
    if not trimmed:
        return directory[0]
    if len(trimmed) == 2 and trimmed[1] == ":":
        # "C:" alone would mean the drive's current directory
        return directory[:3]
    return trimmed


def _set_env(env: Dict[str, str], key: str, value: str) -> None:
    # Windows environment names are case-insensitive; never send two spellings.
    if os.name == "nt":
        for existing in [k for k in env if k.upper() == key.upper() and k != key]:
            del env[existing]
    env[key] = value


class ProcessLauncher:
    """
    Prepares and starts the profiled target process.

    The command and environment are computed from immutable inputs, so they
    can be inspected before anything is started.
    """

    def __init__(
        self,
        executable: str,
        arguments: str,
        working_dir: str,
        arch: Architecture,
        assets: AssetLocator,
        options: LauncherConfig,
        env_overrides: Optional[Mapping[str, str]] = None,
    ):
        """
        Args:
            executable: Target executable path
            arguments: Caller's argument string, passed through verbatim
            working_dir: Already normalized working directory
            arch: Architecture of the target, selects the instrumentation module
            assets: Locator for the loader script and modules
            options: Launcher options (wait-on-exit flags)
            env_overrides: Variables layered on top of everything else
        """
        self.executable = executable
        self.arguments = arguments or ""
        self.working_dir = working_dir
        self.arch = arch
        self.assets = assets
        self.options = options
        self.env_overrides = dict(env_overrides or {})

    def build_command(self) -> LaunchCommand:
        """
        Compose ``exe "loader" "module" "dir" args``.

        Returns:
            The LaunchCommand for the target
        """
        parts = [
            quote_single_argument(str(self.assets.loader_script())),
            quote_single_argument(str(self.assets.instrumentation_module(self.arch))),
            quote_single_argument(self.working_dir),
        ]
        if self.arguments:
            parts.append(self.arguments)
        return LaunchCommand(self.executable, " ".join(parts))

    def build_environment(self, base_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Build the complete environment for the target.

        Args:
            base_env: Inherited environment, defaults to a copy of os.environ

        Returns:
            A new mapping; neither os.environ nor ``base_env`` is modified
        """
        env = dict(os.environ if base_env is None else base_env)
        if self.options.wait_on_normal_exit:
            _set_env(env, WAIT_ON_NORMAL_EXIT_ENV, "1")
        if self.options.wait_on_abnormal_exit:
            _set_env(env, WAIT_ON_ABNORMAL_EXIT_ENV, "1")
        for key, value in self.env_overrides.items():
            _set_env(env, key, value)
        return env

    def start(self) -> subprocess.Popen:
        """
        Start the target with a visible window and inherited standard streams.

        Returns:
            The started subprocess.Popen object

        Raises:
            LaunchFailedError: If the OS refuses to create the process
        """
        command = self.build_command()
        env = self.build_environment()
        logger.info(f"Starting profiled process: {command.command_line} (cwd: {self.working_dir})")

        try:
            process = subprocess.Popen(
                command.to_popen_args(),
                cwd=self.working_dir,
                env=env,
            )
        except (OSError, ValueError) as e:
            logger.error(f"Unable to start {self.executable}: {type(e).__name__}: {e}")
            raise LaunchFailedError(f"Unable to start {self.executable}: {e}") from e

        logger.info(f"Profiled process started with PID: {process.pid}")
        return process
