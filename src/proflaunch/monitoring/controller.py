"""
Sampling monitor control.

The sampling monitor (VSPerfMon) is a long-lived background listener and the
control tool (VSPerfCmd) is a one-shot client to it. Arming starts the
monitor and then blocks on the control tool's ``/waitstart`` until the
monitor is listening; disarming blocks on ``/shutdown``. There is no timeout
on either wait and no retry.
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional, Union

from ..models.runtime import Architecture, CommandResult, LaunchCommand
from ..system.commands import quote_single_argument, run_hidden_and_capture, start_hidden_detached
from ..system.tools import ToolPathResolver
from ..validation import MonitorStartFailedError, MonitorStopFailedError

logger = logging.getLogger(__name__)

CommandRunner = Callable[[LaunchCommand], CommandResult]
BackgroundStarter = Callable[[LaunchCommand], subprocess.Popen]


class ProfilerMonitorController:
    """
    Arms and disarms the out-of-process sampling monitor.
    """

    def __init__(
        self,
        resolver: ToolPathResolver,
        arch: Architecture,
        run_command: CommandRunner = run_hidden_and_capture,
        start_background: BackgroundStarter = start_hidden_detached,
    ):
        """
        Args:
            resolver: Source of the tool paths
            arch: Target architecture, selects the x86 or x64 tools
            run_command: Runs a helper to completion and captures its output
            start_background: Starts the monitor without waiting for it
        """
        self.resolver = resolver
        self.arch = arch
        self._run_command = run_command
        self._start_background = start_background
        self.monitor_process: Optional[subprocess.Popen] = None

    def build_monitor_command(self, output_path: Union[str, Path]) -> LaunchCommand:
        perf_mon = self.resolver.get_perf_monitor_path(self.arch)
        return LaunchCommand(str(perf_mon), "/trace /output:" + quote_single_argument(str(output_path)))

    def build_control_command(self, action: str) -> LaunchCommand:
        perf_cmd = self.resolver.get_perf_cmd_path(self.arch)
        return LaunchCommand(str(perf_cmd), action)

    def arm(self, output_path: Union[str, Path]) -> None:
        """
        Start the monitor writing to ``output_path`` and wait until it is ready.

        Raises:
            ToolsNotFoundError: If the tool directory cannot be derived
            MonitorStartFailedError: If the monitor cannot be spawned or the
                ``/waitstart`` handshake exits non-zero
        """
        monitor_command = self.build_monitor_command(output_path)
        control_command = self.build_control_command("/waitstart")

        logger.info(f"Starting performance monitor, trace output: {output_path}")
        try:
            self.monitor_process = self._start_background(monitor_command)
        except OSError as e:
            logger.error(f"Unable to start performance monitor {monitor_command.executable}: {e}")
            raise MonitorStartFailedError(
                f"Unable to start performance monitor {monitor_command.executable}",
                returncode=-1,
                stderr_lines=[str(e)],
            ) from e

        result = self._run_command(control_command)
        if not result.succeeded:
            logger.error(f"Performance monitor handshake failed with exit code {result.returncode}")
            raise MonitorStartFailedError(
                "Starting perf cmd failed",
                returncode=result.returncode,
                stdout_lines=result.stdout_lines,
                stderr_lines=result.stderr_lines,
            )
        logger.info("Performance monitor is ready")

    def disarm(self) -> None:
        """
        Ask the monitor to shut down and wait for the control tool to finish.

        Raises:
            ToolsNotFoundError: If the tool directory cannot be derived
            MonitorStopFailedError: If ``/shutdown`` exits non-zero
        """
        control_command = self.build_control_command("/shutdown")

        logger.info("Shutting down performance monitor")
        result = self._run_command(control_command)
        if not result.succeeded:
            logger.error(f"Performance monitor shutdown failed with exit code {result.returncode}")
            raise MonitorStopFailedError(
                "Shutting down perf cmd failed",
                returncode=result.returncode,
                stdout_lines=result.stdout_lines,
                stderr_lines=result.stderr_lines,
            )

        if self.monitor_process is not None:
            returncode = self.monitor_process.poll()
            if returncode is None:
                logger.debug(f"Performance monitor PID {self.monitor_process.pid} still finishing the trace")
            else:
                logger.debug(f"Performance monitor exited with code {returncode}")
        logger.info("Performance monitor shut down")
