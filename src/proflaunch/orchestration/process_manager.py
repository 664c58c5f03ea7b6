"""
Process management for the orchestration module.

This module owns the profiled target process: starting it, watching for its
exit on a background thread, and killing it on request.
"""

import logging
import subprocess
import threading
from typing import Callable, Optional

import psutil

from ..executor.launcher import ProcessLauncher
from .shared_state import RuntimeState

logger = logging.getLogger(__name__)

ExitCallback = Callable[[Optional[int]], None]


class TargetProcessManager:
    """
    Lifecycle management for the single target process of a session.
    """

    def __init__(self, state: RuntimeState):
        self.state = state

    def start(self, launcher: ProcessLauncher, on_exit: ExitCallback) -> subprocess.Popen:
        """
        Start the target and begin watching for its exit.

        The watcher thread is running before this returns; because it waits
        on the process itself, an exit that happens before the thread is
        scheduled is still observed.

        Args:
            launcher: Prepared launcher for the target
            on_exit: Called once, on the watcher thread, with the exit code

        Returns:
            The started subprocess.Popen object

        Raises:
            LaunchFailedError: If the process cannot be created
        """
        process = launcher.start()
        self.state.target_process = process
        self.state.target_handle = self._open_handle(process.pid)

        watcher = threading.Thread(
            target=self._watch,
            args=(process, on_exit),
            name=f"ProfiledProcessExit-{process.pid}",
            daemon=True,
        )
        self.state.watcher_thread = watcher
        watcher.start()
        return process

    def _open_handle(self, pid: int) -> Optional[psutil.Process]:
        """Open a psutil handle now, so a later kill cannot hit a reused PID."""
        try:
            return psutil.Process(pid)
        except psutil.NoSuchProcess:
            logger.debug(f"Process {pid} exited before a handle could be opened")
        except psutil.AccessDenied:
            logger.warning(f"Access denied opening a handle to process {pid}")
        return None

    def _watch(self, process: subprocess.Popen, on_exit: ExitCallback) -> None:
        try:
            exit_code = process.wait()
        except Exception as e:
            logger.error(f"Error waiting for profiled process {process.pid}: {e}", exc_info=True)
            exit_code = process.returncode

        self.state.exit_code = exit_code
        logger.info(f"Profiled process {process.pid} exited with code: {exit_code}")

        try:
            on_exit(exit_code)
        except Exception as e:
            # Nothing above this frame can handle it.
            logger.error(f"Unhandled error in exit handler for process {process.pid}: {e}", exc_info=True)

    def kill(self) -> bool:
        """
        Kill the target immediately, without a grace period.

        A target that is already gone is not an error.

        Returns:
            True if the kill reached a live process, False if it had already exited
        """
        process = self.state.target_process
        if process is None:
            return False

        handle = self.state.target_handle
        if handle is not None:
            try:
                if handle.status() in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD):
                    logger.debug(f"Profiled process PID {handle.pid} already exited")
                    return False
                handle.kill()
                logger.info(f"Killed profiled process PID {handle.pid}")
                return True
            except psutil.NoSuchProcess:
                logger.debug(f"Profiled process PID {handle.pid} already terminated")
                return False
            except psutil.AccessDenied:
                logger.warning(f"Access denied killing PID {handle.pid}, falling back to Popen.kill")

        if process.poll() is not None:
            logger.debug(f"Profiled process PID {process.pid} already exited")
            return False
        try:
            process.kill()
            logger.info(f"Killed profiled process PID {process.pid}")
            return True
        except ProcessLookupError:
            logger.debug(f"Profiled process PID {process.pid} already terminated")
            return False

    def is_running(self) -> bool:
        """Safely check whether the target is alive and not a zombie."""
        process = self.state.target_process
        if process is None or process.poll() is not None:
            return False
        handle = self.state.target_handle
        if handle is None:
            return True
        try:
            if not handle.is_running():
                return False
            return handle.status() not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return False

    def join_watcher(self, timeout: Optional[float] = None) -> bool:
        """Wait for the watcher thread; True if it has finished."""
        watcher = self.state.watcher_thread
        if watcher is None:
            return True
        if watcher is threading.current_thread():
            return False
        watcher.join(timeout)
        return not watcher.is_alive()

    def release(self) -> None:
        """
        Drop this manager's handle wrappers.

        The target keeps running and the watcher thread keeps its own
        reference, so its exit is still reported.
        """
        self.state.target_handle = None
        self.state.target_process = None
