"""
The public profiling session.

A ProfileSession runs one executable under the sampling profiler::

    session = ProfileSession("python.exe", "script.py --flag", "C:/work")
    session.add_exit_listener(lambda result: print(result.exit_code))
    session.start_profiling("C:/traces/run.vsp")
    ...
    session.wait()
    session.dispose()

The architecture is probed in the constructor, so an unsupported target is
rejected before any process exists.
"""

import logging
import uuid
from concurrent.futures import Future
from pathlib import Path
from typing import Mapping, Optional, Union

from ..config import get_config
from ..executor.launcher import ProcessLauncher, normalize_working_directory
from ..models.config import LauncherConfig, ToolsConfig
from ..models.runtime import Architecture, LaunchCommand, SessionResult, SessionState
from ..monitoring.controller import (
    BackgroundStarter,
    CommandRunner,
    ProfilerMonitorController,
)
from ..system.binary import probe_architecture
from ..system.commands import run_hidden_and_capture, start_hidden_detached
from ..system.tools import AssetLocator, ConfigInstallRoot, InstallRootProvider, ToolPathResolver
from ..validation import ErrorHandler, get_error_handler
from .coordinator import ExitListener, ExitSubscription, LifecycleCoordinator
from .process_manager import TargetProcessManager
from .shared_state import RuntimeState, SessionConfig, TimeoutConstants

logger = logging.getLogger(__name__)


class ProfileSession:
    """
    One profiling run of one target executable.

    This class wires the launcher, the monitor controller, the target process
    manager and the lifecycle coordinator together and exposes the public
    operations. It is not safe to call start_profiling/stop_profiling
    concurrently on the same instance.
    """

    def __init__(
        self,
        executable: str,
        arguments: str = "",
        working_dir: Optional[str] = "",
        env_vars: Optional[Mapping[str, str]] = None,
        *,
        options: Optional[LauncherConfig] = None,
        tools: Optional[ToolsConfig] = None,
        install_root_provider: Optional[InstallRootProvider] = None,
        error_handler: Optional[ErrorHandler] = None,
        assets_dir: Optional[Union[str, Path]] = None,
        run_command: CommandRunner = run_hidden_and_capture,
        start_background: BackgroundStarter = start_hidden_detached,
    ):
        """
        Args:
            executable: Path of the target executable
            arguments: Argument string passed through to the target verbatim
            working_dir: Target working directory; empty means "."
            env_vars: Environment overrides, applied last
            options: Launcher options, defaults to the configured ones
            tools: Tool settings, defaults to the configured ones
            install_root_provider: Source of the IDE install root,
                defaults to the configured root or DevEnvDir
            error_handler: Receives failures from the exit path,
                defaults to the global handler
            assets_dir: Directory of proflaun.py and the VsPyProf modules
            run_command: Helper runner used for the control tool
            start_background: Starter used for the monitor

        Raises:
            UnsupportedArchitectureError: If the target is not x86 or amd64
        """
        arch = probe_architecture(executable)

        if options is None or tools is None:
            app_config = get_config()
            options = options or app_config.launcher
            tools = tools or app_config.tools

        self.session_id = uuid.uuid4().hex[:12]
        self.config = SessionConfig(
            executable=executable,
            arguments=arguments or "",
            working_dir=normalize_working_directory(working_dir),
            arch=arch,
            env_overrides=dict(env_vars or {}),
            launcher=options,
            tools=tools,
        )

        # Shared state across all components
        self.state = RuntimeState()
        self.error_handler = error_handler or get_error_handler()

        assets = AssetLocator(assets_dir or options.assets_dir)
        self.launcher = ProcessLauncher(
            executable=self.config.executable,
            arguments=self.config.arguments,
            working_dir=self.config.working_dir,
            arch=arch,
            assets=assets,
            options=options,
            env_overrides=self.config.env_overrides,
        )
        resolver = ToolPathResolver(install_root_provider or ConfigInstallRoot(tools), tools)
        self.monitor = ProfilerMonitorController(
            resolver,
            arch,
            run_command=run_command,
            start_background=start_background,
        )
        self.process_manager = TargetProcessManager(self.state)
        self.coordinator = LifecycleCoordinator(
            state=self.state,
            monitor=self.monitor,
            process_manager=self.process_manager,
            launcher=self.launcher,
            error_handler=self.error_handler,
            session_id=self.session_id,
        )
        logger.debug(
            f"[{self.session_id}] Created session for {executable} ({arch.value}) in {self.config.working_dir}"
        )

    # --- Read-only views -----------------------------------------------------

    @property
    def executable(self) -> str:
        return self.config.executable

    @property
    def arguments(self) -> str:
        return self.config.arguments

    @property
    def working_dir(self) -> str:
        return self.config.working_dir

    @property
    def architecture(self) -> Architecture:
        return self.config.arch

    @property
    def session_state(self) -> SessionState:
        return self.state.state

    @property
    def command(self) -> LaunchCommand:
        """The command line the target will be started with."""
        return self.launcher.build_command()

    @property
    def pid(self) -> Optional[int]:
        process = self.state.target_process
        return process.pid if process is not None else None

    @property
    def exit_code(self) -> Optional[int]:
        return self.state.exit_code

    @property
    def completion(self) -> "Future[SessionResult]":
        """Resolves with the SessionResult once the target has exited and the monitor was disarmed."""
        return self.coordinator.completion

    # --- Operations ----------------------------------------------------------

    def start_profiling(self, output_path: Union[str, Path]) -> None:
        """
        Arm the monitor to write ``output_path`` and start the target.

        Returns as soon as the target is running.

        Raises:
            InvalidSessionStateError: If already started or disposed
            ToolsNotFoundError: If the profiler tools cannot be located
            MonitorStartFailedError: If the monitor does not become ready;
                the target is not started
            LaunchFailedError: If the target cannot be started; the monitor
                has been disarmed again
        """
        self.coordinator.start(str(output_path))

    def stop_profiling(self) -> None:
        """
        Kill the target without a grace period.

        Disarming and completion follow through the normal exit path. Called
        while start_profiling() is still arming, it prevents the launch.
        """
        self.coordinator.stop()

    def add_exit_listener(self, listener: ExitListener) -> ExitSubscription:
        """
        Call ``listener(result)`` once the session completes.

        Listeners run on a background thread; exceptions they raise are
        reported to the error handler and do not affect other listeners.
        """
        return self.coordinator.subscribe(listener)

    def wait(self, timeout: Optional[float] = None) -> SessionResult:
        """
        Block until the session completes.

        Waits in short slices so signal handlers keep running on the main
        thread. Once completion has fired, the exit watcher is given a short
        bounded join so it has finished by the time this returns.

        Raises:
            concurrent.futures.TimeoutError: If ``timeout`` elapses first
        """
        if timeout is not None:
            result = self.completion.result(timeout)
        else:
            while True:
                try:
                    result = self.completion.result(TimeoutConstants.COMPLETION_POLL_INTERVAL)
                    break
                except TimeoutError:
                    continue
        if not self.process_manager.join_watcher(TimeoutConstants.WATCHER_JOIN_TIMEOUT):
            logger.debug(f"[{self.session_id}] Exit watcher still finishing after completion")
        return result

    def is_running(self) -> bool:
        return self.process_manager.is_running()

    def dispose(self) -> None:
        """
        Release the process handle wrappers.

        This does not stop the target or disarm the monitor; call
        stop_profiling() first for a deterministic teardown.
        """
        with self.state.lock:
            if self.state.disposed:
                return
            self.state.disposed = True
            self.process_manager.release()
        logger.debug(f"[{self.session_id}] Session disposed")

    def __enter__(self) -> "ProfileSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"ProfileSession(id={self.session_id!r}, executable={self.executable!r}, "
            f"arch={self.architecture.value!r}, state={self.session_state.value!r})"
        )
