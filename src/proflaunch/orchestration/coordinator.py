"""
Lifecycle coordination between the sampling monitor and the target process.

State machine::

    created -> armed -> running -> stopping -> exited
                 |
                 +-> failed   (target could not be started, or stop arrived while arming)

The exit notification arrives on the watcher thread, not on the thread that
called start(). Everything done there (disarming, reporting, notifying
listeners) must not raise: failures go to the ErrorHandler instead, and the
completion event fires exactly once whatever happened to the disarm.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, List, Optional

from ..executor.launcher import ProcessLauncher
from ..models.runtime import SessionResult, SessionState
from ..monitoring.controller import ProfilerMonitorController
from ..validation import (
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    InvalidSessionStateError,
    LaunchFailedError,
)
from .process_manager import TargetProcessManager
from .shared_state import RuntimeState

logger = logging.getLogger(__name__)

ExitListener = Callable[[SessionResult], None]


class ExitSubscription:
    """
    A registered exit listener. ``cancel()`` stops future delivery to it.

    Cancelling a subscription never affects the completion future or other
    listeners.
    """

    def __init__(self, coordinator: "LifecycleCoordinator", listener: ExitListener):
        self._coordinator = coordinator
        self.listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> bool:
        """Detach the listener; False if it was already detached or delivered."""
        if not self._active:
            return False
        self._active = False
        return self._coordinator._remove_subscription(self)

    def _deliver(self, result: SessionResult) -> None:
        if self._active:
            self._active = False
            self.listener(result)


class LifecycleCoordinator:
    """
    Sequences arm, target start, exit, disarm and completion for one session.
    """

    def __init__(
        self,
        state: RuntimeState,
        monitor: ProfilerMonitorController,
        process_manager: TargetProcessManager,
        launcher: ProcessLauncher,
        error_handler: ErrorHandler,
        session_id: str,
    ):
        self.state = state
        self.monitor = monitor
        self.process_manager = process_manager
        self.launcher = launcher
        self.error_handler = error_handler
        self.session_id = session_id

        self.completion: "Future[SessionResult]" = Future()
        self._subscriptions: List[ExitSubscription] = []
        self._subscriptions_lock = threading.Lock()
        self._exit_seen = False
        self._arming = False
        self._result: Optional[SessionResult] = None

    # --- Start -------------------------------------------------------------

    def start(self, output_path: str) -> None:
        """
        Arm the monitor, then start the target.

        Returns once the target is running; completion is signalled later.

        Raises:
            InvalidSessionStateError: If the session was already started or
                disposed, or a stop arrived while the monitor was arming
            ToolsNotFoundError: If the profiler tools cannot be located
            MonitorStartFailedError: If the monitor does not become ready
            LaunchFailedError: If the target cannot be started
        """
        with self.state.lock:
            if self.state.disposed:
                raise InvalidSessionStateError("Session has been disposed")
            if self.state.start_requested:
                raise InvalidSessionStateError(
                    f"Profiling was already started (state: {self.state.state.value})"
                )
            self.state.start_requested = True
            self.state.output_path = output_path
            self._arming = True

        logger.info(f"[{self.session_id}] Arming performance monitor")
        try:
            self.monitor.arm(output_path)
        except Exception:
            with self.state.lock:
                self._arming = False
            raise

        with self.state.lock:
            self._arming = False
            self._transition(SessionState.ARMED)
            if self.state.stop_requested.is_set():
                logger.info(f"[{self.session_id}] Stop arrived while arming, target will not be started")
                self._disarm_without_target("disarm_after_cancelled_start", ErrorType.MONITOR_ERROR)
                self._transition(SessionState.FAILED)
                raise InvalidSessionStateError("Profiling was stopped before the target started")
            try:
                self.process_manager.start(self.launcher, on_exit=self._on_target_exit)
            except LaunchFailedError:
                self._disarm_without_target("disarm_after_failed_launch", ErrorType.LAUNCH_ERROR)
                self._transition(SessionState.FAILED)
                raise
            # The watcher needs this lock to leave RUNNING, so an instant
            # exit cannot be recorded before we get here.
            self._transition(SessionState.RUNNING)

    def _disarm_without_target(self, operation: str, error_type: ErrorType) -> None:
        try:
            self.monitor.disarm()
        except Exception as e:
            self.error_handler.report_exception(
                e,
                component="LifecycleCoordinator",
                operation=operation,
                error_type=error_type,
                severity=ErrorSeverity.ERROR,
                session_id=self.session_id,
            )

    # --- Stop --------------------------------------------------------------

    def stop(self) -> None:
        """
        Kill the target. The regular exit path then disarms and completes.

        A stop that arrives while ``start`` is still arming the monitor is
        recorded, and ``start`` gives up before launching the target.
        The result is marked forced only if the kill reached a live target.

        Raises:
            InvalidSessionStateError: If profiling was never started or the
                session has been disposed
        """
        with self.state.lock:
            if self.state.disposed:
                raise InvalidSessionStateError("Session has been disposed")
            current = self.state.state
            if current in (SessionState.STOPPING, SessionState.EXITED):
                logger.debug(f"[{self.session_id}] Stop requested after exit, nothing to do")
                return
            if self._arming:
                logger.info(f"[{self.session_id}] Stop requested while arming, target will not be started")
                self.state.stop_requested.set()
                return
            if current != SessionState.RUNNING:
                raise InvalidSessionStateError(
                    f"Profiled process is not running (state: {current.value})"
                )
            logger.info(f"[{self.session_id}] Stop requested, killing profiled process")
            # The watcher reads this under the same lock, after we release it.
            if self.process_manager.kill():
                self.state.stop_requested.set()

    # --- Exit path (watcher thread) -----------------------------------------

    def _on_target_exit(self, exit_code: Optional[int]) -> None:
        with self.state.lock:
            if self._exit_seen:
                logger.debug(f"[{self.session_id}] Duplicate exit notification ignored")
                return
            self._exit_seen = True
            self._transition(SessionState.STOPPING)
            forced = self.state.stop_requested.is_set()

        disarm_error: Optional[Exception] = None
        try:
            self.monitor.disarm()
        except Exception as e:
            disarm_error = e
            self.error_handler.report_exception(
                e,
                component="LifecycleCoordinator",
                operation="disarm",
                error_type=ErrorType.MONITOR_ERROR,
                severity=ErrorSeverity.ERROR,
                session_id=self.session_id,
                exit_code=exit_code,
            )

        with self.state.lock:
            self._transition(SessionState.EXITED)

        self._complete(SessionResult(exit_code=exit_code, forced=forced, disarm_error=disarm_error))

    def _complete(self, result: SessionResult) -> None:
        with self._subscriptions_lock:
            self._result = result
            subscriptions = list(self._subscriptions)
            self._subscriptions.clear()

        for subscription in subscriptions:
            try:
                subscription._deliver(result)
            except Exception as e:
                self.error_handler.report_exception(
                    e,
                    component="LifecycleCoordinator",
                    operation="exit_listener",
                    error_type=ErrorType.LISTENER_ERROR,
                    severity=ErrorSeverity.WARNING,
                    session_id=self.session_id,
                )

        if not self.completion.done():
            self.completion.set_result(result)
        logger.info(
            f"[{self.session_id}] Profiling session completed "
            f"(exit code: {result.exit_code}, forced: {result.forced}, disarmed: {result.disarmed})"
        )

    # --- Subscriptions -------------------------------------------------------

    def subscribe(self, listener: ExitListener) -> ExitSubscription:
        """
        Register ``listener`` for the completion event.

        Listeners run on the watcher thread. A listener registered after
        completion is called immediately on the caller's thread.
        """
        subscription = ExitSubscription(self, listener)
        with self._subscriptions_lock:
            if self._result is None:
                self._subscriptions.append(subscription)
                return subscription
            result = self._result

        subscription._deliver(result)
        return subscription

    def _remove_subscription(self, subscription: ExitSubscription) -> bool:
        with self._subscriptions_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
                return True
        return False

    # --- Helpers -------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        logger.debug(f"[{self.session_id}] {self.state.state.value} -> {new_state.value}")
        self.state.state = new_state
