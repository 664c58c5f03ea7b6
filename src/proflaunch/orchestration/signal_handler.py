"""
Signal handling for profiling sessions.

SIGINT and SIGTERM are turned into stop_profiling() on every registered
session, so interrupting the launcher still shuts the monitor down through
the normal exit path.
"""

import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Dict

from ..validation import ProfilingError

if TYPE_CHECKING:
    from .session import ProfileSession

logger = logging.getLogger(__name__)

# Global state management for signal handling
# Since signal handlers cannot be bound to class instances directly,
# we maintain a registry of active sessions.
_active_sessions: Dict[str, "ProfileSession"] = {}
_active_sessions_lock = threading.RLock()


class SignalHandler:
    """
    Manages signal registration and cleanup for ProfileSession instances.
    """

    def __init__(self):
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install the stop-on-signal handlers, remembering the previous ones."""
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._global_signal_handler)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._global_signal_handler)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for profiling sessions")
        except ValueError as e:
            # signal.signal only works on the main thread
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def register_session(self, session: "ProfileSession") -> None:
        with _active_sessions_lock:
            _active_sessions[session.session_id] = session
            logger.debug(f"Registered session {session.session_id} for signal handling")

    def unregister_session(self, session: "ProfileSession") -> None:
        with _active_sessions_lock:
            if _active_sessions.pop(session.session_id, None) is not None:
                logger.debug(f"Unregistered session {session.session_id} from signal handling")

    @staticmethod
    def _global_signal_handler(signum: int, frame: Any) -> None:
        """
        Stop every registered session.

        Args:
            signum: Signal number that was received
            frame: Current stack frame (unused)
        """
        logger.warning(f"Signal {signum} received. Stopping all active profiling sessions.")
        with _active_sessions_lock:
            sessions = list(_active_sessions.items())
        for session_id, session in sessions:
            try:
                logger.info(f"Requesting stop for session {session_id}")
                session.stop_profiling()
            except ProfilingError as e:
                logger.warning(f"Could not stop session {session_id}: {e}")
