"""
Unit tests for signal forwarding to profiling sessions.
"""

import signal
import threading
from unittest.mock import Mock

import pytest

from proflaunch.orchestration import signal_handler as signal_module
from proflaunch.orchestration.signal_handler import SignalHandler
from proflaunch.validation import InvalidSessionStateError


@pytest.fixture
def handler():
    handler = SignalHandler()
    yield handler
    handler.cleanup_signal_handlers()
    signal_module._active_sessions.clear()


@pytest.mark.unit
class TestSignalHandler:
    """Test cases for SignalHandler."""

    def test_setup_and_restore(self, handler):
        original = signal.getsignal(signal.SIGINT)

        handler.setup_signal_handlers()
        assert signal.getsignal(signal.SIGINT) == SignalHandler._global_signal_handler

        handler.cleanup_signal_handlers()
        assert signal.getsignal(signal.SIGINT) == original

    def test_signal_stops_registered_sessions(self, handler):
        first = Mock(session_id="first")
        second = Mock(session_id="second")
        handler.register_session(first)
        handler.register_session(second)

        SignalHandler._global_signal_handler(signal.SIGINT, None)

        first.stop_profiling.assert_called_once()
        second.stop_profiling.assert_called_once()

    def test_stop_errors_do_not_escape(self, handler):
        failing = Mock(session_id="failing")
        failing.stop_profiling.side_effect = InvalidSessionStateError("not running")
        healthy = Mock(session_id="healthy")
        handler.register_session(failing)
        handler.register_session(healthy)

        SignalHandler._global_signal_handler(signal.SIGTERM, None)

        healthy.stop_profiling.assert_called_once()

    def test_unregistered_session_not_stopped(self, handler):
        session = Mock(session_id="gone")
        handler.register_session(session)
        handler.unregister_session(session)

        SignalHandler._global_signal_handler(signal.SIGINT, None)

        session.stop_profiling.assert_not_called()

    def test_setup_off_main_thread_is_tolerated(self, handler):
        thread = threading.Thread(target=handler.setup_signal_handlers)
        thread.start()
        thread.join()

        assert not handler._signal_handlers_set
