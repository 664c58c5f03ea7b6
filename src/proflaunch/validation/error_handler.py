"""
Structured error reporting for failures that have no caller to return to.

Errors raised on the process-exit watcher thread cannot propagate anywhere
useful, so they are handed to an ErrorHandler which logs them with context,
keeps a bounded history and forwards them to registered sinks (a UI, a
notification channel, a test probe).
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .exceptions import ErrorSeverity


class ErrorType(Enum):
    """Types of reported errors."""
    MONITOR_ERROR = "monitor_error"
    LAUNCH_ERROR = "launch_error"
    LISTENER_ERROR = "listener_error"
    UNKNOWN_ERROR = "unknown_error"


@dataclass
class ErrorContext:
    """Context information for a reported error."""
    error_type: ErrorType
    severity: ErrorSeverity
    component: str
    operation: str
    timestamp: datetime
    session_id: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None


ErrorSink = Callable[[Exception, ErrorContext], Any]


class ErrorHandler:
    """
    Thread-safe error reporting with structured logging and sinks.

    This class provides:
    - Structured error logging with context
    - Error aggregation (history and per-type counts)
    - Sink registration for out-of-band presentation
    """

    def __init__(self, logger: Optional[logging.Logger] = None, max_history_size: int = 1000):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance, defaults to module logger
            max_history_size: Number of contexts kept in the history
        """
        self.logger = logger or logging.getLogger(__name__)
        self.error_history: List[ErrorContext] = []
        self.error_counts: Dict[ErrorType, int] = {}
        self.max_history_size = max_history_size
        self._sinks: List[ErrorSink] = []
        self._lock = threading.Lock()

    def register_sink(self, sink: ErrorSink) -> None:
        """Register a callable that receives every reported error."""
        with self._lock:
            self._sinks.append(sink)

    def unregister_sink(self, sink: ErrorSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def report(self, error: Exception, context: ErrorContext) -> None:
        """
        Record, log and forward an error. Never raises.

        Args:
            error: The exception that occurred
            context: Error context information
        """
        with self._lock:
            self.error_counts[context.error_type] = self.error_counts.get(context.error_type, 0) + 1
            self.error_history.append(context)
            if len(self.error_history) > self.max_history_size:
                self.error_history.pop(0)
            sinks = list(self._sinks)

        self._log_error(error, context)

        for sink in sinks:
            try:
                sink(error, context)
            except Exception as sink_error:
                self.logger.warning(
                    f"Error sink {sink!r} failed while reporting {context.error_type.value}: {sink_error}"
                )

    def report_exception(
        self,
        error: Exception,
        component: str,
        operation: str,
        error_type: ErrorType = ErrorType.UNKNOWN_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        session_id: Optional[str] = None,
        **additional_data: Any
    ) -> ErrorContext:
        """Build a context for ``error`` and report it."""
        context = ErrorContext(
            error_type=error_type,
            severity=severity,
            component=component,
            operation=operation,
            timestamp=datetime.now(),
            session_id=session_id,
            additional_data=additional_data or None,
        )
        self.report(error, context)
        return context

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all errors handled.

        Returns:
            Dictionary containing error statistics and recent errors
        """
        with self._lock:
            recent_errors = self.error_history[-10:]
            return {
                'total_errors': len(self.error_history),
                'error_counts': {k.value: v for k, v in self.error_counts.items()},
                'recent_errors': [
                    {
                        'error_type': ctx.error_type.value,
                        'severity': ctx.severity.value,
                        'component': ctx.component,
                        'operation': ctx.operation,
                        'timestamp': ctx.timestamp.isoformat(),
                        'session_id': ctx.session_id,
                    }
                    for ctx in recent_errors
                ]
            }

    def clear_error_history(self) -> None:
        with self._lock:
            self.error_history.clear()
            self.error_counts.clear()

    def _log_error(self, error: Exception, context: ErrorContext) -> None:
        log_level = {
            ErrorSeverity.DEBUG: logging.DEBUG,
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }.get(context.severity, logging.ERROR)

        log_data = {
            'error_type': context.error_type.value,
            'severity': context.severity.value,
            'component': context.component,
            'operation': context.operation,
            'session_id': context.session_id,
            'exception_type': type(error).__name__,
        }
        if context.additional_data:
            log_data.update(context.additional_data)

        self.logger.log(
            log_level,
            f"Error in {context.component}.{context.operation}: {error}",
            extra={'error_context': log_data},
        )


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None
_global_error_handler_lock = threading.Lock()


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance.

    Returns:
        Global ErrorHandler instance
    """
    global _global_error_handler
    with _global_error_handler_lock:
        if _global_error_handler is None:
            _global_error_handler = ErrorHandler()
        return _global_error_handler
