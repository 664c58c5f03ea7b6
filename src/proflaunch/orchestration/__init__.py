"""
Orchestration of profiling sessions.

Components:
- ProfileSession: Public facade for one profiling run
- LifecycleCoordinator: Arm / start / exit / disarm / completion sequencing
- TargetProcessManager: Target process start, exit watching and kill
- SignalHandler: SIGINT/SIGTERM to stop_profiling() forwarding
"""

from .coordinator import ExitListener, ExitSubscription, LifecycleCoordinator
from .process_manager import TargetProcessManager
from .session import ProfileSession
from .shared_state import RuntimeState, SessionConfig, TimeoutConstants
from .signal_handler import SignalHandler

__all__ = [
    "ExitListener",
    "ExitSubscription",
    "LifecycleCoordinator",
    "ProfileSession",
    "RuntimeState",
    "SessionConfig",
    "SignalHandler",
    "TargetProcessManager",
    "TimeoutConstants",
]
