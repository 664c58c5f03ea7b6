"""
Shared data structures for the orchestration module.

This module defines the session inputs, the runtime state shared between the
orchestration components, and the timing constants.
"""

import subprocess
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

import psutil

from ..models.config import LauncherConfig, ToolsConfig
from ..models.runtime import Architecture, SessionState


@dataclass(frozen=True)
class SessionConfig:
    """
    Resolved construction inputs of a ProfileSession.

    Everything here is fixed for the lifetime of the session.
    """
    executable: str
    arguments: str
    working_dir: str
    arch: Architecture
    env_overrides: Dict[str, str]
    launcher: LauncherConfig
    tools: ToolsConfig


@dataclass
class RuntimeState:
    """
    Runtime state shared across orchestration components.

    ``lock`` guards ``state`` transitions; it is re-entrant because stop
    requests may arrive from a signal handler on a thread already holding it.
    """
    state: SessionState = SessionState.CREATED
    output_path: Optional[str] = None

    # Target process handles
    target_process: Optional[subprocess.Popen] = None
    target_handle: Optional[psutil.Process] = None
    watcher_thread: Optional[threading.Thread] = None
    exit_code: Optional[int] = None

    # Coordination
    start_requested: bool = False
    stop_requested: threading.Event = field(default_factory=threading.Event)
    disposed: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock)


class TimeoutConstants:
    """
    Centralized timing configuration.

    Arm and disarm have no timeout. This only bounds how often blocking
    waits wake up to notice signals.
    """
    COMPLETION_POLL_INTERVAL = 1.0
    WATCHER_JOIN_TIMEOUT = 1.0
