"""
Control of the external sampling monitor.
"""

from .controller import BackgroundStarter, CommandRunner, ProfilerMonitorController

__all__ = [
    "BackgroundStarter",
    "CommandRunner",
    "ProfilerMonitorController",
]
