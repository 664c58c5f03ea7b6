"""
Execution of the profiled target process.
"""

from .launcher import (
    WAIT_ON_ABNORMAL_EXIT_ENV,
    WAIT_ON_NORMAL_EXIT_ENV,
    ProcessLauncher,
    normalize_working_directory,
)

__all__ = [
    "WAIT_ON_ABNORMAL_EXIT_ENV",
    "WAIT_ON_NORMAL_EXIT_ENV",
    "ProcessLauncher",
    "normalize_working_directory",
]
