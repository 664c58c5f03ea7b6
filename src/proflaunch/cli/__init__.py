"""
Command-line interface for the proflaunch package.

This module provides the ``proflaunch`` entry point.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
