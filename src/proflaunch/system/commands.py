"""
Command execution utilities for profiler helper tools.

This module provides argument quoting for Windows-style command lines, a
hidden capture-and-wait runner for short-lived helper commands, and a hidden
detached starter for long-lived background tools.
"""

import logging
import os
import shlex
import subprocess
from typing import Iterable, List

from ..models.runtime import CommandResult, LaunchCommand

logger = logging.getLogger(__name__)

# 0 on POSIX, where there is no console window to hide.
CREATE_NO_WINDOW = getattr(subprocess, "CREATE_NO_WINDOW", 0)


def _is_single_quoted_token(arg: str) -> bool:
    """True if ``arg`` is one double-quoted token whose only unescaped quotes are its ends."""
    if len(arg) < 2 or arg[0] != '"' or arg[-1] != '"':
        return False
    quote_count = 0
    backslashes = 0
    for c in arg:
        if c == '"' and backslashes % 2 == 0:
            quote_count += 1
        backslashes = backslashes + 1 if c == "\\" else 0
    return quote_count == 2


def quote_single_argument(arg: str) -> str:
    """Quote an argument so the receiving process sees exactly one token.

    Follows the MSVC runtime parsing rules, which POSIX shlex splitting
    reads the same way for the characters involved.

    Args:
        arg: The raw argument.

    Returns:
        ``""`` for an empty argument, the argument unchanged if it is already
        a single quoted token, otherwise the argument wrapped in double quotes
        with embedded quotes and trailing backslashes escaped.

    Examples:
        >>> quote_single_argument(".")
        '"."'
        >>> quote_single_argument('say "hi"')
        '"say \\\\"hi\\\\""'
    """
    if not arg:
        return '""'
    if _is_single_quoted_token(arg):
        return arg

    result: List[str] = []
    backslashes = 0
    for c in arg:
        if c == "\\":
            backslashes += 1
            continue
        if c == '"':
            result.append("\\" * (backslashes * 2 + 1))
        else:
            result.append("\\" * backslashes)
        backslashes = 0
        result.append(c)
    result.append("\\" * (backslashes * 2))
    return '"' + "".join(result) + '"'


def join_arguments(args: Iterable[str]) -> str:
    """Render an argv list as one argument string for the current platform."""
    args = list(args)
    if os.name == "nt":
        return subprocess.list2cmdline(args)
    return shlex.join(args)


def run_hidden_and_capture(command: LaunchCommand) -> CommandResult:
    """Run a helper command without a window and wait for it.

    Args:
        command: The helper executable and its argument string.

    Returns:
        CommandResult with the exit code and captured output lines.
        returncode is -1 if the command could not be started at all.
    """
    logger.debug(f"Executing helper command: '{command.command_line}'")
    try:
        process = subprocess.run(
            command.to_popen_args(),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            creationflags=CREATE_NO_WINDOW,
            check=False,
        )
    except FileNotFoundError as e:
        logger.error(f"Command not found: {command.executable}: {type(e).__name__}: {e}")
        return CommandResult(-1, [], [f"Error: Command not found '{command.executable}'"])
    except (OSError, ValueError) as e:
        logger.error(f"Unable to run '{command.command_line}': {type(e).__name__}: {e}", exc_info=True)
        return CommandResult(-1, [], [f"An unexpected error occurred: {e}"])

    logger.debug(f"Helper command '{command.executable}' exited with code {process.returncode}")
    return CommandResult(
        returncode=process.returncode,
        stdout_lines=process.stdout.splitlines() if process.stdout else [],
        stderr_lines=process.stderr.splitlines() if process.stderr else [],
    )


def start_hidden_detached(command: LaunchCommand) -> subprocess.Popen:
    """Start a background tool without a window and without waiting.

    Its output goes to the null device. On POSIX the tool gets its own
    session so terminal signals aimed at us do not reach it.

    Raises:
        OSError: If the process cannot be created.
    """
    logger.debug(f"Starting background command: '{command.command_line}'")
    process = subprocess.Popen(
        command.to_popen_args(),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        creationflags=CREATE_NO_WINDOW,
        start_new_session=os.name != "nt",
    )
    logger.debug(f"Background command '{command.executable}' started with PID {process.pid}")
    return process
