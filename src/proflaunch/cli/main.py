"""
Command-line interface for proflaunch.

``proflaunch run`` profiles one executable and exits with its exit code;
``proflaunch probe`` prints the architecture of an executable.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..config.validators import LOG_LEVELS
from ..models.config import LauncherConfig
from ..models.runtime import SUPPORTED_ARCHITECTURES
from ..orchestration import ProfileSession, SignalHandler
from ..validation import (
    ErrorContext,
    ProfilingError,
    ValidationError,
    get_error_handler,
    handle_cli_error,
    validate_env_assignments,
    validate_path_exists,
)
from ..system.binary import detect_architecture
from ..system.commands import join_arguments
from ..system.tools import ConfigInstallRoot, StaticInstallRoot

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proflaunch",
        description="Launch an executable under the Visual Studio sampling profiler.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.toml (defaults to conf/config.toml).",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override [logging] level from the config.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Profile an executable until it exits.")
    run.add_argument("-o", "--output", required=True, type=Path, help="Trace file to write.")
    run.add_argument("-d", "--cwd", default="", help="Working directory for the target (default: current).")
    run.add_argument(
        "-e",
        "--env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra environment variable for the target; may be repeated.",
    )
    run.add_argument("--install-root", help="Visual Studio IDE directory (overrides [tools] install_root).")
    run.add_argument("--assets-dir", help="Directory of proflaun.py and the VsPyProf modules.")
    run.add_argument("--wait-on-normal-exit", action="store_true", default=None,
                     help="Keep the target console open after a normal exit.")
    run.add_argument("--wait-on-abnormal-exit", action="store_true", default=None,
                     help="Keep the target console open after an abnormal exit.")
    run.add_argument("executable", help="Executable to profile.")
    run.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the executable.")

    probe = subparsers.add_parser("probe", help="Print the architecture of an executable.")
    probe.add_argument("executable", help="Executable to inspect.")

    return parser


def _report_to_console(error: Exception, context: ErrorContext) -> None:
    print(f"proflaunch: {context.operation} failed: {error}", file=sys.stderr)


def run_profile(args: argparse.Namespace) -> int:
    """Profile one executable and return its exit code."""
    app_config = get_config()

    try:
        env_vars = validate_env_assignments(args.env, field_name="--env")
    except ValidationError as e:
        handle_cli_error(error=e, context="environment argument validation", exit_code=2, logger=logger)

    assets_dir = app_config.launcher.assets_dir
    if args.assets_dir:
        try:
            assets_dir = validate_path_exists(args.assets_dir, field_name="--assets-dir")
        except ValidationError as e:
            handle_cli_error(error=e, context="assets directory validation", exit_code=2, logger=logger)

    launcher_config = LauncherConfig(
        wait_on_normal_exit=(
            args.wait_on_normal_exit
            if args.wait_on_normal_exit is not None
            else app_config.launcher.wait_on_normal_exit
        ),
        wait_on_abnormal_exit=(
            args.wait_on_abnormal_exit
            if args.wait_on_abnormal_exit is not None
            else app_config.launcher.wait_on_abnormal_exit
        ),
        assets_dir=assets_dir,
    )
    install_root_provider = (
        StaticInstallRoot(args.install_root) if args.install_root else ConfigInstallRoot(app_config.tools)
    )

    error_handler = get_error_handler()
    error_handler.register_sink(_report_to_console)

    target_args = args.args
    if target_args and target_args[0] == "--":
        target_args = target_args[1:]

    try:
        session = ProfileSession(
            args.executable,
            join_arguments(target_args),
            args.cwd,
            env_vars,
            options=launcher_config,
            tools=app_config.tools,
            install_root_provider=install_root_provider,
            error_handler=error_handler,
        )
    except ProfilingError as e:
        handle_cli_error(error=e, context="session setup", exit_code=1, logger=logger)

    signal_handler = SignalHandler()
    signal_handler.register_session(session)
    signal_handler.setup_signal_handlers()
    try:
        try:
            session.start_profiling(args.output)
        except ProfilingError as e:
            handle_cli_error(error=e, context="starting profiler", exit_code=1, logger=logger)

        logger.info(f"Profiling {args.executable} (PID {session.pid}), trace: {args.output}")
        result = session.wait()
    finally:
        signal_handler.cleanup_signal_handlers()
        signal_handler.unregister_session(session)
        session.dispose()
        error_handler.unregister_sink(_report_to_console)

    if not result.disarmed:
        logger.error("Performance monitor was not shut down cleanly; the trace may be incomplete.")
        return 1 if not result.exit_code else result.exit_code
    logger.info(f"Trace written to {args.output}")
    return result.exit_code if result.exit_code is not None else 1


def probe_executable(args: argparse.Namespace) -> int:
    arch = detect_architecture(args.executable)
    supported = arch in SUPPORTED_ARCHITECTURES
    print(f"{args.executable}: {arch.value}{'' if supported else ' (unsupported)'}")
    return 0 if supported else 1


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line entry point.

    Raises:
        SystemExit: With the target's exit code, or non-zero on failures.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except (FileNotFoundError, ValidationError) as e:
        setup_logging(args.log_level or "INFO")
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    setup_logging(args.log_level or app_config.logging.level)

    if args.command == "probe":
        sys.exit(probe_executable(args))
    sys.exit(run_profile(args))


if __name__ == "__main__":
    main_cli()
