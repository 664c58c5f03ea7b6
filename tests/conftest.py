"""
Pytest configuration and shared fixtures for the proflaunch test suite.

This module provides common fixtures, fake executables and process doubles
for all test modules in the proflaunch project.
"""

import shutil
import struct
import sys
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import Mock, patch

import psutil
import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from proflaunch.config import manager as config_manager  # noqa: E402
from proflaunch.models.config import AppConfig, LauncherConfig, ToolsConfig  # noqa: E402
from proflaunch.models.runtime import CommandResult, LaunchCommand  # noqa: E402
from proflaunch.validation import ErrorHandler  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Never read conf/config.toml from the checkout during tests."""
    app_config = AppConfig()
    monkeypatch.setattr(config_manager, "_CONFIG", app_config)
    monkeypatch.delenv("DevEnvDir", raising=False)
    return app_config


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


def build_pe_image(machine: int, pe_offset: int = 0x80) -> bytes:
    """Minimal DOS stub + PE signature + IMAGE_FILE_HEADER.Machine."""
    image = bytearray(pe_offset + 24)
    image[0:2] = b"MZ"
    image[0x3C:0x40] = struct.pack("<I", pe_offset)
    image[pe_offset:pe_offset + 4] = b"PE\0\0"
    image[pe_offset + 4:pe_offset + 6] = struct.pack("<H", machine)
    return bytes(image)


def build_elf_image(machine: int, big_endian: bool = False) -> bytes:
    """Minimal ELF identification + e_type + e_machine."""
    image = bytearray(64)
    image[0:4] = b"\x7fELF"
    image[4] = 2  # ELFCLASS64
    image[5] = 2 if big_endian else 1
    image[6] = 1  # EV_CURRENT
    fmt = ">H" if big_endian else "<H"
    image[16:18] = struct.pack(fmt, 2)  # ET_EXEC
    image[18:20] = struct.pack(fmt, machine)
    return bytes(image)


@pytest.fixture
def make_executable(temp_dir):
    """Factory writing fake executables with a chosen header."""

    def _make(name: str = "python.exe", machine: int = 0x8664, kind: str = "pe",
              big_endian: bool = False) -> Path:
        path = temp_dir / name
        if kind == "pe":
            path.write_bytes(build_pe_image(machine))
        else:
            path.write_bytes(build_elf_image(machine, big_endian=big_endian))
        return path

    return _make


@pytest.fixture
def amd64_exe(make_executable):
    return make_executable("python.exe", 0x8664)


@pytest.fixture
def x86_exe(make_executable):
    return make_executable("python32.exe", 0x014C)


@pytest.fixture
def install_root(temp_dir):
    """A Visual Studio style IDE directory: <temp>/VS/Common7/IDE."""
    root = temp_dir / "VS" / "Common7" / "IDE"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def launcher_config(temp_dir):
    return LauncherConfig(assets_dir=str(temp_dir / "assets"))


@pytest.fixture
def tools_config(install_root):
    return ToolsConfig(install_root=str(install_root))


@pytest.fixture
def error_handler():
    """A fresh ErrorHandler with a recording sink."""
    handler = ErrorHandler()
    handler.reported = []
    handler.register_sink(lambda error, context: handler.reported.append((error, context)))
    return handler


# ============================================================================
# Process Doubles
# ============================================================================


class FakeProcess:
    """
    Stand-in for subprocess.Popen whose exit is triggered by the test.
    """

    def __init__(self, pid: int = 4242):
        self.pid = pid
        self.returncode: Optional[int] = None
        self.killed = False
        self._exited = threading.Event()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        self._exited.wait(timeout)
        return self.returncode

    def poll(self) -> Optional[int]:
        return self.returncode

    def finish(self, code: int = 0) -> None:
        self.returncode = code
        self._exited.set()

    def kill(self) -> None:
        self.killed = True
        if self.returncode is None:
            self.finish(-9)


class RecordingRunner:
    """
    Helper-command runner that records invocations.

    ``results`` maps an argument string (e.g. "/shutdown") to the
    CommandResult to return; anything else succeeds.
    """

    def __init__(self, results: Optional[Dict[str, CommandResult]] = None):
        self.results = results or {}
        self.commands: List[LaunchCommand] = []

    def __call__(self, command: LaunchCommand) -> CommandResult:
        self.commands.append(command)
        return self.results.get(command.arguments, CommandResult(0))

    @property
    def actions(self) -> List[str]:
        return [command.arguments for command in self.commands]


@pytest.fixture
def fake_process():
    process = FakeProcess()
    yield process
    # Release any watcher thread still blocked in wait()
    if process.returncode is None:
        process.finish(0)


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def monitor_starter():
    """Background starter returning a monitor process that has already finished."""
    monitor = Mock(pid=9999)
    monitor.poll.return_value = 0
    return Mock(return_value=monitor)


@pytest.fixture
def mock_popen(fake_process):
    """Patch target process creation to hand out ``fake_process``."""
    with (
        patch("proflaunch.executor.launcher.subprocess.Popen", return_value=fake_process) as popen,
        patch(
            "proflaunch.orchestration.process_manager.psutil.Process",
            side_effect=psutil.NoSuchProcess(fake_process.pid),
        ),
    ):
        yield popen
