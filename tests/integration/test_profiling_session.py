"""
Integration tests for a complete profiling session with real processes.

The profiler tools are replaced by small shell scripts laid out the way a
Visual Studio installation lays them out, and the target is the running
Python interpreter executing a stand-in loader script.
"""

import os
import signal
import sys
import time

import pytest

from proflaunch.models.config import LauncherConfig, ToolsConfig
from proflaunch.models.runtime import SUPPORTED_ARCHITECTURES, Architecture
from proflaunch.orchestration import ProfileSession
from proflaunch.system.binary import detect_architecture
from proflaunch.system.tools import StaticInstallRoot
from proflaunch.validation import ErrorHandler, MonitorStartFailedError

TARGET_ARCH = detect_architecture(sys.executable)

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(os.name != "posix", reason="tool stand-ins are shell scripts"),
    pytest.mark.skipif(
        TARGET_ARCH not in SUPPORTED_ARCHITECTURES,
        reason=f"interpreter architecture {TARGET_ARCH.value} cannot be profiled",
    ),
]

MONITOR_SCRIPT = """#!/bin/sh
for arg in "$@"; do
  case "$arg" in
    /output:*) echo trace > "${arg#/output:}" ;;
  esac
done
"""

CONTROL_SCRIPT = """#!/bin/sh
echo "$1" >> "$(dirname "$0")/perfcmd.log"
case "$1" in
  /waitstart) echo "waitstart output"; echo "waitstart error" >&2; exit {waitstart_code} ;;
esac
exit 0
"""

LOADER_SCRIPT = """import os
import sys
import time

workdir = sys.argv[2]
with open(os.path.join(workdir, "target.log"), "w") as f:
    f.write(repr(sys.argv[1:]) + "\\n")
    f.write(os.environ.get("VSPYPROF_WAIT_ON_NORMAL_EXIT", "") + "\\n")
    f.write(os.environ.get("PROFLAUNCH_MARKER", "") + "\\n")
if len(sys.argv) > 3 and sys.argv[3] == "sleep":
    time.sleep(60)
sys.exit(int(sys.argv[3]) if len(sys.argv) > 3 else 0)
"""


def write_script(path, content):
    path.write_text(content)
    path.chmod(0o755)


@pytest.fixture
def profiler_layout(temp_dir):
    """Fake tool installation, loader assets and working directory."""

    def _build(waitstart_code=0):
        install_root = temp_dir / "VS" / "Common7" / "IDE"
        install_root.mkdir(parents=True)
        tools_dir = temp_dir / "VS" / "Team Tools" / "Performance Tools"
        if TARGET_ARCH == Architecture.AMD64:
            tools_dir = tools_dir / "x64"
        tools_dir.mkdir(parents=True)
        write_script(tools_dir / "VSPerfMon.exe", MONITOR_SCRIPT)
        write_script(tools_dir / "VSPerfCmd.exe", CONTROL_SCRIPT.format(waitstart_code=waitstart_code))

        assets_dir = temp_dir / "assets"
        assets_dir.mkdir()
        (assets_dir / "proflaun.py").write_text(LOADER_SCRIPT)

        work_dir = temp_dir / "work dir"
        work_dir.mkdir()
        return {
            "install_root": install_root,
            "tools_dir": tools_dir,
            "assets_dir": assets_dir,
            "work_dir": work_dir,
            "trace": temp_dir / "out.vsp",
        }

    return _build


def make_session(layout, arguments=""):
    return ProfileSession(
        sys.executable,
        arguments,
        str(layout["work_dir"]),
        {"PROFLAUNCH_MARKER": "hello"},
        options=LauncherConfig(wait_on_normal_exit=True, assets_dir=str(layout["assets_dir"])),
        tools=ToolsConfig(),
        install_root_provider=StaticInstallRoot(layout["install_root"]),
        error_handler=ErrorHandler(),
    )


def control_actions(layout):
    log = layout["tools_dir"] / "perfcmd.log"
    return log.read_text().split() if log.exists() else []


def wait_for_file(path, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not path.exists() and time.monotonic() < deadline:
        time.sleep(0.05)
    return path.exists()


@pytest.mark.integration
class TestProfilingSession:
    """End-to-end session behavior."""

    def test_natural_exit(self, profiler_layout):
        layout = profiler_layout()
        listener_results = []

        with make_session(layout, "5") as session:
            session.add_exit_listener(listener_results.append)
            session.start_profiling(layout["trace"])
            result = session.wait(30)

        assert result.exit_code == 5
        assert result.forced is False
        assert result.disarmed
        assert listener_results == [result]
        assert control_actions(layout) == ["/waitstart", "/shutdown"]
        assert wait_for_file(layout["trace"])

        argv_line, wait_flag, marker = (layout["work_dir"] / "target.log").read_text().splitlines()
        module = "VsPyProf.dll" if TARGET_ARCH == Architecture.AMD64 else "VsPyProfX86.dll"
        assert module in argv_line
        assert str(layout["work_dir"]) in argv_line
        assert wait_flag == "1"
        assert marker == "hello"

    @pytest.mark.slow
    def test_stop_kills_target(self, profiler_layout):
        layout = profiler_layout()

        with make_session(layout, "sleep") as session:
            session.start_profiling(layout["trace"])
            wait_for_file(layout["work_dir"] / "target.log")
            session.stop_profiling()
            result = session.wait(30)

        assert result.forced is True
        assert result.exit_code == -signal.SIGKILL
        assert result.disarmed
        assert control_actions(layout) == ["/waitstart", "/shutdown"]

    def test_handshake_failure_never_starts_target(self, profiler_layout):
        layout = profiler_layout(waitstart_code=1)

        with make_session(layout) as session:
            with pytest.raises(MonitorStartFailedError) as exc_info:
                session.start_profiling(layout["trace"])

        assert exc_info.value.stdout_lines == ["waitstart output"]
        assert exc_info.value.stderr_lines == ["waitstart error"]
        assert control_actions(layout) == ["/waitstart"]
        assert not (layout["work_dir"] / "target.log").exists()
