"""
Locating the profiling tools and the loader assets.

The profiler tools live under the Visual Studio installation and are found
through an injected install-root provider. The loader script and the
instrumentation modules ship with this package and are found relative to it.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Protocol, Union

from ..models.config import ToolsConfig
from ..models.runtime import Architecture
from ..validation import ToolsNotFoundError

logger = logging.getLogger(__name__)

PERF_TOOLS_SUBDIR = Path("Team Tools") / "Performance Tools"
PERF_TOOLS_X64_SUBDIR = PERF_TOOLS_SUBDIR / "x64"

# Set by Visual Studio developer command prompts to the IDE directory.
DEVENV_DIR_ENV = "DevEnvDir"

LOADER_SCRIPT = "proflaun.py"
INSTRUMENTATION_MODULE_X64 = "VsPyProf.dll"
INSTRUMENTATION_MODULE_X86 = "VsPyProfX86.dll"

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class InstallRootProvider(Protocol):
    """Anything that can report the IDE installation directory."""

    def get_install_root(self) -> Optional[str]:
        ...


class StaticInstallRoot:
    """An install root known up front."""

    def __init__(self, install_root: Optional[Union[str, Path]]):
        self.install_root = str(install_root) if install_root else None

    def get_install_root(self) -> Optional[str]:
        return self.install_root


class ConfigInstallRoot:
    """
    The install root from `[tools] install_root`, else from DevEnvDir.
    """

    def __init__(self, tools_config: ToolsConfig):
        self.tools_config = tools_config

    def get_install_root(self) -> Optional[str]:
        if self.tools_config.install_root:
            return self.tools_config.install_root
        env_root = os.environ.get(DEVENV_DIR_ENV, "").strip()
        if env_root:
            logger.debug(f"Using {DEVENV_DIR_ENV} as install root: {env_root}")
            return env_root
        return None


class ToolPathResolver:
    """
    Derives the performance tool paths for an architecture.

    The tool directory hangs off the grandparent of the install root
    (".../Common7/IDE" -> "..."), with an "x64" subdirectory for amd64.
    """

    def __init__(self, provider: InstallRootProvider, tools_config: Optional[ToolsConfig] = None):
        self.provider = provider
        self.tools_config = tools_config or ToolsConfig()

    def get_perf_tools_dir(self, arch: Architecture) -> Path:
        """
        Return the performance tools directory for ``arch``.

        Raises:
            ToolsNotFoundError: If there is no install root, or it does not
                have two parent directories to climb.
        """
        root = self.provider.get_install_root()
        if not root:
            raise ToolsNotFoundError("Cannot find shell folder for Visual Studio")

        root_path = Path(root)
        parent = root_path.parent
        base = parent.parent
        if parent == root_path or base == parent:
            raise ToolsNotFoundError(f"Cannot find shell folder for Visual Studio (install root: {root})")

        subdir = PERF_TOOLS_X64_SUBDIR if arch == Architecture.AMD64 else PERF_TOOLS_SUBDIR
        tools_dir = base / subdir
        if not tools_dir.is_dir():
            logger.warning(f"Performance tools directory does not exist: {tools_dir}")
        return tools_dir

    def get_perf_monitor_path(self, arch: Architecture) -> Path:
        return self.get_perf_tools_dir(arch) / self.tools_config.perf_monitor

    def get_perf_cmd_path(self, arch: Architecture) -> Path:
        return self.get_perf_tools_dir(arch) / self.tools_config.perf_cmd


class AssetLocator:
    """
    Finds proflaun.py and the VsPyProf instrumentation modules.
    """

    def __init__(self, assets_dir: Optional[Union[str, Path]] = None):
        self.assets_dir = Path(assets_dir).resolve() if assets_dir else _PACKAGE_DIR

    def loader_script(self) -> Path:
        return self._existing(self.assets_dir / LOADER_SCRIPT)

    def instrumentation_module(self, arch: Architecture) -> Path:
        name = INSTRUMENTATION_MODULE_X64 if arch == Architecture.AMD64 else INSTRUMENTATION_MODULE_X86
        return self._existing(self.assets_dir / name)

    @staticmethod
    def _existing(path: Path) -> Path:
        if not path.exists():
            logger.warning(f"Profiler asset not found: {path}")
        return path
