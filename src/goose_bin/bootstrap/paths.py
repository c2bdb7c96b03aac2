"""Path management for the goose binary cache.

By default the binary is cached inside the installed package, so removing
the package also removes the binary. GOOSE_BIN_HOME moves the cache
elsewhere (e.g. when site-packages is read-only).
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Mapping, Optional

from goose_bin.bootstrap.platform import PlatformInfo

# Environment variable to override home directory
GOOSE_BIN_HOME_ENV = "GOOSE_BIN_HOME"

# Package directory, the default home
PACKAGE_DIR = Path(__file__).resolve().parent.parent


def get_goose_bin_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Get the goose-bin home directory path.

    Resolution order:
    1. GOOSE_BIN_HOME environment variable (if set)
    2. the goose_bin package directory (default)

    Args:
        environ: Environment mapping, defaults to os.environ.

    Returns:
        Path to the goose-bin home directory.
    """
    env = os.environ if environ is None else environ
    env_home = env.get(GOOSE_BIN_HOME_ENV)
    if env_home:
        return Path(env_home).expanduser()
    return PACKAGE_DIR


@dataclass(frozen=True)
class GooseBinPaths:
    """Manages paths within the goose-bin home directory.

    Directory structure:
        <home>/
            config.yml                  - Optional configuration file
            bin/
                goose[.exe]             - Installed binary
                checksums.txt.<random>.temp - Transient, during install only
                <asset>.<random>.temp       - Transient, during install only
    """

    home: Path

    _BIN_DIR: ClassVar[str] = "bin"
    _CONFIG_FILE: ClassVar[str] = "config.yml"
    TEMP_SUFFIX: ClassVar[str] = ".temp"

    @classmethod
    def default(cls) -> "GooseBinPaths":
        """Create paths from the default goose-bin home."""
        return cls(get_goose_bin_home())

    @property
    def bin_dir(self) -> Path:
        """Directory containing the installed binary."""
        return self.home / self._BIN_DIR

    @property
    def config_file(self) -> Path:
        return self.home / self._CONFIG_FILE

    def executable(self, tool_name: str, platform_info: PlatformInfo) -> Path:
        """Get the final path of the installed binary.

        Args:
            tool_name: Name of the binary (goose).
            platform_info: Target platform, decides the '.exe' suffix.

        Returns:
            Path the verified binary is renamed to and executed from.
        """
        return self.bin_dir / f"{tool_name}{platform_info.executable_suffix}"

    def ensure_directories(self) -> None:
        """Create the bin directory if it doesn't exist."""
        self.bin_dir.mkdir(parents=True, exist_ok=True)

    def new_temp_file(self, name: str) -> Path:
        """Create an empty, uniquely named temp file for name in bin_dir.

        Every call gets its own file, so concurrent installs never share
        a download target.
        """
        fd, temp_name = tempfile.mkstemp(
            prefix=f"{name}.", suffix=self.TEMP_SUFFIX, dir=self.bin_dir
        )
        os.close(fd)
        return Path(temp_name)
