"""Install the goose binary for the current platform.

The binary only ever reaches its final name after its SHA-256 matched the
release's checksums.txt: it is downloaded to a temporary ``*.temp`` file in
the same directory, verified, made executable and then atomically renamed.

Two processes installing at the same time are not serialized. Each writes
its own temp files (manifest and asset) and the last rename wins, which is
harmless because a release's content never changes.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

from goose_bin.bootstrap.checksums import parse_manifest_file, verify
from goose_bin.bootstrap.download import Fetcher
from goose_bin.bootstrap.paths import GooseBinPaths
from goose_bin.bootstrap.platform import PlatformInfo, get_platform_info
from goose_bin.bootstrap.progress import ProgressHandler
from goose_bin.config.loader import load_config
from goose_bin.config.models import MANIFEST_NAME, GooseBinConfig
from goose_bin.core.logging import get_logger

LOGGER = get_logger(__name__)

EXECUTABLE_MODE = 0o755


class Installer:
    """Downloads, verifies and installs one goose release.

    Args:
        config: Release coordinates and download settings.
        platform_info: Target platform.
        paths: Install layout; defaults to config.home or the default home.
        fetcher: Downloader; defaults to one built from config.
        progress: Optional handler for the asset download progress.
    """

    def __init__(
        self,
        config: GooseBinConfig,
        platform_info: PlatformInfo,
        paths: Optional[GooseBinPaths] = None,
        fetcher: Optional[Fetcher] = None,
        progress: Optional[ProgressHandler] = None,
    ) -> None:
        self.config = config
        self.platform_info = platform_info
        if paths is not None:
            self.paths = paths
        elif config.home is not None:
            self.paths = GooseBinPaths(config.home)
        else:
            self.paths = GooseBinPaths.default()
        self.fetcher = fetcher or Fetcher.from_config(config)
        self.progress = progress

    @property
    def asset_name(self) -> str:
        return self.config.asset_name(self.platform_info)

    @property
    def executable_path(self) -> Path:
        return self.paths.executable(self.config.tool_name, self.platform_info)

    def is_installed(self) -> bool:
        return self.executable_path.exists()

    def ensure_installed(self) -> Path:
        """Return the installed binary, downloading it first if needed.

        Returns:
            Path to the verified, executable binary.

        Raises:
            TransportError: If the manifest or the asset cannot be downloaded.
            ChecksumMismatchError: If the asset fails verification.
        """
        executable = self.executable_path
        if executable.exists():
            LOGGER.debug(f"{self.config.tool_name} binary found at {executable}")
            return executable

        LOGGER.info(
            f"Downloading {self.config.tool_name} {self.config.tag} "
            f"({self.asset_name})..."
        )
        self.paths.ensure_directories()

        manifest = self._fetch_manifest()
        self._install_asset(manifest, executable)

        LOGGER.info(f"{self.config.tool_name} {self.config.tag} installed to {executable}")
        return executable

    def _fetch_manifest(self) -> Dict[str, str]:
        """Download and parse the release checksums; the file never outlives the call."""
        manifest_path = self.paths.new_temp_file(MANIFEST_NAME)
        try:
            self.fetcher.fetch(self.config.manifest_url, manifest_path)
            return parse_manifest_file(manifest_path)
        finally:
            manifest_path.unlink(missing_ok=True)

    def _install_asset(self, manifest: Dict[str, str], executable: Path) -> None:
        """Download the asset to a temp file, verify it and move it into place."""
        temp_path = self.paths.new_temp_file(self.asset_name)

        try:
            self.fetcher.fetch(
                self.config.release_url(self.asset_name),
                temp_path,
                progress=self.progress,
            )
            verify(manifest, self.asset_name, temp_path)
            temp_path.chmod(EXECUTABLE_MODE)
            os.replace(temp_path, executable)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise


def ensure_installed(
    config: Optional[GooseBinConfig] = None,
    platform_info: Optional[PlatformInfo] = None,
    progress: Optional[ProgressHandler] = None,
) -> Path:
    """Install goose if needed and return the binary path.

    Platform detection happens before any network activity, so an
    unsupported host fails without touching the disk.
    """
    if platform_info is None:
        platform_info = get_platform_info()
    if config is None:
        config = load_config()
    return Installer(config, platform_info, progress=progress).ensure_installed()
