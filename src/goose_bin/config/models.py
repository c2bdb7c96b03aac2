"""Configuration model for goose-bin.

The configuration is passed explicitly to the fetcher and installer so the
upstream repository and pinned version can be pointed at a mirror or a
test server.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from goose_bin import __version__
from goose_bin.bootstrap.platform import PlatformInfo

DEFAULT_REPOSITORY = "pressly/goose"
DEFAULT_TOOL_NAME = "goose"
DEFAULT_BASE_URL = "https://github.com"
DEFAULT_USER_AGENT = "goose-pypi"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_REDIRECTS = 5

MANIFEST_NAME = "checksums.txt"


@dataclass(frozen=True)
class GooseBinConfig:
    """Immutable settings for one install-and-run.

    Attributes:
        repository: Upstream GitHub repository (owner/name).
        version: Pinned release version, without the leading 'v'.
        tool_name: Binary name, also the asset name prefix.
        base_url: Host serving the releases.
        user_agent: User-Agent header sent with every request.
        timeout: Socket timeout in seconds for each request.
        max_redirects: Maximum redirect hops followed per download.
        home: Install home override; None uses the default home.
        show_progress: Whether to draw download progress on stderr.
    """

    repository: str = DEFAULT_REPOSITORY
    version: str = __version__
    tool_name: str = DEFAULT_TOOL_NAME
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    home: Optional[Path] = None
    show_progress: bool = True

    @property
    def tag(self) -> str:
        """Release tag, e.g. v3.26.0."""
        return f"v{self.version}"

    def asset_name(self, platform_info: PlatformInfo) -> str:
        """Release asset name for a platform, e.g. goose_linux_x86_64."""
        return (
            f"{self.tool_name}_{platform_info.asset_suffix}"
            f"{platform_info.executable_suffix}"
        )

    def release_url(self, name: str) -> str:
        """Download URL of a file attached to the pinned release."""
        base = self.base_url.rstrip("/")
        return f"{base}/{self.repository}/releases/download/{self.tag}/{name}"

    @property
    def manifest_url(self) -> str:
        return self.release_url(MANIFEST_NAME)
