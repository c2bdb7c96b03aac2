"""CLI runner orchestration.

Runs the install phase (platform detection, configuration, download and
verification) and then hands the process over to the goose binary.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from goose_bin.bootstrap.installer import Installer
from goose_bin.bootstrap.platform import PlatformInfo, get_platform_info
from goose_bin.bootstrap.progress import CLIProgressHandler, ProgressHandler
from goose_bin.cli.exit_codes import EXIT_FAILURE, EXIT_SUCCESS
from goose_bin.config.loader import load_config
from goose_bin.config.models import GooseBinConfig
from goose_bin.core.errors import GooseBinError
from goose_bin.core.logging import get_logger
from goose_bin.launcher import launch

LOGGER = get_logger(__name__)

PROG = "goose-bin"


class CLIRunner:
    """Installs goose on demand and runs it.

    Args:
        config: Configuration; loaded from file and environment if None.
        platform_info: Target platform; detected from the host if None.
        stderr: Stream for error messages and download progress.
    """

    def __init__(
        self,
        config: Optional[GooseBinConfig] = None,
        platform_info: Optional[PlatformInfo] = None,
        stderr: Optional[TextIO] = None,
    ) -> None:
        self._config = config
        self._platform_info = platform_info
        self._stderr = stderr

    @property
    def stderr(self) -> TextIO:
        return self._stderr if self._stderr is not None else sys.stderr

    def _progress_handler(self, config: GooseBinConfig) -> Optional[ProgressHandler]:
        if not config.show_progress or not self.stderr.isatty():
            return None
        return CLIProgressHandler(output=self.stderr, label=config.tool_name)

    def install(self) -> Path:
        """Make sure the binary is installed and return its path.

        The platform is resolved before the configuration is read and
        before any network activity.
        """
        platform_info = self._platform_info or get_platform_info()
        config = self._config or load_config()
        installer = Installer(
            config,
            platform_info,
            progress=self._progress_handler(config),
        )
        return installer.ensure_installed()

    def run(self, argv: Sequence[str]) -> int:
        """Install if needed, then run goose with argv.

        Args:
            argv: Arguments forwarded verbatim to goose.

        Returns:
            goose's exit code, or 1 if goose could not be installed or started.
        """
        try:
            executable = self.install()
            return launch(executable, argv)
        except (GooseBinError, OSError) as e:
            self._report(e)
            return EXIT_FAILURE

    def run_install(self) -> int:
        """Install if needed and print the binary path.

        Returns:
            Exit code.
        """
        try:
            executable = self.install()
        except (GooseBinError, OSError) as e:
            self._report(e)
            return EXIT_FAILURE
        print(executable)
        return EXIT_SUCCESS

    def _report(self, error: BaseException) -> None:
        LOGGER.debug("Install phase failed", exc_info=error)
        print(f"{PROG}: error: {error}", file=self.stderr)
