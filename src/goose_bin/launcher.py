"""Run the installed binary in place of this process.

The child inherits stdin, stdout and stderr unchanged; its exit code
becomes ours.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence, Union

from goose_bin.core.errors import GooseBinError
from goose_bin.core.logging import get_logger

LOGGER = get_logger(__name__)

# Exit code used when the child was killed by a signal
SIGNAL_EXIT_CODE = 1


class LaunchError(GooseBinError):
    """The installed binary could not be started."""

    pass


def exit_code_from(returncode: int) -> int:
    """Map a child return code to our exit code.

    A negative return code means the child was killed by a signal and
    reported no exit status; that is treated as a failure (1).
    """
    if returncode < 0:
        return SIGNAL_EXIT_CODE
    return returncode


def launch(executable: Union[str, Path], args: Sequence[str]) -> int:
    """Run executable with args and wait for it.

    Args:
        executable: Binary to run.
        args: Arguments passed through verbatim.

    Returns:
        Exit code to terminate this process with.

    Raises:
        LaunchError: If the binary cannot be started.
    """
    cmd = [str(executable), *args]
    LOGGER.debug(f"Launching {cmd}")
    try:
        process = subprocess.Popen(cmd)
    except OSError as e:
        raise LaunchError(f"Failed to start {executable}: {e}") from e

    with process:
        while True:
            try:
                returncode = process.wait()
                break
            except KeyboardInterrupt:
                # The child got the same SIGINT and decides when to exit.
                continue

    if returncode < 0:
        LOGGER.debug(f"{executable} terminated by signal {-returncode}")
    return exit_code_from(returncode)
