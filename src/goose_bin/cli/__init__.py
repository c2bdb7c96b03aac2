"""Console entry points.

``goose`` defines no options of its own: every argument goes to the
goose binary. ``goose-bin-install`` only performs the install step, for
use right after ``pip install`` or when building images.
"""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from goose_bin.cli.runner import CLIRunner
from goose_bin.core.logging import configure_logging


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point of the ``goose`` command.

    Returns an exit code suitable for use as a console script.
    """
    configure_logging()
    args = sys.argv[1:] if argv is None else list(argv)
    return CLIRunner().run(args)


def install_main() -> int:
    """Entry point of the ``goose-bin-install`` command."""
    configure_logging()
    return CLIRunner().run_install()
