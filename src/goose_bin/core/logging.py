from __future__ import annotations

import logging
import os
from typing import Optional, Union

# Environment variable selecting the log level (the shim has no flags of its own)
LOG_LEVEL_ENV = "GOOSE_BIN_LOG_LEVEL"

DEFAULT_LEVEL = logging.WARNING


def resolve_level(level: Optional[Union[int, str]] = None) -> int:
    """Resolve a log level from an explicit value or the environment.

    Precedence:
    - explicit level argument
    - GOOSE_BIN_LOG_LEVEL
    - default → WARNING

    Unknown level names fall back to the default.
    """

    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else DEFAULT_LEVEL


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Configure root logging on stderr."""

    logging.basicConfig(
        level=resolve_level(level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger."""

    return logging.getLogger(name if name is not None else __name__)
