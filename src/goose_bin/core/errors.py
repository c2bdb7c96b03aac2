"""Exception hierarchy for goose-bin.

Every failure of the install phase derives from GooseBinError so the CLI
can report it uniformly and exit with status 1. Concrete errors live next
to the code that raises them.
"""

from __future__ import annotations


class GooseBinError(Exception):
    """Base class for all goose-bin errors."""

    pass
