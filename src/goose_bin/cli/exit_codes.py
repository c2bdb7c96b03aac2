"""Exit codes of the goose-bin entry points.

Once the binary runs, its own exit code is passed through instead.
"""

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
