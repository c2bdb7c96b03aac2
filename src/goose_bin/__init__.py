"""goose-bin - installs and runs the pre-built pressly/goose binary."""

# Kept equal to the upstream goose release this package pins.
__version__ = "3.26.0"
