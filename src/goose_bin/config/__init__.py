"""Configuration for goose-bin."""

from goose_bin.config.loader import ConfigError, load_config
from goose_bin.config.models import GooseBinConfig

__all__ = ["ConfigError", "GooseBinConfig", "load_config"]
