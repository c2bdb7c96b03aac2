"""
Bootstrap module for the goose binary.

This module handles:
- Platform detection (OS + architecture)
- Install directory management (<home>/bin/)
- Download, checksum verification and installation of the release asset
"""

from goose_bin.bootstrap.platform import get_platform_info, PlatformInfo
from goose_bin.bootstrap.paths import get_goose_bin_home, GooseBinPaths

__all__ = [
    "get_platform_info",
    "PlatformInfo",
    "get_goose_bin_home",
    "GooseBinPaths",
]
