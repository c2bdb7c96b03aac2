"""Platform detection for the goose release assets.

Maps the host OS and CPU architecture onto the naming used by the
pressly/goose release assets (e.g. ``goose_linux_x86_64``).
"""

from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import Optional

from goose_bin.core.errors import GooseBinError

# Supported operating systems (upstream naming)
SUPPORTED_OS = frozenset({"darwin", "linux", "windows"})

# Supported architectures (upstream naming)
SUPPORTED_ARCH = frozenset({"x86_64", "arm64"})

_OS_MAP = {
    "darwin": "darwin",
    "linux": "linux",
    "windows": "windows",
    "win32": "windows",
}

# Architecture normalization map
_ARCH_MAP = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


class UnsupportedPlatformError(GooseBinError, ValueError):
    """The host operating system has no goose release asset."""


class UnsupportedArchitectureError(GooseBinError, ValueError):
    """The host CPU architecture has no goose release asset."""


def normalize_os(system: str) -> Optional[str]:
    """Normalize an OS string to the upstream form.

    Args:
        system: Raw OS string from platform.system() or sys.platform.

    Returns:
        Normalized OS name or None if unknown.
    """
    return _OS_MAP.get(system.strip().lower())


def normalize_arch(machine: str) -> Optional[str]:
    """Normalize architecture string to the upstream form.

    Args:
        machine: Raw architecture string from platform.machine()

    Returns:
        Normalized architecture string or None if unknown.
    """
    return _ARCH_MAP.get(machine.strip().lower())


def detect_os(system: Optional[str] = None) -> str:
    """Detect the current operating system.

    Args:
        system: Host OS string; defaults to platform.system().

    Returns:
        Lowercase OS name (darwin, linux, windows).

    Raises:
        UnsupportedPlatformError: If the OS is not supported.
    """
    if system is None:
        system = platform.system()
    normalized = normalize_os(system)
    if normalized is None:
        raise UnsupportedPlatformError(
            f"Unsupported platform: {system}. "
            f"Supported: {', '.join(sorted(SUPPORTED_OS))}"
        )
    return normalized


def detect_arch(machine: Optional[str] = None) -> str:
    """Detect the current CPU architecture.

    Args:
        machine: Host architecture string; defaults to platform.machine().

    Returns:
        Normalized architecture string (x86_64 or arm64).

    Raises:
        UnsupportedArchitectureError: If the architecture is not supported.
    """
    if machine is None:
        machine = platform.machine()
    normalized = normalize_arch(machine)
    if normalized is None:
        raise UnsupportedArchitectureError(
            f"Unsupported architecture: {machine}. "
            f"Supported: {', '.join(sorted(SUPPORTED_ARCH))}"
        )
    return normalized


@dataclass(frozen=True)
class PlatformInfo:
    """Information about the current platform.

    Attributes:
        os: Operating system (darwin, linux, windows).
        arch: CPU architecture (x86_64, arm64).
    """

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def executable_suffix(self) -> str:
        """Suffix of executables on this platform ('.exe' on Windows)."""
        return ".exe" if self.is_windows else ""

    @property
    def asset_suffix(self) -> str:
        """Return the OS/arch part of a release asset name.

        Example: "darwin_arm64", "linux_x86_64"
        """
        return f"{self.os}_{self.arch}"


def get_platform_info(
    system: Optional[str] = None, machine: Optional[str] = None
) -> PlatformInfo:
    """Detect and return current platform information.

    The OS is checked first, so a host that is unsupported on both counts
    reports the platform error.

    Returns:
        PlatformInfo with detected OS and architecture.

    Raises:
        UnsupportedPlatformError: If the OS is not supported.
        UnsupportedArchitectureError: If the architecture is not supported.
    """
    return PlatformInfo(os=detect_os(system), arch=detect_arch(machine))
