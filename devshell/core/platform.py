# SPDX-License-Identifier: MIT
"""Platform keys for per-platform environment resolution.

A PlatformKey identifies a target (operating system, CPU architecture)
pair. All resolution happens against exactly one PlatformKey; the
assembler is simply called once per platform.
"""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass

# Canonical names on the left, accepted spellings on the right
_OS_ALIASES: dict[str, str] = {
    "linux": "linux",
    "macos": "macos",
    "darwin": "macos",
    "osx": "macos",
    "windows": "windows",
    "win32": "windows",
    "freebsd": "freebsd",
}

_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "arm64",
    "aarch64": "arm64",
    "i686": "i686",
    "x86": "i686",
    "riscv64": "riscv64",
}

# Names used by Nix system doubles
_NIX_OS = {"macos": "darwin"}
_NIX_ARCH = {"arm64": "aarch64"}


@dataclass(frozen=True, order=True)
class PlatformKey:
    """An (operating system, CPU architecture) pair.

    Rendered as ``<os>-<arch>`` (e.g. ``linux-x86_64``, ``macos-arm64``).

    Attributes:
        os: Canonical OS name ('linux', 'macos', 'windows', ...).
        arch: Canonical architecture name ('x86_64', 'arm64', ...).
    """

    os: str
    arch: str

    @classmethod
    def parse(cls, text: str) -> PlatformKey:
        """Parse a platform string.

        Accepts both ``<os>-<arch>`` and the Nix system form
        ``<arch>-<os>``, in any of the known spellings.

        Raises:
            ValueError: If the string is not a recognized platform.
        """
        first, sep, second = text.strip().lower().partition("-")
        if not sep or not first or not second:
            raise ValueError(f"invalid platform: {text!r}")

        if first in _OS_ALIASES and second in _ARCH_ALIASES:
            return cls(_OS_ALIASES[first], _ARCH_ALIASES[second])
        if first in _ARCH_ALIASES and second in _OS_ALIASES:
            return cls(_OS_ALIASES[second], _ARCH_ALIASES[first])
        raise ValueError(f"unknown platform: {text!r}")

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def is_macos(self) -> bool:
        return self.os == "macos"

    @property
    def path_separator(self) -> str:
        """Separator for path lists in environment variables."""
        return ";" if self.is_windows else ":"

    @property
    def nix_system(self) -> str:
        """The Nix system double, e.g. 'x86_64-linux' or 'aarch64-darwin'."""
        arch = _NIX_ARCH.get(self.arch, self.arch)
        os_name = _NIX_OS.get(self.os, self.os)
        return f"{arch}-{os_name}"

    @property
    def shared_library_suffixes(self) -> tuple[str, ...]:
        if self.is_windows:
            return (".dll",)
        if self.is_macos:
            return (".dylib",)
        return (".so",)

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


DEFAULT_PLATFORMS: tuple[PlatformKey, ...] = (
    PlatformKey("linux", "x86_64"),
    PlatformKey("linux", "arm64"),
    PlatformKey("macos", "x86_64"),
    PlatformKey("macos", "arm64"),
)


def get_platform() -> PlatformKey:
    """Detect the host platform.

    Raises:
        ValueError: If the host OS or architecture is not recognized.
    """
    system = sys.platform
    if system.startswith("linux"):
        os_name = "linux"
    elif system.startswith("freebsd"):
        os_name = "freebsd"
    else:
        os_name = _OS_ALIASES.get(system, system)

    machine = _platform.machine().lower()
    arch = _ARCH_ALIASES.get(machine)
    if arch is None or os_name not in _OS_ALIASES.values():
        raise ValueError(f"unsupported host platform: {system}/{machine}")
    return PlatformKey(os_name, arch)
