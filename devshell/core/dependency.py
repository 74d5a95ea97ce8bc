# SPDX-License-Identifier: MIT
"""Dependency descriptors and resolved packages.

A DependencyDescriptor is what the user declares: a package name and the
role it plays. A ResolvedPackage is what the resolver hands back for one
platform: the concrete store location and its interesting subdirectories.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from devshell.core.platform import PlatformKey


class Role(enum.Flag):
    """How a declared package participates in the environment.

    BUILD packages contribute headers and libraries to the compile/link
    search paths, RUNTIME packages contribute shared-library directories
    to the loader search path. SHELL packages only put their executables
    on PATH for the interactive session.
    """

    BUILD = 1
    RUNTIME = 2
    SHELL = 4
    BOTH = BUILD | RUNTIME

    @classmethod
    def parse(cls, text: str) -> Role:
        """Parse a role name ('build', 'runtime', 'both', 'shell').

        Raises:
            ValueError: If the name is not a known role.
        """
        try:
            return _ROLE_NAMES[text.strip().lower()]
        except KeyError:
            choices = ", ".join(_ROLE_NAMES)
            raise ValueError(f"unknown role {text!r} (expected one of: {choices})") from None

    @property
    def label(self) -> str:
        for name, role in _ROLE_NAMES.items():
            if role == self:
                return name
        return str(self)


_ROLE_NAMES: dict[str, Role] = {
    "build": Role.BUILD,
    "runtime": Role.RUNTIME,
    "both": Role.BOTH,
    "shell": Role.SHELL,
}


@dataclass(frozen=True)
class DependencyDescriptor:
    """A named reference to a package plus its role.

    Attributes:
        name: Abstract package name understood by the resolver
            (e.g. 'alsa-lib', 'xorg.libX11').
        role: Which path sets the package contributes to.
    """

    name: str
    role: Role = Role.BUILD

    @property
    def is_build(self) -> bool:
        return bool(self.role & Role.BUILD)

    @property
    def is_runtime(self) -> bool:
        return bool(self.role & Role.RUNTIME)

    def __str__(self) -> str:
        return f"{self.name} ({self.role.label})"


@dataclass(frozen=True)
class ResolvedPackage:
    """Concrete, immutable location of a package on one platform.

    Attributes:
        name: The package name that was resolved.
        platform: Platform the location is valid for.
        root: Store location of the package.
        include_dir: Header directory, if the package ships headers.
        lib_dir: Library directory, if the package ships libraries.
        bin_dir: Executable directory, if the package ships programs.
        pkgconfig_dir: Directory holding .pc files, if any.
    """

    name: str
    platform: PlatformKey
    root: Path
    include_dir: Path | None = None
    lib_dir: Path | None = None
    bin_dir: Path | None = None
    pkgconfig_dir: Path | None = None

    @classmethod
    def from_root(cls, name: str, platform: PlatformKey, root: Path | str) -> ResolvedPackage:
        """Create a package from the conventional subdirectories on disk."""
        root = Path(root)

        def existing(*parts: str) -> Path | None:
            candidate = root.joinpath(*parts)
            return candidate if candidate.is_dir() else None

        return cls(
            name=name,
            platform=platform,
            root=root,
            include_dir=existing("include"),
            lib_dir=existing("lib"),
            bin_dir=existing("bin"),
            pkgconfig_dir=existing("lib", "pkgconfig") or existing("share", "pkgconfig"),
        )

    @classmethod
    def from_outputs(
        cls,
        name: str,
        platform: PlatformKey,
        outputs: Mapping[str, Path | str],
    ) -> ResolvedPackage:
        """Create a package from the outputs of a multi-output store package.

        No filesystem access happens here; the outputs may not be realised
        on this machine. Libraries come from the 'lib' output (falling back
        to 'out'), headers and pkg-config files from 'dev', executables
        from 'bin'.

        Args:
            name: Package name.
            platform: Platform the outputs were evaluated for.
            outputs: Output name to store path.

        Raises:
            ValueError: If no outputs are given.
        """
        if not outputs:
            raise ValueError(f"package '{name}' has no outputs")

        paths = {key: Path(value) for key, value in outputs.items()}
        out = paths.get("out") or next(iter(paths.values()))
        lib = paths.get("lib", out)
        dev = paths.get("dev", out)
        bin_ = paths.get("bin", out)

        return cls(
            name=name,
            platform=platform,
            root=out,
            include_dir=dev / "include",
            lib_dir=lib / "lib",
            bin_dir=bin_ / "bin",
            pkgconfig_dir=dev / "lib" / "pkgconfig",
        )
