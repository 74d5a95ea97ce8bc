# SPDX-License-Identifier: MIT
"""Host filesystem resolver.

Resolves packages installed into conventional prefixes on the host
(/usr, /usr/local, Homebrew, ...). Only the host platform can be
resolved this way; every other platform is reported as unresolved.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from devshell.core.dependency import ResolvedPackage
from devshell.core.errors import UnresolvedDependency
from devshell.core.platform import PlatformKey, get_platform

logger = logging.getLogger(__name__)

DEFAULT_PREFIXES: tuple[str, ...] = ("/usr/local", "/opt/homebrew", "/usr")


@dataclass(frozen=True)
class Lookup:
    """What to look for when resolving a package in a prefix.

    Attributes:
        libraries: Library base names (without 'lib' prefix or suffix).
        programs: Executable names.
        subdirs: Directories that identify the package on their own
            (relative to the prefix); the first one found becomes the
            package root.
    """

    libraries: tuple[str, ...] = ()
    programs: tuple[str, ...] = ()
    subdirs: tuple[str, ...] = ()


# Package names as used in devshell.toml; mostly nixpkgs attribute names
KNOWN_PACKAGES: dict[str, Lookup] = {
    "udev": Lookup(libraries=("udev",)),
    "alsa-lib": Lookup(libraries=("asound",)),
    "vulkan-loader": Lookup(libraries=("vulkan",)),
    "xorg.libX11": Lookup(libraries=("X11",)),
    "xorg.libXcursor": Lookup(libraries=("Xcursor",)),
    "xorg.libXi": Lookup(libraries=("Xi",)),
    "xorg.libXrandr": Lookup(libraries=("Xrandr",)),
    "libxkbcommon": Lookup(libraries=("xkbcommon",)),
    "wayland": Lookup(libraries=("wayland-client",)),
    "cargo": Lookup(programs=("cargo",)),
    "rustc": Lookup(programs=("rustc",)),
    "rustfmt": Lookup(programs=("rustfmt",)),
    "rustPackages.clippy": Lookup(programs=("cargo-clippy", "clippy-driver")),
    "cargo-watch": Lookup(programs=("cargo-watch",)),
    "rust-analyzer": Lookup(programs=("rust-analyzer",)),
    "pre-commit": Lookup(programs=("pre-commit",)),
    "pkg-config": Lookup(programs=("pkg-config", "pkgconf")),
    "clang": Lookup(programs=("clang",)),
    "mold": Lookup(programs=("mold",)),
    "rustPlatform.rustLibSrc": Lookup(subdirs=("lib/rustlib/src/rust/library",)),
}

_MULTIARCH = {"x86_64": "x86_64-linux-gnu", "arm64": "aarch64-linux-gnu"}


def default_lookup(name: str) -> Lookup:
    """Guess a lookup for a package that is not in KNOWN_PACKAGES.

    'xorg.libXfoo' looks for libXfoo, 'foo' looks for libfoo and a
    program called foo.
    """
    base = name.rsplit(".", 1)[-1]
    if base.startswith("lib") and len(base) > 3:
        return Lookup(libraries=(base[3:],))
    return Lookup(libraries=(base,), programs=(base,))


class PrefixResolver:
    """Resolve packages from installation prefixes on the host.

    Prefixes are searched in order; the first prefix that provides the
    package wins.

    Example:
        resolver = PrefixResolver(["/usr/local", "/usr"])
        alsa = resolver.resolve("alsa-lib", get_platform())
        alsa.lib_dir  # e.g. /usr/lib/x86_64-linux-gnu
    """

    def __init__(
        self,
        prefixes: Sequence[Path | str] | None = None,
        *,
        lookups: dict[str, Lookup] | None = None,
        host: PlatformKey | None = None,
    ) -> None:
        self._prefixes = [Path(p) for p in (prefixes or DEFAULT_PREFIXES)]
        self._lookups = dict(KNOWN_PACKAGES)
        if lookups:
            self._lookups.update(lookups)
        self._host = host or get_platform()

    @property
    def name(self) -> str:
        return "prefix"

    @property
    def prefixes(self) -> list[Path]:
        return list(self._prefixes)

    def resolve(self, name: str, platform: PlatformKey) -> ResolvedPackage:
        if platform != self._host:
            raise UnresolvedDependency(
                name, platform, f"prefix resolver only serves the host ({self._host})"
            )

        lookup = self._lookups.get(name) or default_lookup(name)
        for prefix in self._prefixes:
            package = self._search_prefix(name, prefix, lookup)
            if package is not None:
                logger.debug("Resolved %s in %s", name, prefix)
                return package

        searched = ", ".join(str(p) for p in self._prefixes)
        raise UnresolvedDependency(name, platform, f"not found in {searched}")

    def realise(self, package: ResolvedPackage) -> None:
        """Packages found in a prefix are already installed."""

    def _search_prefix(self, name: str, prefix: Path, lookup: Lookup) -> ResolvedPackage | None:
        for subdir in lookup.subdirs:
            candidate = prefix / subdir
            if candidate.is_dir():
                return ResolvedPackage(name=name, platform=self._host, root=candidate)

        for lib_dir in self._library_dirs(prefix):
            if any(self._has_library(lib_dir, lib) for lib in lookup.libraries):
                return ResolvedPackage(
                    name=name,
                    platform=self._host,
                    root=prefix,
                    include_dir=_existing(prefix / "include"),
                    lib_dir=lib_dir,
                    bin_dir=_existing(prefix / "bin"),
                    pkgconfig_dir=_existing(lib_dir / "pkgconfig")
                    or _existing(prefix / "share" / "pkgconfig"),
                )

        bin_dir = prefix / "bin"
        for program in lookup.programs:
            exe = bin_dir / (program + (".exe" if self._host.is_windows else ""))
            if exe.is_file() and os.access(exe, os.X_OK):
                return ResolvedPackage(name=name, platform=self._host, root=prefix, bin_dir=bin_dir)
        return None

    def _library_dirs(self, prefix: Path) -> Iterable[Path]:
        candidates = [prefix / "lib", prefix / "lib64"]
        multiarch = _MULTIARCH.get(self._host.arch)
        if multiarch and self._host.os == "linux":
            candidates.insert(0, prefix / "lib" / multiarch)
        return [c for c in candidates if c.is_dir()]

    def _has_library(self, lib_dir: Path, lib: str) -> bool:
        for suffix in self._host.shared_library_suffixes:
            # Versioned names like libasound.so.2 or libX11.6.dylib count too
            if any(lib_dir.glob(f"lib{lib}{suffix}*")) or any(
                lib_dir.glob(f"lib{lib}.*{suffix}")
            ):
                return True
        return False

    def __repr__(self) -> str:
        return f"PrefixResolver({[str(p) for p in self._prefixes]})"


def _existing(path: Path) -> Path | None:
    return path if path.is_dir() else None
