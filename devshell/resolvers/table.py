# SPDX-License-Identifier: MIT
"""Table-driven resolver.

Resolves packages from an explicit per-platform table. Used for pinned
store layouts declared in devshell.toml and for tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from devshell.core.dependency import ResolvedPackage
from devshell.core.errors import ConfigureError, UnresolvedDependency
from devshell.core.platform import PlatformKey

# Keys accepted in a [resolver.packages.<platform>.<name>] table
_DIR_KEYS = {
    "include": "include_dir",
    "lib": "lib_dir",
    "bin": "bin_dir",
    "pkgconfig": "pkgconfig_dir",
}


class TableResolver:
    """Resolver backed by a ``{platform: {name: ResolvedPackage}}`` table.

    Example:
        resolver = TableResolver()
        resolver.add(ResolvedPackage("alsa-lib", linux, Path("/store/alsa")))
        resolver.resolve("alsa-lib", linux)
    """

    def __init__(
        self,
        packages: Mapping[PlatformKey, Mapping[str, ResolvedPackage]] | None = None,
    ) -> None:
        self._table: dict[PlatformKey, dict[str, ResolvedPackage]] = {}
        if packages:
            for platform, by_name in packages.items():
                for package in by_name.values():
                    if package.platform != platform:
                        raise ValueError(
                            f"package '{package.name}' is for {package.platform}, "
                            f"not {platform}"
                        )
                    self.add(package)

    @property
    def name(self) -> str:
        return "table"

    def add(self, package: ResolvedPackage) -> None:
        """Register a package for its platform, replacing any previous entry."""
        self._table.setdefault(package.platform, {})[package.name] = package

    def resolve(self, name: str, platform: PlatformKey) -> ResolvedPackage:
        try:
            return self._table[platform][name]
        except KeyError:
            raise UnresolvedDependency(name, platform, "no entry in package table") from None

    def realise(self, package: ResolvedPackage) -> None:
        """Table entries are pinned locations; nothing to realise."""

    def platforms(self) -> list[PlatformKey]:
        return sorted(self._table)

    @classmethod
    def from_config(
        cls,
        data: Mapping[str, Any],
        *,
        base_dir: Path | None = None,
        location: str | None = None,
    ) -> TableResolver:
        """Build a resolver from ``[resolver.packages]`` config tables.

        Each platform table maps package names to a table with a required
        ``root`` and optional ``include``, ``lib``, ``bin`` and
        ``pkgconfig`` directories. Relative paths are taken relative to
        ``base_dir``.

        Raises:
            ConfigureError: If a platform or entry is malformed.
        """
        resolver = cls()
        for platform_name, entries in data.items():
            try:
                platform = PlatformKey.parse(platform_name)
            except ValueError as e:
                raise ConfigureError(str(e), location) from None
            if not isinstance(entries, Mapping):
                raise ConfigureError(
                    f"resolver.packages.{platform_name} must be a table", location
                )

            for pkg_name, entry in entries.items():
                if not isinstance(entry, Mapping) or "root" not in entry:
                    raise ConfigureError(
                        f"resolver.packages.{platform_name}.{pkg_name} needs a 'root'",
                        location,
                    )
                unknown = set(entry) - set(_DIR_KEYS) - {"root"}
                if unknown:
                    raise ConfigureError(
                        f"resolver.packages.{platform_name}.{pkg_name}: "
                        f"unknown keys {', '.join(sorted(unknown))}",
                        location,
                    )
                dirs = {
                    field: _as_path(entry[key], base_dir)
                    for key, field in _DIR_KEYS.items()
                    if key in entry
                }
                resolver.add(
                    ResolvedPackage(
                        name=pkg_name,
                        platform=platform,
                        root=_as_path(entry["root"], base_dir),
                        **dirs,
                    )
                )
        return resolver

    def __repr__(self) -> str:
        counts = ", ".join(f"{p}={len(v)}" for p, v in sorted(self._table.items()))
        return f"TableResolver({counts})"


def _as_path(value: str, base_dir: Path | None) -> Path:
    path = Path(value)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    return path
