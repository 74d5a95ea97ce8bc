# SPDX-License-Identifier: MIT
"""Project declaration for devshell.

The Configure class loads devshell.toml, the project's only configuration
surface: the toolchain, the ordered list of native dependencies with their
roles, the platforms to evaluate, the resolver, and the store directory.

Example devshell.toml:

    [project]
    name = "map-editor"

    [toolchain]
    kind = "rust"

    [dependencies]
    alsa-lib = "both"
    vulkan-loader = "runtime"

    [resolver]
    kind = "nix"
    flake = "github:NixOS/nixpkgs/nixpkgs-unstable"
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from devshell.core.dependency import DependencyDescriptor, Role
from devshell.core.errors import ConfigureError
from devshell.core.platform import DEFAULT_PLATFORMS, PlatformKey
from devshell.resolvers import NixResolver, PrefixResolver, Resolver, TableResolver
from devshell.toolchains import find_toolchain
from devshell.tools.toolchain import BaseToolchain
from devshell.util.toml import TOMLDecodeError, load_toml

logger = logging.getLogger(__name__)

CONFIG_FILE = "devshell.toml"
DEFAULT_STORE_DIR = ".devshell/store"

RESOLVER_KINDS = ("nix", "prefix", "table")


def get_var(name: str, default: str | None = None) -> str | None:
    """Get a devshell setting from the environment.

    Recognized variables:
        DEVSHELL_PLATFORM - platform for `env` and `shell` (default: host)
        DEVSHELL_STORE    - store directory override

    Args:
        name: Variable name.
        default: Default value if not set.
    """
    return os.environ.get(name) or default


@dataclass
class ProjectConfig:
    """Parsed devshell.toml.

    Attributes:
        name: Project name.
        root_dir: Directory containing devshell.toml.
        toolchain: Configured toolchain.
        dependencies: Declared native dependencies in declaration order.
        platforms: Platforms to evaluate.
        resolver: Resolver for package locations.
        store_dir: Directory for build artifacts.
        path: The config file.
    """

    name: str
    root_dir: Path
    toolchain: BaseToolchain
    resolver: Resolver
    dependencies: list[DependencyDescriptor] = field(default_factory=list)
    platforms: list[PlatformKey] = field(default_factory=lambda: list(DEFAULT_PLATFORMS))
    store_dir: Path = Path(DEFAULT_STORE_DIR)
    path: Path | None = None

    def descriptors(self) -> list[DependencyDescriptor]:
        """All descriptors for the session: toolchain first, then dependencies."""
        return [*self.toolchain.descriptors(), *self.dependencies]


class Configure:
    """Loader for devshell.toml.

    Example:
        config = Configure.load(Path("devshell.toml"))
        config.dependencies   # [DependencyDescriptor('udev', Role.BOTH), ...]
    """

    @staticmethod
    def find(start_dir: Path | None = None) -> Path | None:
        """Find devshell.toml in start_dir or one of its parents.

        Args:
            start_dir: Directory to start from (default: current dir).

        Returns:
            Path to the config file, or None if there is none.
        """
        current = (start_dir or Path.cwd()).resolve()
        for directory in (current, *current.parents):
            candidate = directory / CONFIG_FILE
            if candidate.is_file():
                return candidate
        return None

    @classmethod
    def load(cls, path: Path | str) -> ProjectConfig:
        """Load and validate a config file.

        Raises:
            ConfigureError: If the file is missing or invalid.
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigureError(f"config file not found: {path}")
        try:
            data = load_toml(path)
        except TOMLDecodeError as e:
            raise ConfigureError(f"invalid TOML: {e}", str(path)) from e
        except OSError as e:
            raise ConfigureError(f"cannot read config: {e}", str(path)) from e

        return cls.from_dict(data, root_dir=path.parent.resolve(), path=path)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        root_dir: Path,
        path: Path | None = None,
    ) -> ProjectConfig:
        """Build a ProjectConfig from parsed TOML data.

        Raises:
            ConfigureError: If the data is invalid.
        """
        location = str(path) if path else None

        project = _table(data, "project", location)
        name = project.get("name") or root_dir.name
        platforms = cls._parse_platforms(project.get("platforms"), location)

        toolchain = cls._parse_toolchain(_table(data, "toolchain", location), location)
        dependencies = cls._parse_dependencies(_table(data, "dependencies", location), location)
        resolver = cls._parse_resolver(_table(data, "resolver", location), root_dir, location)

        store = _table(data, "store", location)
        store_value = get_var("DEVSHELL_STORE") or store.get("dir", DEFAULT_STORE_DIR)
        if not isinstance(store_value, str):
            raise ConfigureError("store.dir must be a path", location)
        store_dir = Path(store_value)
        if not store_dir.is_absolute():
            store_dir = root_dir / store_dir

        config = ProjectConfig(
            name=str(name),
            root_dir=root_dir,
            toolchain=toolchain,
            resolver=resolver,
            dependencies=dependencies,
            platforms=platforms,
            store_dir=store_dir,
            path=path,
        )
        logger.debug(
            "Loaded %s: %d dependencies, %d platforms, resolver=%s",
            location or "config",
            len(dependencies),
            len(platforms),
            resolver.name,
        )
        return config

    @staticmethod
    def _parse_platforms(value: Any, location: str | None) -> list[PlatformKey]:
        if value is None:
            return list(DEFAULT_PLATFORMS)
        if not isinstance(value, list) or not value:
            raise ConfigureError("project.platforms must be a non-empty list", location)
        platforms: list[PlatformKey] = []
        for item in value:
            try:
                platform = PlatformKey.parse(str(item))
            except ValueError as e:
                raise ConfigureError(str(e), location) from None
            if platform not in platforms:
                platforms.append(platform)
        return platforms

    @staticmethod
    def _parse_toolchain(table: Mapping[str, Any], location: str | None) -> BaseToolchain:
        options = dict(table)
        kind = options.pop("kind", "rust")
        try:
            return find_toolchain(str(kind), **options)
        except ConfigureError as e:
            raise ConfigureError(e.message, location) from None
        except (TypeError, ValueError) as e:
            raise ConfigureError(f"invalid toolchain options: {e}", location) from None

    @staticmethod
    def _parse_dependencies(
        table: Mapping[str, Any], location: str | None
    ) -> list[DependencyDescriptor]:
        dependencies = []
        for name, role in table.items():
            if not isinstance(role, str):
                raise ConfigureError(f"dependencies.{name}: role must be a string", location)
            try:
                dependencies.append(DependencyDescriptor(name, Role.parse(role)))
            except ValueError as e:
                raise ConfigureError(f"dependencies.{name}: {e}", location) from None
        return dependencies

    @staticmethod
    def _parse_resolver(
        table: Mapping[str, Any], root_dir: Path, location: str | None
    ) -> Resolver:
        kind = table.get("kind", "nix")
        if kind == "nix":
            flake = table.get("flake", "nixpkgs")
            if not isinstance(flake, str):
                raise ConfigureError("resolver.flake must be a string", location)
            realise = table.get("realise", False)
            if not isinstance(realise, bool):
                raise ConfigureError("resolver.realise must be true or false", location)
            attributes = table.get("attributes", {})
            if not isinstance(attributes, Mapping) or not all(
                isinstance(v, str) for v in attributes.values()
            ):
                raise ConfigureError(
                    "resolver.attributes must be a table of attribute paths", location
                )
            return NixResolver(flake, attributes=attributes, realise=realise)
        if kind == "prefix":
            prefixes = table.get("prefixes")
            if prefixes is not None and (
                not isinstance(prefixes, list) or not all(isinstance(p, str) for p in prefixes)
            ):
                raise ConfigureError("resolver.prefixes must be a list of paths", location)
            return PrefixResolver(prefixes)
        if kind == "table":
            return TableResolver.from_config(
                _table(table, "packages", location), base_dir=root_dir, location=location
            )
        raise ConfigureError(
            f"unknown resolver '{kind}' (expected one of: {', '.join(RESOLVER_KINDS)})",
            location,
        )


def _table(data: Mapping[str, Any], key: str, location: str | None) -> Mapping[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, Mapping):
        raise ConfigureError(f"[{key}] must be a table", location)
    return value
