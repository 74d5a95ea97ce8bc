# SPDX-License-Identifier: MIT
"""Environment assembly: search paths and session bindings.

The EnvironmentAssembler turns a declared list of dependency descriptors
into the search paths a native build needs (headers and libraries for the
compiler and linker) and the search path the dynamic loader needs to run
the result, then exposes them as environment bindings for a session.

Assembly is a pure function of the descriptors, the platform and the
resolver's state. It is all-or-nothing: if any descriptor cannot be
resolved, no bindings are produced.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator, Mapping, Sequence

from devshell.core.dependency import DependencyDescriptor, ResolvedPackage
from devshell.core.errors import ResolutionFailure
from devshell.core.pathset import PathSet

if TYPE_CHECKING:
    from devshell.core.platform import PlatformKey
    from devshell.resolvers.base import Resolver
    from devshell.tools.toolchain import Toolchain

logger = logging.getLogger(__name__)

# Variable names are a stable contract with editors and linkers.
SOURCE_PATH_VAR = "RUST_SRC_PATH"
LOADER_PATH_VAR = "LD_LIBRARY_PATH"
LIBRARY_PATH_VAR = "LIBRARY_PATH"
INCLUDE_PATH_VAR = "CPATH"
PKG_CONFIG_PATH_VAR = "PKG_CONFIG_PATH"
PATH_VAR = "PATH"


@dataclass(frozen=True)
class EnvironmentBinding:
    """A name/value pair exposed to a session.

    Attributes:
        name: Environment variable name.
        value: Value to export.
        prepend: If True, the value goes in front of the inherited value
            instead of replacing it.
        separator: Path-list separator used when prepending.
    """

    name: str
    value: str
    prepend: bool = False
    separator: str = ":"


class EnvironmentBindings:
    """Ordered, immutable collection of environment bindings.

    Supports mapping-style lookup by variable name:
        bindings["LD_LIBRARY_PATH"]
        "RUST_SRC_PATH" in bindings
    """

    __slots__ = ("_bindings",)

    def __init__(self, bindings: Iterable[EnvironmentBinding] = ()) -> None:
        items: dict[str, EnvironmentBinding] = {}
        for binding in bindings:
            if binding.name in items:
                raise ValueError(f"duplicate binding for {binding.name}")
            items[binding.name] = binding
        self._bindings = tuple(items.values())

    def get(self, name: str, default: str | None = None) -> str | None:
        for binding in self._bindings:
            if binding.name == name:
                return binding.value
        return default

    def binding(self, name: str) -> EnvironmentBinding:
        for binding in self._bindings:
            if binding.name == name:
                return binding
        raise KeyError(name)

    def names(self) -> list[str]:
        return [b.name for b in self._bindings]

    def to_dict(self) -> dict[str, str]:
        return {b.name: b.value for b in self._bindings}

    def __getitem__(self, name: str) -> str:
        return self.binding(name).value

    def __contains__(self, name: object) -> bool:
        return any(b.name == name for b in self._bindings)

    def __iter__(self) -> Iterator[EnvironmentBinding]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnvironmentBindings):
            return NotImplemented
        return self._bindings == other._bindings

    def __repr__(self) -> str:
        return f"EnvironmentBindings([{', '.join(self.names())}])"


@dataclass
class Assembly:
    """Result of assembling an environment for one platform.

    Attributes:
        platform: Platform the environment was assembled for.
        packages: Descriptors paired with their resolved packages, in
            declaration order.
        compile_paths: Include and library directories of build-role
            packages (compiler/linker search path).
        include_paths: The include directories of compile_paths.
        library_paths: The library directories of compile_paths.
        loader_paths: Library directories of runtime-role packages.
        pkgconfig_paths: pkg-config directories of build-role packages.
        bin_paths: Executable directories of all packages.
        source_path: The toolchain's bundled source directory, if any.
        bindings: The environment bindings for a session.
    """

    platform: PlatformKey
    packages: list[tuple[DependencyDescriptor, ResolvedPackage]] = field(default_factory=list)
    compile_paths: PathSet = field(default_factory=PathSet)
    include_paths: PathSet = field(default_factory=PathSet)
    library_paths: PathSet = field(default_factory=PathSet)
    loader_paths: PathSet = field(default_factory=PathSet)
    pkgconfig_paths: PathSet = field(default_factory=PathSet)
    bin_paths: PathSet = field(default_factory=PathSet)
    source_path: str | None = None
    bindings: EnvironmentBindings = field(default_factory=EnvironmentBindings)


class EnvironmentAssembler:
    """Assemble search paths and session bindings from declared packages.

    Example:
        assembler = EnvironmentAssembler(resolver, toolchain=RustToolchain())
        assembly = assembler.assemble(descriptors, PlatformKey("linux", "x86_64"))
        assembly.bindings["LD_LIBRARY_PATH"]

    Args:
        resolver: Resolver mapping package names to locations.
        toolchain: Optional toolchain; its source package provides the
            source path binding.
    """

    def __init__(self, resolver: Resolver, toolchain: Toolchain | None = None) -> None:
        self._resolver = resolver
        self._toolchain = toolchain

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    @property
    def toolchain(self) -> Toolchain | None:
        return self._toolchain

    def assemble(
        self,
        descriptors: Sequence[DependencyDescriptor],
        platform: PlatformKey,
        *,
        realise: bool = False,
    ) -> Assembly:
        """Assemble the environment for one platform.

        Args:
            descriptors: Declared packages in declaration order.
            platform: Target platform.
            realise: Make sure every resolved package exists on disk
                before producing bindings. Callers that run tools from
                the environment (a shell session, a build) set this.

        Returns:
            The assembled path sets and bindings.

        Raises:
            UnresolvedDependency: If a descriptor has no mapping for the
                platform. Nothing is produced in that case.
            ResolutionFailure: If the resolver backend fails.
        """
        logger.debug("Assembling %d packages for %s", len(descriptors), platform)

        # Resolve everything before building anything (all-or-nothing)
        packages = [(d, self._resolver.resolve(d.name, platform)) for d in descriptors]
        source = self._resolve_source(platform)
        if realise:
            for _, package in packages:
                self._resolver.realise(package)
            if source is not None:
                self._resolver.realise(source)
        source_path = os.fspath(source.root) if source is not None else None

        assembly = Assembly(platform=platform, packages=packages, source_path=source_path)
        for descriptor, package in packages:
            if descriptor.is_build:
                assembly.compile_paths.add(package.include_dir)
                assembly.compile_paths.add(package.lib_dir)
                assembly.include_paths.add(package.include_dir)
                assembly.library_paths.add(package.lib_dir)
                assembly.pkgconfig_paths.add(package.pkgconfig_dir)
            if descriptor.is_runtime:
                assembly.loader_paths.add(package.lib_dir)
            assembly.bin_paths.add(package.bin_dir)

        assembly.bindings = self._make_bindings(assembly)
        return assembly

    def assemble_all(
        self,
        descriptors: Sequence[DependencyDescriptor],
        platforms: Iterable[PlatformKey],
    ) -> dict[PlatformKey, Assembly | ResolutionFailure]:
        """Assemble once per platform.

        Each platform is assembled independently. A resolution failure on
        one platform is recorded as that platform's result and does not
        affect the others.

        Returns:
            Platform to Assembly, or to the ResolutionFailure that stopped it.
        """
        results: dict[PlatformKey, Assembly | ResolutionFailure] = {}
        for platform in platforms:
            try:
                results[platform] = self.assemble(descriptors, platform)
            except ResolutionFailure as e:
                logger.info("Assembly failed for %s: %s", platform, e)
                results[platform] = e
        return results

    def _resolve_source(self, platform: PlatformKey) -> ResolvedPackage | None:
        if self._toolchain is None or self._toolchain.source_package is None:
            return None
        return self._resolver.resolve(self._toolchain.source_package, platform)

    def _make_bindings(self, assembly: Assembly) -> EnvironmentBindings:
        sep = assembly.platform.path_separator
        bindings: list[EnvironmentBinding] = []

        if assembly.source_path is not None:
            bindings.append(EnvironmentBinding(SOURCE_PATH_VAR, assembly.source_path))
        bindings.append(
            EnvironmentBinding(LOADER_PATH_VAR, assembly.loader_paths.join(sep), separator=sep)
        )

        optional = (
            (LIBRARY_PATH_VAR, assembly.library_paths, False),
            (INCLUDE_PATH_VAR, assembly.include_paths, False),
            (PKG_CONFIG_PATH_VAR, assembly.pkgconfig_paths, False),
            (PATH_VAR, assembly.bin_paths, True),
        )
        for name, paths, prepend in optional:
            if paths:
                bindings.append(
                    EnvironmentBinding(name, paths.join(sep), prepend=prepend, separator=sep)
                )

        return EnvironmentBindings(bindings)


def apply_bindings(
    bindings: EnvironmentBindings,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Produce a process environment with the bindings exported.

    Plain bindings replace the inherited value; prepend bindings are put
    in front of it. The base environment is not modified.

    Args:
        bindings: Bindings to export.
        base_env: Inherited environment (default: os.environ).

    Returns:
        A new environment dict.
    """
    env = dict(os.environ if base_env is None else base_env)
    for binding in bindings:
        inherited = env.get(binding.name)
        if binding.prepend and inherited:
            env[binding.name] = binding.value + binding.separator + inherited
        else:
            env[binding.name] = binding.value
    return env
