# SPDX-License-Identifier: MIT
"""Toolchain protocol and base implementation.

A Toolchain is a coordinated set of tools that work together (e.g. the
Rust toolchain pairs cargo and rustc with a C compiler and a fast linker).
Each tool declares whether it is needed to build the package or only in
the interactive session, which decides how it contributes to the
assembled environment.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable

from devshell.core.dependency import DependencyDescriptor, Role


class ToolRole(enum.Enum):
    """Whether a tool is needed for building or only for development."""

    BUILD = "build"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class ToolSpec:
    """One tool of a toolchain.

    Attributes:
        name: Tool name as invoked (e.g. 'cargo', 'rust-analyzer').
        package: Package providing the tool (resolver name).
        role: Whether the build needs it.
    """

    name: str
    package: str
    role: ToolRole = ToolRole.BUILD

    def descriptor(self) -> DependencyDescriptor:
        role = Role.BUILD if self.role is ToolRole.BUILD else Role.SHELL
        return DependencyDescriptor(self.package, role)


@runtime_checkable
class Toolchain(Protocol):
    """Protocol for toolchains.

    A Toolchain represents a coordinated set of tools that work together.
    Switching toolchains switches all related tools atomically.
    """

    @property
    def name(self) -> str:
        """Toolchain name (e.g., 'rust')."""
        ...

    @property
    def tools(self) -> dict[str, ToolSpec]:
        """Tools in this toolchain, keyed by tool name."""
        ...

    @property
    def manifest_name(self) -> str:
        """File that marks a source tree as a package for this toolchain."""
        ...

    @property
    def driver(self) -> str:
        """Name of the tool that runs the build."""
        ...

    @property
    def source_package(self) -> str | None:
        """Package holding the toolchain's bundled sources, if any."""
        ...

    def descriptors(self) -> list[DependencyDescriptor]:
        """Dependency descriptors for every tool of the toolchain."""
        ...

    def build_command(self, executable: str, target_dir: Path) -> list[str]:
        """Command that builds the package into target_dir."""
        ...

    def collect_artifacts(self, target_dir: Path) -> list[Path]:
        """Files from target_dir that make up the build artifact."""
        ...

    def read_manifest(self, source_tree: Path) -> dict[str, Any]:
        """Read the package manifest; must provide 'name' and 'version'."""
        ...


class BaseToolchain(ABC):
    """Abstract base class for toolchains.

    Provides the tool bookkeeping. Subclasses declare their tools and
    implement the build command, artifact collection and manifest
    parsing.
    """

    manifest_name = ""
    source_package: str | None = None

    def __init__(self, name: str, tools: Sequence[ToolSpec], *, driver: str) -> None:
        """Initialize a toolchain.

        Args:
            name: Toolchain name.
            tools: Tools in declaration order.
            driver: Name of the tool that runs the build.

        Raises:
            TypeError: If a tool is not a ToolSpec.
            ValueError: If the driver is not one of the build tools.
        """
        self._name = name
        self._tools: dict[str, ToolSpec] = {}
        for tool in tools:
            if not isinstance(tool, ToolSpec):
                raise TypeError(f"tools of toolchain {name} must be ToolSpec, not {tool!r}")
            if tool.name in self._tools:
                raise ValueError(f"duplicate tool '{tool.name}' in toolchain {name}")
            self._tools[tool.name] = tool

        driver_tool = self._tools.get(driver)
        if driver_tool is None or driver_tool.role is not ToolRole.BUILD:
            raise ValueError(f"driver '{driver}' must be a build tool of toolchain {name}")
        self._driver = driver

    @property
    def name(self) -> str:
        return self._name

    @property
    def tools(self) -> dict[str, ToolSpec]:
        return self._tools

    @property
    def driver(self) -> str:
        return self._driver

    def build_tools(self) -> list[ToolSpec]:
        return [t for t in self._tools.values() if t.role is ToolRole.BUILD]

    def interactive_tools(self) -> list[ToolSpec]:
        return [t for t in self._tools.values() if t.role is ToolRole.INTERACTIVE]

    def descriptors(self) -> list[DependencyDescriptor]:
        """Descriptors for all tools, build tools keeping BUILD role.

        Several tools may come from one package; the package is listed
        once, with the union of the roles its tools need.
        """
        roles: dict[str, Role] = {}
        for tool in self._tools.values():
            role = tool.descriptor().role
            if tool.package in roles:
                roles[tool.package] |= role
            else:
                roles[tool.package] = role
        return [DependencyDescriptor(package, role) for package, role in roles.items()]

    def fingerprint(self) -> dict[str, Any]:
        """Stable description of the toolchain for content addressing."""
        return {
            "name": self._name,
            "driver": self._driver,
            "tools": [[t.name, t.package, t.role.value] for t in self._tools.values()],
            "source_package": self.source_package,
        }

    @abstractmethod
    def build_command(self, executable: str, target_dir: Path) -> list[str]:
        """Return the build command.

        Args:
            executable: Resolved path of the driver tool.
            target_dir: Scratch directory for build outputs.
        """
        ...

    @abstractmethod
    def collect_artifacts(self, target_dir: Path) -> list[Path]:
        ...

    @abstractmethod
    def read_manifest(self, source_tree: Path) -> dict[str, Any]:
        ...

    def __repr__(self) -> str:
        tools = ", ".join(self._tools.keys())
        return f"{self.__class__.__name__}({self.name!r}, tools=[{tools}])"
