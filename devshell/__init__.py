# SPDX-License-Identifier: MIT
"""
devshell: reproducible package builds and development environments.

devshell resolves a project's declared native dependencies for each target
platform, assembles the compiler, linker and dynamic-loader search paths
they need, and exposes them as environment bindings for an interactive
session. It also builds the project's package into a content-addressed
store with the same toolchain.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used classes for convenient imports
# These imports must be after __version__ is defined but we use noqa to allow it
from devshell.builders.package import BuildArtifact, PackageBuilder  # noqa: E402
from devshell.configure.config import Configure, ProjectConfig, get_var  # noqa: E402
from devshell.core.dependency import (  # noqa: E402
    DependencyDescriptor,
    ResolvedPackage,
    Role,
)
from devshell.core.environment import (  # noqa: E402
    Assembly,
    EnvironmentAssembler,
    EnvironmentBinding,
    EnvironmentBindings,
    apply_bindings,
)
from devshell.core.errors import (  # noqa: E402
    CompilationFailure,
    ConfigureError,
    DevshellError,
    ResolutionFailure,
    UnresolvedDependency,
)
from devshell.core.pathset import PathSet  # noqa: E402
from devshell.core.platform import DEFAULT_PLATFORMS, PlatformKey, get_platform  # noqa: E402
from devshell.toolchains import RustToolchain, find_toolchain  # noqa: E402

# Public API exports
__all__ = [
    # Version
    "__version__",
    # Environment variable access
    "get_var",
    # Data model
    "DependencyDescriptor",
    "PathSet",
    "PlatformKey",
    "ResolvedPackage",
    "Role",
    "DEFAULT_PLATFORMS",
    "get_platform",
    # Environment assembly
    "Assembly",
    "EnvironmentAssembler",
    "EnvironmentBinding",
    "EnvironmentBindings",
    "apply_bindings",
    # Building
    "BuildArtifact",
    "PackageBuilder",
    # Configuration
    "Configure",
    "ProjectConfig",
    # Toolchains
    "RustToolchain",
    "find_toolchain",
    # Errors
    "CompilationFailure",
    "ConfigureError",
    "DevshellError",
    "ResolutionFailure",
    "UnresolvedDependency",
]
