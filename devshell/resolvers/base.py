# SPDX-License-Identifier: MIT
"""Resolver protocol.

A Resolver maps abstract package names to concrete, platform-specific
store locations. The package manager behind it is external; devshell
only consumes the locations it hands back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from devshell.core.dependency import ResolvedPackage
    from devshell.core.platform import PlatformKey


@runtime_checkable
class Resolver(Protocol):
    """Protocol for dependency resolvers.

    Implementations must be deterministic for a fixed backend state: the
    same name and platform always resolve to the same location.
    """

    @property
    def name(self) -> str:
        """Resolver name (e.g., 'nix', 'prefix', 'table')."""
        ...

    def resolve(self, name: str, platform: PlatformKey) -> ResolvedPackage:
        """Resolve a package for one platform.

        Args:
            name: Abstract package name.
            platform: Target platform.

        Returns:
            The resolved package.

        Raises:
            UnresolvedDependency: If the package has no mapping for the
                platform.
            ResolutionFailure: If the backend itself fails.
        """
        ...

    def realise(self, package: ResolvedPackage) -> None:
        """Make sure a resolved package exists on disk.

        Called before the package's tools or libraries are used on the
        host. Resolvers whose locations are always on disk do nothing.

        Raises:
            ResolutionFailure: If the package cannot be realised.
        """
        ...
