# SPDX-License-Identifier: MIT
"""Custom exceptions for devshell.

All devshell exceptions inherit from DevshellError, which includes
optional source location information for better error messages.

None of these are retried: they come from declaration or environment
problems that the caller has to fix.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devshell.core.platform import PlatformKey


class DevshellError(Exception):
    """Base class for all devshell exceptions.

    Attributes:
        message: The error message.
        location: Optional location (usually a config file) where the
            error originated.
    """

    def __init__(
        self,
        message: str,
        location: str | None = None,
    ) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ConfigureError(DevshellError):
    """Invalid or missing project declaration.

    Raised when devshell.toml is missing, malformed, or names an unknown
    role, toolchain or resolver.
    """


class GenerateError(DevshellError):
    """Error while writing generated environment files."""


class ResolutionFailure(DevshellError):
    """A declared package or toolchain cannot be mapped to a location.

    Also raised when the resolver backend itself fails (e.g. the package
    manager is not installed).
    """


class UnresolvedDependency(ResolutionFailure):
    """A specific package has no mapping for the requested platform.

    Attributes:
        dependency: Name of the unresolved package.
        platform: The platform it was requested for.
    """

    def __init__(
        self,
        dependency: str,
        platform: PlatformKey,
        reason: str | None = None,
        location: str | None = None,
    ) -> None:
        self.dependency = dependency
        self.platform = platform
        message = f"unresolved dependency '{dependency}' for {platform}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, location)


class CompilationFailure(DevshellError):
    """The toolchain reported a build error.

    The toolchain's output is passed through verbatim and not
    interpreted.

    Attributes:
        output: Error text produced by the toolchain.
        returncode: Exit status of the toolchain, if it ran.
    """

    def __init__(
        self,
        output: str,
        returncode: int | None = None,
        location: str | None = None,
    ) -> None:
        self.output = output
        self.returncode = returncode
        super().__init__(output, location)
