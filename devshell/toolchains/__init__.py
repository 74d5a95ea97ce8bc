# SPDX-License-Identifier: MIT
"""Toolchain definitions."""

from __future__ import annotations

from typing import Any, Callable

from devshell.core.errors import ConfigureError
from devshell.tools.toolchain import BaseToolchain
from devshell.toolchains.rust import DEFAULT_RUST_TOOLS, RustToolchain

_TOOLCHAINS: dict[str, Callable[..., BaseToolchain]] = {
    "rust": RustToolchain,
}


def register_toolchain(kind: str, factory: Callable[..., BaseToolchain]) -> None:
    """Make a toolchain available to find_toolchain() and devshell.toml."""
    _TOOLCHAINS[kind] = factory


def toolchain_kinds() -> list[str]:
    return sorted(_TOOLCHAINS)


def find_toolchain(kind: str, **options: Any) -> BaseToolchain:
    """Create a toolchain by kind.

    Args:
        kind: Toolchain kind (e.g. 'rust').
        **options: Passed to the toolchain constructor.

    Raises:
        ConfigureError: If the kind is unknown.
    """
    factory = _TOOLCHAINS.get(kind)
    if factory is None:
        raise ConfigureError(
            f"unknown toolchain '{kind}' (available: {', '.join(toolchain_kinds())})"
        )
    return factory(**options)


__all__ = [
    "DEFAULT_RUST_TOOLS",
    "RustToolchain",
    "find_toolchain",
    "register_toolchain",
    "toolchain_kinds",
]
