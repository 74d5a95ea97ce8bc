# SPDX-License-Identifier: MIT
"""Environment file generators for devshell."""

from __future__ import annotations

from devshell.generators.generator import BaseGenerator, Generator
from devshell.generators.json_env import JsonGenerator
from devshell.generators.mermaid import MermaidGenerator
from devshell.generators.shell import SHELLS, ShellGenerator

GENERATORS = (*SHELLS, "json", "mermaid")


def get_generator(name: str) -> BaseGenerator:
    """Create a generator by name.

    Raises:
        ValueError: If the name is unknown.
    """
    if name in SHELLS:
        return ShellGenerator(name)
    if name == "json":
        return JsonGenerator()
    if name == "mermaid":
        return MermaidGenerator()
    raise ValueError(f"unknown generator {name!r} (expected one of: {', '.join(GENERATORS)})")


__all__ = [
    "BaseGenerator",
    "GENERATORS",
    "Generator",
    "JsonGenerator",
    "MermaidGenerator",
    "ShellGenerator",
    "get_generator",
]
