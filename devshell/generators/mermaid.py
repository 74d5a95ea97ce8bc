# SPDX-License-Identifier: MIT
"""Mermaid diagram generator for environment visualization.

Generates Mermaid flowchart syntax showing which declared packages feed
which search paths. Output can be rendered in GitHub markdown,
documentation tools, or the Mermaid live editor (https://mermaid.live).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from devshell.generators.generator import BaseGenerator

if TYPE_CHECKING:
    from devshell.core.dependency import DependencyDescriptor, ResolvedPackage
    from devshell.core.environment import Assembly


class MermaidGenerator(BaseGenerator):
    """Generator that produces Mermaid flowchart diagrams.

    Example output:
        ```mermaid
        flowchart LR
          compile[(compile/link paths)]
          loader[(loader paths)]
          path[(PATH)]
          alsa_lib([alsa-lib])
          alsa_lib --> compile
          alsa_lib --> loader
        ```

    Usage:
        generator = MermaidGenerator()
        generator.generate(assembly, Path("build"))
        # Creates build/devshell.mmd
    """

    SINKS = (
        ("compile", "compile/link paths"),
        ("loader", "loader paths"),
        ("path", "PATH"),
    )

    def __init__(
        self,
        *,
        direction: str = "LR",
        output_filename: str = "devshell.mmd",
    ) -> None:
        """Initialize the Mermaid generator.

        Args:
            direction: Graph direction - "LR" (left-right), "TB" (top-bottom),
                      "RL" (right-left), or "BT" (bottom-top).
            output_filename: Name of the output file.
        """
        super().__init__("mermaid", output_filename)
        self._direction = direction

    def render(self, assembly: Assembly) -> str:
        lines = [
            "---",
            f"title: devshell environment ({assembly.platform})",
            "---",
            f"flowchart {self._direction}",
        ]
        if not assembly.packages:
            lines.append("  empty[No packages]")
            return "\n".join(lines) + "\n"

        for sink_id, label in self.SINKS:
            lines.append(f"  {sink_id}[({label})]")
        for descriptor, _ in assembly.packages:
            node_id = self._sanitize_id(descriptor.name)
            lines.append(f"  {node_id}{self._shape(descriptor)}")

        lines.append("")
        for descriptor, package in assembly.packages:
            node_id = self._sanitize_id(descriptor.name)
            for sink in self._sinks_for(descriptor, package):
                lines.append(f"  {node_id} --> {sink}")
        return "\n".join(lines) + "\n"

    def _sinks_for(self, descriptor: DependencyDescriptor, package: ResolvedPackage) -> list[str]:
        sinks = []
        if descriptor.is_build and (package.include_dir or package.lib_dir):
            sinks.append("compile")
        if descriptor.is_runtime and package.lib_dir:
            sinks.append("loader")
        if package.bin_dir:
            sinks.append("path")
        return sinks

    def _shape(self, descriptor: DependencyDescriptor) -> str:
        """Mermaid node with a shape for the role."""
        name = descriptor.name
        if descriptor.is_build and descriptor.is_runtime:
            return f"([{name}])"  # Stadium for build + runtime
        if descriptor.is_runtime:
            return f"{{{{{name}}}}}"  # Hexagon for runtime-only
        if descriptor.is_build:
            return f"[{name}]"
        return f"({name})"  # Rounded for shell tools

    def _sanitize_id(self, name: str) -> str:
        """Sanitize a name for use as a Mermaid node ID."""
        result = name.replace("/", "_").replace("\\", "_")
        result = result.replace(".", "_").replace("-", "_")
        result = result.replace(" ", "_").replace(":", "_")
        if result and result[0].isdigit():
            result = "n" + result
        # Keep package ids apart from the sink nodes
        if result in {sink for sink, _ in self.SINKS}:
            result = "pkg_" + result
        return result
