# SPDX-License-Identifier: MIT
"""Tests for devshell.generators.mermaid."""

from __future__ import annotations

from pathlib import Path

import pytest

from devshell.core.dependency import DependencyDescriptor, ResolvedPackage, Role
from devshell.core.environment import Assembly
from devshell.core.errors import GenerateError
from devshell.core.platform import PlatformKey
from devshell.generators import MermaidGenerator


class TestMermaidGenerator:
    """Tests for MermaidGenerator."""

    def test_header(self, linux_assembly: Assembly) -> None:
        text = MermaidGenerator(direction="TB").render(linux_assembly)
        assert text.startswith(
            "---\ntitle: devshell environment (linux-x86_64)\n---\nflowchart TB\n"
        )

    def test_nodes_and_edges(self, linux_assembly: Assembly) -> None:
        text = MermaidGenerator().render(linux_assembly)

        assert "  compiler[compiler]" in text
        assert "  graphicsLib([graphicsLib])" in text
        assert "  windowingLib{{windowingLib}}" in text
        assert "  compiler --> compile" in text
        assert "  compiler --> path" in text
        assert "  graphicsLib --> compile" in text
        assert "  graphicsLib --> loader" in text
        assert "  windowingLib --> loader" in text
        assert "windowingLib --> compile" not in text

    def test_empty(self) -> None:
        text = MermaidGenerator().render(Assembly(platform=PlatformKey("macos", "arm64")))
        assert "empty[No packages]" in text

    def test_sanitize_ids(self) -> None:
        platform = PlatformKey("linux", "x86_64")
        packages = [
            (
                DependencyDescriptor("xorg.libX11", Role.RUNTIME),
                ResolvedPackage("xorg.libX11", platform, Path("/s/x11"), lib_dir=Path("/s/x11/lib")),
            ),
            (
                DependencyDescriptor("path", Role.SHELL),
                ResolvedPackage("path", platform, Path("/s/p"), bin_dir=Path("/s/p/bin")),
            ),
        ]
        text = MermaidGenerator().render(Assembly(platform=platform, packages=packages))
        assert "  xorg_libX11 --> loader" in text
        assert "  pkg_path(path)" in text
        assert "  pkg_path --> path" in text

    def test_generate_write_error(self, linux_assembly: Assembly, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(GenerateError, match="cannot write"):
            MermaidGenerator().generate(linux_assembly, blocker)
