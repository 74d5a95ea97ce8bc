# SPDX-License-Identifier: MIT
"""Shared fixtures for devshell tests."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from devshell.core.dependency import DependencyDescriptor, ResolvedPackage, Role
from devshell.core.errors import CompilationFailure
from devshell.core.platform import PlatformKey
from devshell.resolvers.table import TableResolver
from devshell.tools.toolchain import BaseToolchain, ToolRole, ToolSpec
from devshell.util.toml import load_toml

LINUX = PlatformKey("linux", "x86_64")
MACOS = PlatformKey("macos", "arm64")

PYTHON = Path(sys.executable)


class ScriptToolchain(BaseToolchain):
    """Toolchain that builds by running build.py with the current Python.

    The manifest is package.toml with name and version keys; build.py
    gets the target directory as its only argument and the artifact is
    everything it writes to <target_dir>/out.
    """

    manifest_name = "package.toml"
    source_package = "script-src"

    def __init__(self) -> None:
        super().__init__(
            "script",
            [
                ToolSpec(PYTHON.name, "python"),
                ToolSpec("formatter", "formatter", ToolRole.INTERACTIVE),
            ],
            driver=PYTHON.name,
        )

    def build_command(self, executable: str, target_dir: Path) -> list[str]:
        return [executable, "build.py", str(target_dir)]

    def collect_artifacts(self, target_dir: Path) -> list[Path]:
        out = target_dir / "out"
        return sorted(p for p in out.iterdir() if p.is_file()) if out.is_dir() else []

    def read_manifest(self, source_tree: Path) -> dict[str, Any]:
        manifest = source_tree / self.manifest_name
        if not manifest.is_file():
            raise CompilationFailure(f"no {self.manifest_name} in {source_tree}")
        data = load_toml(manifest)
        return {"name": data["name"], "version": data.get("version", "0.0.0")}


def python_package(platform: PlatformKey = LINUX) -> ResolvedPackage:
    return ResolvedPackage(
        name="python",
        platform=platform,
        root=PYTHON.parent.parent,
        bin_dir=PYTHON.parent,
    )


@pytest.fixture
def script_toolchain() -> ScriptToolchain:
    return ScriptToolchain()


@pytest.fixture
def scenario_resolver() -> TableResolver:
    """Resolver for a compiler, a graphics library and a windowing library.

    All three resolve on linux-x86_64; the windowing library has no
    mapping on macos-arm64.
    """
    resolver = TableResolver()
    for platform in (LINUX, MACOS):
        store = Path(f"/store/{platform}")
        resolver.add(
            ResolvedPackage(
                "compiler",
                platform,
                store / "compiler",
                include_dir=store / "compiler" / "include",
                bin_dir=store / "compiler" / "bin",
            )
        )
        resolver.add(
            ResolvedPackage(
                "graphicsLib",
                platform,
                store / "graphics",
                lib_dir=store / "graphics" / "lib",
            )
        )
    resolver.add(
        ResolvedPackage(
            "windowingLib",
            LINUX,
            Path("/store/linux-x86_64/windowing"),
            lib_dir=Path("/store/linux-x86_64/windowing/lib"),
        )
    )
    return resolver


@pytest.fixture
def scenario_descriptors() -> list[DependencyDescriptor]:
    return [
        DependencyDescriptor("compiler", Role.BUILD),
        DependencyDescriptor("graphicsLib", Role.BOTH),
        DependencyDescriptor("windowingLib", Role.RUNTIME),
    ]


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A valid package for ScriptToolchain."""
    tree = tmp_path / "src"
    tree.mkdir()
    (tree / "package.toml").write_text('name = "hello"\nversion = "1.2.3"\n')
    (tree / "build.py").write_text(
        "import pathlib, sys\n"
        "out = pathlib.Path(sys.argv[1]) / 'out'\n"
        "out.mkdir(parents=True, exist_ok=True)\n"
        "(out / 'hello').write_text('hello from ' + open('main.txt').read())\n"
    )
    (tree / "main.txt").write_text("main\n")
    return tree


@pytest.fixture
def python_resolver() -> TableResolver:
    """Resolver that provides the running Python as package 'python'."""
    resolver = TableResolver()
    resolver.add(python_package())
    return resolver


@pytest.fixture
def script_toolchain_kind(monkeypatch: pytest.MonkeyPatch) -> str:
    """Register ScriptToolchain as toolchain kind 'script' for config files."""
    import devshell.toolchains

    monkeypatch.setitem(devshell.toolchains._TOOLCHAINS, "script", ScriptToolchain)
    return "script"


@pytest.fixture
def linux_assembly(scenario_resolver: TableResolver, scenario_descriptors):
    """Assembly of the scenario packages on linux-x86_64."""
    from devshell.core.environment import EnvironmentAssembler

    return EnvironmentAssembler(scenario_resolver).assemble(scenario_descriptors, LINUX)


class FakeNix:
    """Stand-in for subprocess.run that answers nix commands.

    ``nix eval`` reports a single 'out' output under /nix/store for the
    evaluated attribute, ``nix build`` succeeds. Any other command (the
    build driver, a shell) exits 0. Every command is recorded.
    """

    def __init__(self) -> None:
        self.commands: list[list[str]] = []

    def __call__(self, cmd, *args, **kwargs):
        self.commands.append(list(cmd))
        stdout = ""
        if "eval" in cmd:
            attr = cmd[cmd.index("eval") + 2].rsplit(".", 1)[-1]
            stdout = json.dumps({"available": True, "outputs": {"out": f"/nix/store/h-{attr}"}})
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

    def builds(self) -> list[str]:
        """Installables passed to ``nix build --no-link``."""
        return [c[-1] for c in self.commands if "build" in c and "--no-link" in c]


@pytest.fixture
def fake_nix():
    """Patch nix lookup and subprocess.run with FakeNix.

    shutil.which answers every name, so resolved tools appear to exist.
    """
    nix = FakeNix()
    with (
        patch(
            "devshell.resolvers.nix.shutil.which",
            side_effect=lambda name, **kw: f"/run/bin/{name}",
        ),
        patch("devshell.resolvers.nix.subprocess.run", side_effect=nix),
    ):
        yield nix
