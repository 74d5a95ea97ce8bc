# SPDX-License-Identifier: MIT
"""Tests for devshell.core.environment."""

from __future__ import annotations

from pathlib import Path

import pytest

from devshell.core.dependency import DependencyDescriptor, ResolvedPackage, Role
from devshell.core.environment import (
    Assembly,
    EnvironmentAssembler,
    EnvironmentBinding,
    EnvironmentBindings,
    apply_bindings,
)
from devshell.core.errors import ResolutionFailure, UnresolvedDependency
from devshell.core.platform import PlatformKey
from devshell.resolvers.table import TableResolver

LINUX = PlatformKey("linux", "x86_64")
MACOS = PlatformKey("macos", "arm64")
WINDOWS = PlatformKey("windows", "x86_64")


class FakeToolchain:
    """Just enough of a toolchain to provide a source package."""

    source_package = "rust-src"


class TestEnvironmentBindings:
    """Tests for EnvironmentBindings."""

    def test_lookup(self) -> None:
        bindings = EnvironmentBindings(
            [EnvironmentBinding("A", "1"), EnvironmentBinding("B", "2", prepend=True)]
        )
        assert bindings["A"] == "1"
        assert bindings.get("C") is None
        assert "B" in bindings
        assert bindings.binding("B").prepend
        assert bindings.names() == ["A", "B"]
        assert bindings.to_dict() == {"A": "1", "B": "2"}

    def test_missing_name_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            EnvironmentBindings()["A"]

    def test_duplicate_name(self) -> None:
        with pytest.raises(ValueError, match="duplicate binding"):
            EnvironmentBindings([EnvironmentBinding("A", "1"), EnvironmentBinding("A", "2")])


class TestScenario:
    """A compiler, a graphics library and a windowing library."""

    def test_linux(self, scenario_resolver, scenario_descriptors) -> None:
        assembler = EnvironmentAssembler(scenario_resolver)
        assembly = assembler.assemble(scenario_descriptors, LINUX)

        assert assembly.compile_paths == [
            "/store/linux-x86_64/compiler/include",
            "/store/linux-x86_64/graphics/lib",
        ]
        assert assembly.loader_paths == [
            "/store/linux-x86_64/graphics/lib",
            "/store/linux-x86_64/windowing/lib",
        ]
        assert assembly.bindings["LD_LIBRARY_PATH"] == (
            "/store/linux-x86_64/graphics/lib:/store/linux-x86_64/windowing/lib"
        )

    def test_macos_missing_windowing_lib(self, scenario_resolver, scenario_descriptors) -> None:
        """An unresolvable descriptor fails the whole assembly."""
        assembler = EnvironmentAssembler(scenario_resolver)

        with pytest.raises(UnresolvedDependency) as excinfo:
            assembler.assemble(scenario_descriptors, MACOS)

        assert excinfo.value.dependency == "windowingLib"
        assert excinfo.value.platform == MACOS
        assert "windowingLib" in str(excinfo.value)

    def test_assemble_all_isolates_platforms(
        self, scenario_resolver, scenario_descriptors
    ) -> None:
        assembler = EnvironmentAssembler(scenario_resolver)
        results = assembler.assemble_all(scenario_descriptors, [LINUX, MACOS])

        assert list(results) == [LINUX, MACOS]
        assert isinstance(results[LINUX], Assembly)
        assert isinstance(results[MACOS], UnresolvedDependency)

    def test_idempotent(self, scenario_resolver, scenario_descriptors) -> None:
        assembler = EnvironmentAssembler(scenario_resolver)
        first = assembler.assemble(scenario_descriptors, LINUX)
        second = assembler.assemble(scenario_descriptors, LINUX)

        assert first.compile_paths == second.compile_paths
        assert first.loader_paths == second.loader_paths
        assert first.bindings == second.bindings


class TestAssembler:
    """Tests for EnvironmentAssembler path rules."""

    @pytest.fixture
    def resolver(self) -> TableResolver:
        resolver = TableResolver()
        for name in ("a", "b"):
            root = Path(f"/store/{name}")
            resolver.add(
                ResolvedPackage(
                    name,
                    LINUX,
                    root,
                    include_dir=root / "include",
                    lib_dir=root / "lib",
                    bin_dir=root / "bin",
                    pkgconfig_dir=root / "lib" / "pkgconfig",
                )
            )
        resolver.add(ResolvedPackage("rust-src", LINUX, Path("/store/rust-src")))
        return resolver

    def test_build_role_only(self, resolver) -> None:
        assembly = EnvironmentAssembler(resolver).assemble(
            [DependencyDescriptor("a", Role.BUILD)], LINUX
        )
        assert assembly.compile_paths == ["/store/a/include", "/store/a/lib"]
        assert assembly.include_paths == ["/store/a/include"]
        assert assembly.library_paths == ["/store/a/lib"]
        assert assembly.pkgconfig_paths == ["/store/a/lib/pkgconfig"]
        assert not assembly.loader_paths
        assert assembly.bindings["LD_LIBRARY_PATH"] == ""

    def test_runtime_role_only(self, resolver) -> None:
        assembly = EnvironmentAssembler(resolver).assemble(
            [DependencyDescriptor("a", Role.RUNTIME)], LINUX
        )
        assert not assembly.compile_paths
        assert assembly.loader_paths == ["/store/a/lib"]
        assert "LIBRARY_PATH" not in assembly.bindings
        assert "CPATH" not in assembly.bindings

    def test_shell_role_only_adds_bin(self, resolver) -> None:
        assembly = EnvironmentAssembler(resolver).assemble(
            [DependencyDescriptor("a", Role.SHELL)], LINUX
        )
        assert not assembly.compile_paths
        assert not assembly.loader_paths
        assert assembly.bin_paths == ["/store/a/bin"]
        path = assembly.bindings.binding("PATH")
        assert path.prepend
        assert path.value == "/store/a/bin"

    def test_duplicate_descriptors_deduplicated(self, resolver) -> None:
        descriptors = [
            DependencyDescriptor("a", Role.BOTH),
            DependencyDescriptor("b", Role.BOTH),
            DependencyDescriptor("a", Role.BOTH),
        ]
        assembly = EnvironmentAssembler(resolver).assemble(descriptors, LINUX)
        assert assembly.loader_paths == ["/store/a/lib", "/store/b/lib"]

    def test_empty_descriptors(self, resolver) -> None:
        assembly = EnvironmentAssembler(resolver).assemble([], LINUX)
        assert assembly.bindings.names() == ["LD_LIBRARY_PATH"]
        assert assembly.bindings["LD_LIBRARY_PATH"] == ""

    def test_binding_order(self, resolver) -> None:
        assembler = EnvironmentAssembler(resolver, FakeToolchain())
        assembly = assembler.assemble([DependencyDescriptor("a", Role.BOTH)], LINUX)
        assert assembly.bindings.names() == [
            "RUST_SRC_PATH",
            "LD_LIBRARY_PATH",
            "LIBRARY_PATH",
            "CPATH",
            "PKG_CONFIG_PATH",
            "PATH",
        ]
        assert assembly.bindings["RUST_SRC_PATH"] == "/store/rust-src"
        assert assembly.source_path == "/store/rust-src"

    def test_missing_source_package_fails(self, resolver) -> None:
        toolchain = FakeToolchain()
        toolchain.source_package = "missing-src"
        with pytest.raises(UnresolvedDependency, match="missing-src"):
            EnvironmentAssembler(resolver, toolchain).assemble([], LINUX)

    def test_windows_separator(self) -> None:
        resolver = TableResolver()
        for name in ("a", "b"):
            resolver.add(ResolvedPackage(name, WINDOWS, Path(name), lib_dir=Path(name, "lib")))
        descriptors = [DependencyDescriptor("a", Role.RUNTIME), DependencyDescriptor("b", Role.RUNTIME)]

        assembly = EnvironmentAssembler(resolver).assemble(descriptors, WINDOWS)
        sep = WINDOWS.path_separator
        assert assembly.bindings["LD_LIBRARY_PATH"] == sep.join(
            [str(Path("a", "lib")), str(Path("b", "lib"))]
        )

    def test_backend_failure_propagates(self) -> None:
        class BrokenResolver:
            name = "broken"

            def resolve(self, name, platform):
                raise ResolutionFailure("backend is down")

        with pytest.raises(ResolutionFailure, match="backend is down"):
            EnvironmentAssembler(BrokenResolver()).assemble(
                [DependencyDescriptor("a")], LINUX
            )

    def test_realise_resolved_packages(self, resolver) -> None:
        class RecordingResolver:
            name = "recording"

            def __init__(self) -> None:
                self.realised: list[str] = []

            def resolve(self, name, platform):
                return resolver.resolve(name, platform)

            def realise(self, package):
                self.realised.append(package.name)

        recording = RecordingResolver()
        assembler = EnvironmentAssembler(recording, FakeToolchain())
        descriptors = [DependencyDescriptor("a", Role.BUILD), DependencyDescriptor("b", Role.SHELL)]

        assembler.assemble(descriptors, LINUX)
        assert recording.realised == []

        assembler.assemble(descriptors, LINUX, realise=True)
        assert recording.realised == ["a", "b", "rust-src"]

    def test_realise_after_all_resolved(self, resolver) -> None:
        """Nothing is realised when any descriptor fails to resolve."""
        realised: list[str] = []

        class PartialResolver:
            name = "partial"

            def resolve(self, name, platform):
                return resolver.resolve(name, platform)

            def realise(self, package):
                realised.append(package.name)

        descriptors = [DependencyDescriptor("a"), DependencyDescriptor("missing")]
        with pytest.raises(UnresolvedDependency):
            EnvironmentAssembler(PartialResolver()).assemble(descriptors, LINUX, realise=True)
        assert realised == []


class TestApplyBindings:
    """Tests for apply_bindings."""

    def test_replace_and_prepend(self) -> None:
        bindings = EnvironmentBindings(
            [
                EnvironmentBinding("LD_LIBRARY_PATH", "/new/lib"),
                EnvironmentBinding("PATH", "/new/bin", prepend=True),
            ]
        )
        base = {"LD_LIBRARY_PATH": "/old/lib", "PATH": "/usr/bin", "HOME": "/home/u"}

        env = apply_bindings(bindings, base)

        assert env == {
            "LD_LIBRARY_PATH": "/new/lib",
            "PATH": "/new/bin:/usr/bin",
            "HOME": "/home/u",
        }
        assert base["PATH"] == "/usr/bin"

    def test_prepend_without_inherited_value(self) -> None:
        bindings = EnvironmentBindings([EnvironmentBinding("PATH", "/new/bin", prepend=True)])
        assert apply_bindings(bindings, {})["PATH"] == "/new/bin"
