# SPDX-License-Identifier: MIT
"""Tests for devshell.resolvers.table."""

from __future__ import annotations

from pathlib import Path

import pytest

from devshell.core.dependency import ResolvedPackage
from devshell.core.errors import ConfigureError, UnresolvedDependency
from devshell.core.platform import PlatformKey
from devshell.resolvers import Resolver, TableResolver

LINUX = PlatformKey("linux", "x86_64")
MACOS = PlatformKey("macos", "arm64")


class TestTableResolver:
    """Tests for TableResolver."""

    def test_is_resolver(self) -> None:
        assert isinstance(TableResolver(), Resolver)

    def test_resolve(self) -> None:
        pkg = ResolvedPackage("udev", LINUX, Path("/store/udev"))
        resolver = TableResolver({LINUX: {"udev": pkg}})
        assert resolver.resolve("udev", LINUX) is pkg
        assert resolver.platforms() == [LINUX]

    def test_unresolved(self) -> None:
        resolver = TableResolver()
        resolver.add(ResolvedPackage("udev", LINUX, Path("/store/udev")))

        with pytest.raises(UnresolvedDependency) as excinfo:
            resolver.resolve("udev", MACOS)
        assert excinfo.value.dependency == "udev"
        assert excinfo.value.platform == MACOS

    def test_platform_mismatch(self) -> None:
        pkg = ResolvedPackage("udev", LINUX, Path("/store/udev"))
        with pytest.raises(ValueError, match="not macos-arm64"):
            TableResolver({MACOS: {"udev": pkg}})


class TestTableResolverFromConfig:
    """Tests for TableResolver.from_config."""

    def test_relative_paths(self, tmp_path: Path) -> None:
        resolver = TableResolver.from_config(
            {
                "linux-x86_64": {
                    "alsa-lib": {"root": "store/alsa", "lib": "store/alsa/lib"},
                },
                "aarch64-darwin": {
                    "clang": {"root": "/opt/clang", "bin": "/opt/clang/bin"},
                },
            },
            base_dir=tmp_path,
        )

        alsa = resolver.resolve("alsa-lib", LINUX)
        assert alsa.root == tmp_path / "store" / "alsa"
        assert alsa.lib_dir == tmp_path / "store" / "alsa" / "lib"
        assert alsa.include_dir is None

        clang = resolver.resolve("clang", MACOS)
        assert clang.bin_dir == Path("/opt/clang/bin")

    def test_missing_root(self) -> None:
        with pytest.raises(ConfigureError, match="needs a 'root'"):
            TableResolver.from_config({"linux-x86_64": {"udev": {"lib": "/x"}}})

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigureError, match="unknown keys libdir"):
            TableResolver.from_config({"linux-x86_64": {"udev": {"root": "/x", "libdir": "/y"}}})

    def test_bad_platform(self) -> None:
        with pytest.raises(ConfigureError, match="unknown platform"):
            TableResolver.from_config({"beos-x86_64": {}}, location="devshell.toml")
