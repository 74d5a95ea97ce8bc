# SPDX-License-Identifier: MIT
"""Rust toolchain implementation.

Provides the cargo-based toolchain used for Bevy-style projects:
- cargo, rustc (build driver and compiler)
- pkg-config (locates native -sys crate dependencies)
- clang and mold (C compiler and faster linker)
- rustfmt, clippy, rust-analyzer, cargo-watch, pre-commit (interactive)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Sequence

from devshell.core.errors import CompilationFailure
from devshell.tools.toolchain import BaseToolchain, ToolRole, ToolSpec
from devshell.util.toml import TOMLDecodeError, load_toml

DEFAULT_RUST_TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec("cargo", "cargo"),
    ToolSpec("rustc", "rustc"),
    ToolSpec("rustfmt", "rustfmt", ToolRole.INTERACTIVE),
    ToolSpec("pre-commit", "pre-commit", ToolRole.INTERACTIVE),
    ToolSpec("cargo-clippy", "rustPackages.clippy", ToolRole.INTERACTIVE),
    ToolSpec("cargo-watch", "cargo-watch", ToolRole.INTERACTIVE),
    ToolSpec("rust-analyzer", "rust-analyzer", ToolRole.INTERACTIVE),
    ToolSpec("pkg-config", "pkg-config"),
    ToolSpec("clang", "clang"),
    ToolSpec("mold", "mold"),
)

# Suffixes of library outputs worth installing from target/release
_LIBRARY_SUFFIXES = {".so", ".dylib", ".dll", ".a", ".lib"}


class RustToolchain(BaseToolchain):
    """Cargo-driven Rust toolchain.

    Builds with ``cargo build --release`` into a scratch target directory
    and installs the release executables and libraries as the artifact.

    Example:
        toolchain = RustToolchain()
        toolchain.descriptors()   # cargo (build), rustfmt (shell), ...
    """

    manifest_name = "Cargo.toml"
    source_package = "rustPlatform.rustLibSrc"

    def __init__(
        self,
        tools: Sequence[ToolSpec] = DEFAULT_RUST_TOOLS,
        *,
        profile: str = "release",
        features: Sequence[str] = (),
        locked: bool = True,
    ) -> None:
        if not isinstance(profile, str):
            raise TypeError("profile must be a string")
        if isinstance(features, str) or not all(isinstance(f, str) for f in features):
            raise TypeError("features must be a list of strings")
        if not isinstance(locked, bool):
            raise TypeError("locked must be true or false")
        super().__init__("rust", tools, driver="cargo")
        self._profile = profile
        self._features = list(features)
        self._locked = locked

    @property
    def profile(self) -> str:
        return self._profile

    def build_command(self, executable: str, target_dir: Path) -> list[str]:
        cmd = [executable, "build", "--target-dir", str(target_dir)]
        if self._locked:
            cmd.append("--locked")
        if self._profile == "release":
            cmd.append("--release")
        elif self._profile != "dev":
            cmd.extend(["--profile", self._profile])
        if self._features:
            cmd.extend(["--features", ",".join(self._features)])
        return cmd

    def collect_artifacts(self, target_dir: Path) -> list[Path]:
        """Return executables and libraries from the profile directory.

        Cargo names the 'dev' profile directory 'debug'.
        """
        out_dir = target_dir / ("debug" if self._profile == "dev" else self._profile)
        if not out_dir.is_dir():
            return []

        artifacts = []
        for path in sorted(out_dir.iterdir()):
            if not path.is_file():
                continue
            if path.suffix in _LIBRARY_SUFFIXES:
                artifacts.append(path)
            elif path.suffix in ("", ".exe") and os.access(path, os.X_OK):
                artifacts.append(path)
        return artifacts

    def read_manifest(self, source_tree: Path) -> dict[str, Any]:
        """Read name and version from Cargo.toml.

        Raises:
            CompilationFailure: If the manifest is missing, unparsable, or
                lacks a [package] name.
        """
        manifest = source_tree / self.manifest_name
        if not manifest.is_file():
            raise CompilationFailure(f"could not find `{self.manifest_name}` in `{source_tree}`")
        try:
            data = load_toml(manifest)
        except TOMLDecodeError as e:
            raise CompilationFailure(f"failed to parse manifest at `{manifest}`: {e}") from e

        package = data.get("package")
        if not isinstance(package, dict) or not package.get("name"):
            raise CompilationFailure(
                f"manifest at `{manifest}` has no [package] name; workspaces are not built"
            )
        version = package.get("version", "0.0.0")
        if not isinstance(version, str):
            # version.workspace = true and friends
            version = "0.0.0"
        return {"name": str(package["name"]), "version": version}

    def fingerprint(self) -> dict[str, Any]:
        data = super().fingerprint()
        data["profile"] = self._profile
        data["features"] = list(self._features)
        data["locked"] = self._locked
        return data
