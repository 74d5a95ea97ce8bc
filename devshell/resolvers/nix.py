# SPDX-License-Identifier: MIT
"""Nix resolver.

Maps package names to nixpkgs attributes and evaluates their output store
paths with ``nix eval``. Evaluation does not build anything, so packages
for platforms other than the host can be resolved too. With
``realise=True`` every resolved package is also built; otherwise callers
that need the outputs on disk call ``realise()`` (host platform only).

This resolver requires ``nix`` in PATH with the ``nix-command`` and
``flakes`` features available.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from typing import Mapping

from devshell.core.dependency import ResolvedPackage
from devshell.core.errors import ResolutionFailure, UnresolvedDependency
from devshell.core.platform import PlatformKey

logger = logging.getLogger(__name__)

# Applied to the package attribute; yields availability and output paths
# without forcing a build.
_APPLY_EXPR = (
    "p: { "
    "available = p.meta.available or true; "
    "outputs = builtins.listToAttrs (map (o: { name = o; value = p.${o}.outPath; }) "
    '(p.outputs or [ "out" ])); '
    "}"
)

# Messages nix prints when the attribute simply is not there
_MISSING_MARKERS = (
    "does not provide attribute",
    "attribute '",
    "is not available on the requested hostPlatform",
)


class NixResolver:
    """Resolve packages through a nixpkgs flake.

    Args:
        flake: Flake reference providing ``legacyPackages`` (default:
            'nixpkgs').
        attributes: Optional package name to attribute path overrides;
            by default the package name is the attribute path.
        realise: Build the outputs after evaluating them.
        nix: Name or path of the nix executable.

    Example:
        resolver = NixResolver("github:NixOS/nixpkgs/nixpkgs-unstable")
        pkg = resolver.resolve("alsa-lib", PlatformKey("linux", "x86_64"))
        pkg.lib_dir  # /nix/store/...-alsa-lib-1.2.x/lib
    """

    EXPERIMENTAL = ["--extra-experimental-features", "nix-command flakes"]

    def __init__(
        self,
        flake: str = "nixpkgs",
        *,
        attributes: Mapping[str, str] | None = None,
        realise: bool = False,
        nix: str = "nix",
    ) -> None:
        self._flake = flake
        self._attributes = dict(attributes or {})
        self._realise = realise
        self._nix = nix
        self._cache: dict[tuple[str, PlatformKey], ResolvedPackage] = {}
        self._realised: set[tuple[str, PlatformKey]] = set()

    @property
    def name(self) -> str:
        return "nix"

    @property
    def flake(self) -> str:
        return self._flake

    def installable(self, name: str, platform: PlatformKey) -> str:
        """Return the flake installable for a package on a platform."""
        attr = self._attributes.get(name, name)
        return f"{self._flake}#legacyPackages.{platform.nix_system}.{attr}"

    def resolve(self, name: str, platform: PlatformKey) -> ResolvedPackage:
        key = (name, platform)
        if key in self._cache:
            return self._cache[key]

        installable = self.installable(name, platform)
        info = self._evaluate(name, platform, installable)

        if not info.get("available", True):
            raise UnresolvedDependency(name, platform, "not available on this platform")

        outputs = info.get("outputs") or {}
        if not outputs:
            raise UnresolvedDependency(name, platform, "package has no outputs")

        package = ResolvedPackage.from_outputs(name, platform, outputs)
        if self._realise:
            self.realise(package)
        self._cache[key] = package
        return package

    def realise(self, package: ResolvedPackage) -> None:
        """Build all outputs of a resolved package with `nix build --no-link`."""
        key = (package.name, package.platform)
        if key in self._realised:
            return
        installable = self.installable(package.name, package.platform)
        self._build(package.name, package.platform, installable)
        self._realised.add(key)

    def _nix_command(self) -> list[str]:
        nix = shutil.which(self._nix)
        if nix is None:
            raise ResolutionFailure(
                f"'{self._nix}' not found in PATH; install Nix from https://nixos.org/download"
            )
        return [nix, *self.EXPERIMENTAL]

    def _evaluate(self, name: str, platform: PlatformKey, installable: str) -> dict:
        cmd = [*self._nix_command(), "eval", "--json", installable, "--apply", _APPLY_EXPR]
        logger.debug("Running: %s", " ".join(cmd))
        result = self._run(cmd)

        if result.returncode != 0:
            stderr = result.stderr.strip()
            if any(marker in stderr for marker in _MISSING_MARKERS):
                raise UnresolvedDependency(name, platform, stderr.splitlines()[-1])
            raise ResolutionFailure(stderr or f"nix eval failed for {installable}")

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ResolutionFailure(f"unexpected nix eval output for {installable}: {e}") from e
        if not isinstance(data, dict):
            raise ResolutionFailure(f"unexpected nix eval output for {installable}")
        return data

    def _build(self, name: str, platform: PlatformKey, installable: str) -> None:
        cmd = [*self._nix_command(), "build", "--no-link", f"{installable}^*"]
        logger.info("Building %s for %s", name, platform)
        result = self._run(cmd)
        if result.returncode != 0:
            raise ResolutionFailure(result.stderr.strip() or f"nix build failed for {installable}")

    @staticmethod
    def _run(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise ResolutionFailure(f"failed to run nix: {e}") from e

    def __repr__(self) -> str:
        return f"NixResolver({self._flake!r}, realise={self._realise})"
