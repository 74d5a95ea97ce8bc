# SPDX-License-Identifier: MIT
"""Package builder.

Builds the package in a source tree with a toolchain whose tools come from
the resolver, and installs the result into a content-addressed store
location. Building the same source tree with the same toolchain always
yields the same location; an existing complete artifact is reused instead
of rebuilt.

Failures are never retried: a ResolutionFailure means a tool could not be
found, a CompilationFailure carries the toolchain's own error output.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from devshell.core.dependency import DependencyDescriptor
from devshell.core.environment import EnvironmentAssembler, apply_bindings
from devshell.core.errors import CompilationFailure, ResolutionFailure
from devshell.core.platform import get_platform
from devshell.util.store import (
    hash_inputs,
    hash_source_tree,
    install_atomically,
    read_metadata,
)

if TYPE_CHECKING:
    from devshell.core.environment import Assembly
    from devshell.core.platform import PlatformKey
    from devshell.resolvers.base import Resolver
    from devshell.tools.toolchain import BaseToolchain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildArtifact:
    """An immutable build result in the store.

    Attributes:
        name: Package name from the manifest.
        version: Package version from the manifest.
        location: Content-addressed store directory.
        digest: Hash of all build inputs.
        files: Installed files inside location.
        cached: True if the artifact already existed and was reused.
    """

    name: str
    version: str
    location: Path
    digest: str
    files: tuple[Path, ...] = field(default_factory=tuple)
    cached: bool = False


class PackageBuilder:
    """Build packages into a content-addressed store.

    Example:
        builder = PackageBuilder(resolver, store_dir=Path(".devshell/store"))
        artifact = builder.build(Path("."), RustToolchain())
        artifact.location   # .devshell/store/<digest>-myapp-0.1.0

    Args:
        resolver: Resolver for the toolchain's build tools and any native
            build dependencies.
        store_dir: Directory holding built artifacts.
        platform: Platform to build on (default: the host).
        keep_build_dir: Keep the scratch target directory after a
            successful build.
    """

    def __init__(
        self,
        resolver: Resolver,
        store_dir: Path | str,
        *,
        platform: PlatformKey | None = None,
        keep_build_dir: bool = False,
    ) -> None:
        self._resolver = resolver
        self._store_dir = Path(store_dir)
        self._platform = platform
        self._keep_build_dir = keep_build_dir

    @property
    def store_dir(self) -> Path:
        return self._store_dir

    def build(
        self,
        source_tree: Path | str,
        toolchain: BaseToolchain,
        dependencies: Sequence[DependencyDescriptor] = (),
    ) -> BuildArtifact:
        """Build the package in source_tree.

        Args:
            source_tree: Directory containing the package manifest.
            toolchain: Toolchain to build with.
            dependencies: Declared native dependencies; the build-role
                ones are put on the compiler and linker search paths.

        Returns:
            The build artifact.

        Raises:
            ResolutionFailure: If a build tool or dependency cannot be
                resolved, or the driver cannot be started.
            CompilationFailure: If the manifest is invalid or the
                toolchain reports an error.
        """
        source_tree = Path(source_tree).resolve()
        platform = self._platform or get_platform()

        assembly = self._assemble_build_env(toolchain, dependencies, platform)
        executable = self._find_driver(toolchain, assembly)
        manifest = toolchain.read_manifest(source_tree)

        digest = hash_inputs(
            {
                "platform": str(platform),
                "toolchain": toolchain.fingerprint(),
                "packages": [
                    [d.name, d.role.value, os.fspath(p.root)] for d, p in assembly.packages
                ],
                "source": hash_source_tree(source_tree, ignore=[self._store_dir]),
            }
        )
        location = self._store_dir / f"{digest[:32]}-{manifest['name']}-{manifest['version']}"

        existing = read_metadata(location)
        if existing is not None and existing.get("digest") == digest:
            logger.info("Reusing %s", location)
            return BuildArtifact(
                name=manifest["name"],
                version=manifest["version"],
                location=location,
                digest=digest,
                files=tuple(location / name for name in existing.get("files", [])),
                cached=True,
            )
        if location.exists():
            logger.warning("Removing incomplete artifact at %s", location)
            shutil.rmtree(location)

        target_dir = self._store_dir / ".build" / digest[:32]
        self._run_build(toolchain, executable, source_tree, target_dir, assembly)

        outputs = toolchain.collect_artifacts(target_dir)
        if not outputs:
            logger.warning("Build of %s produced no installable files", manifest["name"])

        try:
            files = install_atomically(
                outputs,
                location,
                {
                    "name": manifest["name"],
                    "version": manifest["version"],
                    "digest": digest,
                    "platform": str(platform),
                },
            )
        except FileExistsError:
            # Another build of the same inputs finished first
            metadata = read_metadata(location) or {}
            files = [location / name for name in metadata.get("files", [])]

        if not self._keep_build_dir:
            shutil.rmtree(target_dir, ignore_errors=True)

        logger.info("Built %s", location)
        return BuildArtifact(
            name=manifest["name"],
            version=manifest["version"],
            location=location,
            digest=digest,
            files=tuple(files),
        )

    def _assemble_build_env(
        self,
        toolchain: BaseToolchain,
        dependencies: Sequence[DependencyDescriptor],
        platform: PlatformKey,
    ) -> Assembly:
        """Resolve and realise build tools and build-role dependencies.

        Interactive tools and runtime-only libraries are not needed to
        build and are left out.
        """
        descriptors = [tool.descriptor() for tool in toolchain.build_tools()]
        descriptors.extend(d for d in dependencies if d.is_build)
        assembler = EnvironmentAssembler(self._resolver)
        return assembler.assemble(descriptors, platform, realise=True)

    def _find_driver(self, toolchain: BaseToolchain, assembly: Assembly) -> str:
        """Locate the driver executable inside its resolved package.

        The host PATH is never searched: the artifact's address covers
        the resolved packages, so the build must run with them.
        """
        driver = toolchain.tools[toolchain.driver]
        for descriptor, package in assembly.packages:
            if descriptor.name == driver.package and package.bin_dir is not None:
                found = shutil.which(driver.name, path=os.fspath(package.bin_dir))
                if found:
                    return found

        raise ResolutionFailure(
            f"build tool '{driver.name}' not found in resolved package '{driver.package}'"
        )

    def _run_build(
        self,
        toolchain: BaseToolchain,
        executable: str,
        source_tree: Path,
        target_dir: Path,
        assembly: Assembly,
    ) -> None:
        cmd = toolchain.build_command(executable, target_dir)
        env = apply_bindings(assembly.bindings)
        target_dir.mkdir(parents=True, exist_ok=True)

        logger.info("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=source_tree,
                env=env,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise ResolutionFailure(f"failed to run {executable}: {e}") from e

        if result.returncode != 0:
            raise CompilationFailure(result.stderr or result.stdout, result.returncode)
        if result.stderr:
            logger.debug("%s", result.stderr.rstrip())
