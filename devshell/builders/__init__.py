# SPDX-License-Identifier: MIT
"""Package builders."""

from devshell.builders.package import BuildArtifact, PackageBuilder

__all__ = ["BuildArtifact", "PackageBuilder"]
