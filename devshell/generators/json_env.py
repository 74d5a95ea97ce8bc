# SPDX-License-Identifier: MIT
"""JSON environment generator for editor and IDE integration.

Writes the assembled search paths and bindings so that tools which do
not run inside the session (editors, language servers, CI scripts) can
pick them up.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

from devshell.generators.generator import BaseGenerator

if TYPE_CHECKING:
    from devshell.core.environment import Assembly


class JsonGenerator(BaseGenerator):
    """Generator for devshell-env.json.

    Format:
        {
            "platform": "linux-x86_64",
            "packages": [{"name": "alsa-lib", "role": "both", "root": "..."}],
            "paths": {"compile": [...], "loader": [...], ...},
            "bindings": {"RUST_SRC_PATH": "...", "LD_LIBRARY_PATH": "..."}
        }
    """

    def __init__(self, filename: str = "devshell-env.json") -> None:
        super().__init__("json", filename)

    def render(self, assembly: Assembly) -> str:
        return json.dumps(self.to_data(assembly), indent=2) + "\n"

    @staticmethod
    def to_data(assembly: Assembly) -> dict[str, Any]:
        return {
            "platform": str(assembly.platform),
            "packages": [
                {
                    "name": descriptor.name,
                    "role": descriptor.role.label,
                    "root": os.fspath(package.root),
                }
                for descriptor, package in assembly.packages
            ],
            "paths": {
                "compile": assembly.compile_paths.as_list(),
                "include": assembly.include_paths.as_list(),
                "library": assembly.library_paths.as_list(),
                "loader": assembly.loader_paths.as_list(),
                "pkgconfig": assembly.pkgconfig_paths.as_list(),
                "bin": assembly.bin_paths.as_list(),
            },
            "source_path": assembly.source_path,
            "bindings": assembly.bindings.to_dict(),
        }
