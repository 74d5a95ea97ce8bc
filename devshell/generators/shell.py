# SPDX-License-Identifier: MIT
"""Shell script generator.

Renders the environment bindings as a script that a shell can source:
POSIX sh (usable as a direnv .envrc), fish, or PowerShell.
"""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from devshell.generators.generator import BaseGenerator

if TYPE_CHECKING:
    from devshell.core.environment import Assembly, EnvironmentBinding

SHELLS = ("sh", "fish", "powershell")

_DEFAULT_FILENAMES = {
    "sh": ".envrc",
    "fish": "devshell.fish",
    "powershell": "devshell.ps1",
}


class ShellGenerator(BaseGenerator):
    """Generator that writes a sourceable environment script.

    Example output (sh):
        # devshell environment for linux-x86_64
        export RUST_SRC_PATH='/nix/store/...-rust-lib-src'
        export LD_LIBRARY_PATH='/nix/store/...-alsa-lib/lib:...'
        export PATH='/nix/store/...-cargo/bin'"${PATH:+:$PATH}"

    Usage:
        generator = ShellGenerator("sh")
        generator.generate(assembly, Path("."))
        # Creates ./.envrc
    """

    def __init__(self, shell: str = "sh", *, filename: str | None = None) -> None:
        """Initialize the shell generator.

        Args:
            shell: Target shell: 'sh', 'fish' or 'powershell'.
            filename: Output filename (default depends on the shell).

        Raises:
            ValueError: If the shell is not supported.
        """
        if shell not in SHELLS:
            raise ValueError(f"unsupported shell {shell!r} (expected one of: {', '.join(SHELLS)})")
        super().__init__(shell, filename or _DEFAULT_FILENAMES[shell])
        self._shell = shell

    def render(self, assembly: Assembly) -> str:
        lines = [f"# devshell environment for {assembly.platform}"]
        for binding in assembly.bindings:
            if self._shell == "sh":
                lines.append(self._render_sh(binding))
            elif self._shell == "fish":
                lines.append(self._render_fish(binding))
            else:
                lines.append(self._render_powershell(binding))
        return "\n".join(lines) + "\n"

    @staticmethod
    def _render_sh(binding: EnvironmentBinding) -> str:
        value = shlex.quote(binding.value)
        if binding.prepend:
            sep = binding.separator
            return f'export {binding.name}={value}"${{{binding.name}:+{sep}${binding.name}}}"'
        return f"export {binding.name}={value}"

    @staticmethod
    def _render_fish(binding: EnvironmentBinding) -> str:
        if binding.prepend:
            # fish keeps PATH-like variables as lists
            entries = " ".join(_fish_quote(e) for e in binding.value.split(binding.separator))
            return f"set -gx {binding.name} {entries} ${binding.name}"
        return f"set -gx {binding.name} {_fish_quote(binding.value)}"

    @staticmethod
    def _render_powershell(binding: EnvironmentBinding) -> str:
        value = _powershell_quote(binding.value)
        if binding.prepend:
            sep = _powershell_quote(binding.separator)
            return (
                f"$env:{binding.name} = {value} + "
                f"$(if ($env:{binding.name}) {{ {sep} + $env:{binding.name} }})"
            )
        return f"$env:{binding.name} = {value}"


def _fish_quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _powershell_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"
