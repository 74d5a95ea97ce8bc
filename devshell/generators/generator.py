# SPDX-License-Identifier: MIT
"""Generator protocol for environment file generation.

Generators take an assembled environment and write files that other
tools consume (shell hooks, JSON for editors, diagrams).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from devshell.core.errors import GenerateError

if TYPE_CHECKING:
    from devshell.core.environment import Assembly


@runtime_checkable
class Generator(Protocol):
    """Protocol for environment file generators."""

    @property
    def name(self) -> str:
        """Generator name (e.g., 'sh', 'json', 'mermaid')."""
        ...

    def generate(self, assembly: Assembly, output_dir: Path) -> Path:
        """Write the generated file.

        Args:
            assembly: The assembled environment.
            output_dir: Directory to write output files to.

        Returns:
            Path of the written file.
        """
        ...


class BaseGenerator:
    """Base class for generators that render a single text file.

    Subclasses implement render(); generate() writes it to
    output_dir/filename.
    """

    def __init__(self, name: str, filename: str) -> None:
        """Initialize a generator.

        Args:
            name: Generator name.
            filename: Name of the output file.
        """
        self._name = name
        self._filename = filename

    @property
    def name(self) -> str:
        return self._name

    @property
    def filename(self) -> str:
        return self._filename

    def render(self, assembly: Assembly) -> str:
        """Render the file contents. Subclasses must implement."""
        raise NotImplementedError

    def generate(self, assembly: Assembly, output_dir: Path) -> Path:
        output_file = output_dir / self._filename
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            output_file.write_text(self.render(assembly))
        except OSError as e:
            raise GenerateError(f"cannot write {output_file}: {e}") from e
        return output_file

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
