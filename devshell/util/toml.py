# SPDX-License-Identifier: MIT
"""TOML loading for devshell.toml and package manifests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

# tomllib is Python 3.11+, tomli provides the same API before that
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

TOMLDecodeError = tomllib.TOMLDecodeError


def load_toml(path: Path | str) -> dict[str, Any]:
    """Load a TOML file.

    Raises:
        OSError: If the file cannot be read.
        TOMLDecodeError: If the file is not valid TOML.
    """
    with open(path, "rb") as f:
        return tomllib.load(f)
