# SPDX-License-Identifier: MIT
"""Content-addressed store helpers.

Hashing of source trees and build inputs, and atomic installation of
build outputs into a store directory.
"""

from __future__ import annotations

import hashlib
import json
import os
import shutil
import stat
from pathlib import Path
from typing import Any, Iterable

# Directories never considered part of a source tree
IGNORED_DIRS = frozenset({".git", ".hg", ".svn", "target", ".devshell", "__pycache__", "result"})

_CHUNK = 1 << 16

METADATA_FILE = ".devshell-artifact.json"


def hash_source_tree(root: Path, *, ignore: Iterable[Path] = ()) -> str:
    """Hash every file below root.

    The hash covers relative paths, contents, the executable bit and
    symlink targets. Directories in IGNORED_DIRS and any path listed in
    ``ignore`` are skipped. Modification times are not included, so an
    unchanged tree always hashes the same.
    """
    root = Path(root)
    skip = {Path(p).resolve() for p in ignore}
    digest = hashlib.sha256()

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        kept = [
            d for d in dirnames if d not in IGNORED_DIRS and (current / d).resolve() not in skip
        ]
        # os.walk does not descend into symlinked directories; hash the link
        links = [d for d in kept if (current / d).is_symlink()]
        dirnames[:] = sorted(d for d in kept if d not in links)
        for filename in sorted([*filenames, *links]):
            path = current / filename
            rel = path.relative_to(root).as_posix()
            digest.update(rel.encode("utf-8") + b"\0")
            if path.is_symlink():
                digest.update(b"link\0" + os.readlink(path).encode("utf-8") + b"\0")
                continue
            mode = path.stat().st_mode
            digest.update(b"x\0" if mode & stat.S_IXUSR else b"-\0")
            digest.update(_file_digest(path).encode("ascii") + b"\0")

    return digest.hexdigest()


def hash_inputs(inputs: dict[str, Any]) -> str:
    """Hash a JSON-serializable description of build inputs."""
    canonical = json.dumps(inputs, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _file_digest(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def copy(src: Path | str, dest: Path | str) -> None:
    """Copy a file, creating parent directories as needed."""
    dest_path = Path(dest)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)


def install_atomically(files: Iterable[Path], dest: Path, metadata: dict[str, Any]) -> list[Path]:
    """Install files into a new store directory.

    Files are copied into a temporary sibling directory together with a
    metadata file, which is then renamed into place. A directory at dest
    therefore always holds a complete installation.

    Args:
        files: Files to install (flattened into dest).
        dest: Final store directory; must not exist yet.
        metadata: Written to dest/METADATA_FILE.

    Returns:
        Installed file paths inside dest.

    Raises:
        FileExistsError: If dest already exists.
    """
    if dest.exists():
        raise FileExistsError(dest)

    dest.parent.mkdir(parents=True, exist_ok=True)
    staging = dest.parent / f".{dest.name}.tmp-{os.getpid()}"
    if staging.exists():
        shutil.rmtree(staging)
    staging.mkdir()

    names: list[str] = []
    try:
        for src in files:
            copy(src, staging / src.name)
            names.append(src.name)
        with open(staging / METADATA_FILE, "w") as f:
            json.dump({**metadata, "files": names}, f, indent=2, sort_keys=True)
            f.write("\n")
        os.rename(staging, dest)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    return [dest / name for name in names]


def read_metadata(dest: Path) -> dict[str, Any] | None:
    """Read the metadata of an installed store directory.

    Returns:
        The metadata, or None if dest is not a complete installation.
    """
    meta = dest / METADATA_FILE
    if not meta.is_file():
        return None
    try:
        with open(meta) as f:
            data: dict[str, Any] = json.load(f)
            return data
    except (json.JSONDecodeError, OSError):
        return None
