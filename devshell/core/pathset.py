# SPDX-License-Identifier: MIT
"""Ordered, deduplicated search path lists."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator


class PathSet:
    """An ordered sequence of filesystem locations without duplicates.

    Entries keep the order in which they were first added; adding a
    location that is already present is a no-op. This keeps compile and
    loader search paths stable with respect to declaration order.

    Example:
        paths = PathSet(["/a/lib", "/b/lib"])
        paths.add("/a/lib")        # ignored
        paths.join(":")            # "/a/lib:/b/lib"
    """

    __slots__ = ("_entries", "_seen")

    def __init__(self, entries: Iterable[Path | str] = ()) -> None:
        self._entries: list[str] = []
        self._seen: set[str] = set()
        self.extend(entries)

    def add(self, entry: Path | str | None) -> bool:
        """Append a location unless it is already present.

        None is accepted and ignored, so optional package directories can
        be passed straight through.

        Returns:
            True if the entry was added.
        """
        if entry is None:
            return False
        key = os.fspath(entry)
        if not key or key in self._seen:
            return False
        self._seen.add(key)
        self._entries.append(key)
        return True

    def extend(self, entries: Iterable[Path | str | None]) -> None:
        for entry in entries:
            self.add(entry)

    def join(self, separator: str) -> str:
        """Serialize the set as a separator-joined path list."""
        return separator.join(self._entries)

    def as_list(self) -> list[str]:
        return list(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: object) -> bool:
        if isinstance(entry, (str, Path)):
            return os.fspath(entry) in self._seen
        return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PathSet):
            return self._entries == other._entries
        if isinstance(other, list):
            return self._entries == [os.fspath(e) for e in other]
        return NotImplemented

    def __repr__(self) -> str:
        return f"PathSet({self._entries!r})"
