# SPDX-License-Identifier: MIT
"""Tests for devshell.core.pathset."""

from __future__ import annotations

from pathlib import Path

from devshell.core.pathset import PathSet


class TestPathSet:
    """Tests for PathSet."""

    def test_keeps_first_seen_order(self) -> None:
        paths = PathSet(["/b", "/a", "/b", "/c", "/a"])
        assert paths.as_list() == ["/b", "/a", "/c"]

    def test_add_reports_whether_added(self) -> None:
        paths = PathSet()
        assert paths.add("/a") is True
        assert paths.add("/a") is False
        assert paths.add(None) is False
        assert len(paths) == 1

    def test_paths_and_strings_are_equal_entries(self) -> None:
        paths = PathSet([Path("/usr/lib")])
        paths.add("/usr/lib")
        assert len(paths) == 1
        assert "/usr/lib" in paths
        assert Path("/usr/lib") in paths

    def test_join(self) -> None:
        assert PathSet(["/a", "/b"]).join(":") == "/a:/b"
        assert PathSet().join(":") == ""

    def test_equality(self) -> None:
        assert PathSet(["/a", "/b"]) == PathSet(["/a", "/b"])
        assert PathSet(["/a", "/b"]) != PathSet(["/b", "/a"])
        assert PathSet(["/a"]) == [Path("/a")]

    def test_empty_is_falsy(self) -> None:
        assert not PathSet()
        assert PathSet(["/a"])
