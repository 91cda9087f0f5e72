"""Tests for the filesystem walker."""

from __future__ import annotations

import os

from conftest import make_files

from reclaim.core.walker import dir_info, entry_size, iter_files, should_skip_dir, walk
from reclaim.models.scan_result import WarningKind


def _names(entries, root):
    return [os.path.relpath(e.path, root) for e in entries]


class TestWalk:
    def test_depth_first_name_order(self, tmp_path):
        make_files(tmp_path, {"b/z.txt": 1, "b/a.txt": 1, "a/y.txt": 1, "c.txt": 1})
        warnings = []
        assert _names(walk(tmp_path, warnings), tmp_path) == [
            "a",
            "a/y.txt",
            "b",
            "b/a.txt",
            "b/z.txt",
            "c.txt",
        ]
        assert warnings == []

    def test_skip_dir(self, tmp_path):
        make_files(tmp_path, {".git/objects/x": 1, "src/main.py": 1})
        names = _names(walk(tmp_path, [], skip_dir=should_skip_dir), tmp_path)
        assert names == ["src", "src/main.py"]

    def test_max_depth(self, tmp_path):
        make_files(tmp_path, {"a/b/c/deep.txt": 1})
        names = _names(walk(tmp_path, [], max_depth=2), tmp_path)
        assert names == ["a", "a/b"]

    def test_descend_veto(self, tmp_path):
        make_files(tmp_path, {"keep/inner.txt": 1, "stop/inner.txt": 1})
        names = _names(walk(tmp_path, [], descend=lambda e: e.name != "stop"), tmp_path)
        assert names == ["keep", "keep/inner.txt", "stop"]

    def test_does_not_follow_symlinks(self, tmp_path):
        make_files(tmp_path, {"outside/secret.txt": 1})
        root = tmp_path / "root"
        root.mkdir()
        (root / "link").symlink_to(tmp_path / "outside")
        names = _names(walk(root, []), root)
        assert names == ["link"]

    def test_unreadable_dir_gives_one_warning(self, tmp_path, deny_scandir):
        make_files(tmp_path, {"a/1.txt": 1, "locked/2.txt": 1, "z/3.txt": 1})
        deny_scandir(tmp_path / "locked")
        warnings = []
        names = _names(walk(tmp_path, warnings), tmp_path)
        assert names == ["a", "a/1.txt", "locked", "z", "z/3.txt"]
        assert len(warnings) == 1
        assert warnings[0].path == tmp_path / "locked"
        assert warnings[0].kind is WarningKind.PERMISSION_DENIED

    def test_unreadable_root(self, tmp_path, deny_scandir):
        deny_scandir(tmp_path)
        warnings = []
        assert list(walk(tmp_path, warnings)) == []
        assert len(warnings) == 1


class TestHelpers:
    def test_should_skip_dir(self):
        assert should_skip_dir("node_modules")
        assert should_skip_dir(".Trash-1000")
        assert not should_skip_dir("Documents")

    def test_iter_files_only_regular_files(self, tmp_path):
        make_files(tmp_path, {"a.txt": 3, "sub/b.txt": 5})
        (tmp_path / "link.txt").symlink_to(tmp_path / "a.txt")
        found = {p.name: st.st_size for p, st in iter_files([tmp_path, tmp_path / "missing"], [])}
        assert found == {"a.txt": 3, "b.txt": 5}

    def test_dir_info(self, tmp_path):
        make_files(tmp_path, {"a": 10, "b/c": 20, "b/d/e": 30})
        assert dir_info(tmp_path, []) == (60, 3)

    def test_entry_size(self, tmp_path):
        make_files(tmp_path, {"file": 7, "dir/x": 4, "dir/y": 6})
        assert entry_size(tmp_path / "file", []) == 7
        assert entry_size(tmp_path / "dir", []) == 10

    def test_entry_size_missing(self, tmp_path):
        warnings = []
        assert entry_size(tmp_path / "gone", warnings) == 0
        assert warnings[0].kind is WarningKind.NOT_FOUND
