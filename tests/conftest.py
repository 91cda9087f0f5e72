"""Shared test fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from reclaim.core.registry import CategoryRegistry
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanResult


class DirCategory(CleanCategory):
    """Test category reporting every file directly inside ``root``."""

    label = "Directory Files"
    description = "Files in a test directory"

    def __init__(self, root: Path, category_id: str = "dir_files", report_only: bool = False, fail: bool = False):
        self.root = root
        self._id = category_id
        self._report_only = report_only
        self._fail = fail

    @property
    def id(self) -> str:
        return self._id

    @property
    def report_only(self) -> bool:
        return self._report_only

    def scan(self) -> ScanResult:
        if self._fail:
            raise RuntimeError("scan failed")
        entries = [
            self._entry(p, p.stat().st_size, "test file")
            for p in sorted(self.root.iterdir())
            if p.is_file()
        ]
        return self._result(entries)


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Point $HOME and the XDG base directories into a temp directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var, rel in (
        ("XDG_CACHE_HOME", ".cache"),
        ("XDG_CONFIG_HOME", ".config"),
        ("XDG_DATA_HOME", ".local/share"),
        ("XDG_STATE_HOME", ".local/state"),
    ):
        path = home / rel
        path.mkdir(parents=True)
        monkeypatch.setenv(var, str(path))
    return home


def make_files(root: Path, files: dict[str, bytes | int]) -> dict[str, Path]:
    """Create files below *root*; an int value means that many bytes."""
    created = {}
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content if isinstance(content, bytes) else b"x" * content)
        created[rel] = path
    return created


def snapshot(root: Path) -> dict[str, tuple[int, int, int]]:
    """Observable state of a tree: path -> (mode, size, mtime_ns)."""
    state = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            st = os.lstat(os.path.join(dirpath, name))
            state[os.path.relpath(os.path.join(dirpath, name), root)] = (st.st_mode, st.st_size, st.st_mtime_ns)
    return state


@pytest.fixture
def files(tmp_path):
    """Directory with three small files."""
    root = tmp_path / "files"
    make_files(root, {"a.bin": 100, "b.bin": 200, "c.bin": 300})
    return root


@pytest.fixture
def registry(files):
    return CategoryRegistry([DirCategory(files)])


@pytest.fixture
def deny_scandir(monkeypatch):
    """Make ``os.scandir`` raise ``PermissionError`` for chosen directories.

    Works regardless of the user the tests run as.
    """
    denied: set[str] = set()
    real_scandir = os.scandir

    def fake_scandir(path="."):
        if os.fspath(path) in denied:
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", fake_scandir)

    def deny(path: Path) -> None:
        denied.add(str(path))

    return deny
