"""Category for regenerable build output inside project checkouts."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from reclaim.core.walker import dir_info, walk
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import home_dir

log = logging.getLogger(__name__)

# Artifact directory name -> project files that must sit next to it.
# An empty tuple means the name alone is conclusive.
_ARTIFACTS: dict[str, tuple[str, ...]] = {
    "node_modules": ("package.json",),
    "target": ("Cargo.toml", "pom.xml"),
    "build": ("pyproject.toml", "setup.py", "build.gradle", "build.gradle.kts", "CMakeLists.txt"),
    "dist": ("pyproject.toml", "setup.py", "package.json"),
    ".gradle": ("build.gradle", "build.gradle.kts", "settings.gradle", "settings.gradle.kts"),
    "__pycache__": (),
    ".pytest_cache": (),
    ".mypy_cache": (),
    ".ruff_cache": (),
    ".tox": (),
    ".nox": (),
}

_SKIP_DIRS = frozenset({".git", ".hg", ".svn", ".venv", "venv", ".cargo", ".rustup"})

_DEFAULT_ROOT_NAMES = ("Projects", "projects", "src", "code", "dev", "workspace", "git")

_MAX_DEPTH = 8


def _artifact_kind(entry: os.DirEntry) -> str | None:
    """Return the artifact name if *entry* is a build output directory."""
    markers = _ARTIFACTS.get(entry.name)
    if markers is None:
        return None
    if not markers:
        return entry.name
    parent = os.path.dirname(entry.path)
    if any(os.path.isfile(os.path.join(parent, m)) for m in markers):
        return entry.name
    return None


class BuildArtifactsCategory(CleanCategory):
    """Dependency trees, compiler output and tool caches of development projects."""

    id = "build_artifacts"
    label = "Build Artifacts"
    description = (
        "node_modules, Cargo target, Python bytecode and test caches inside project "
        "directories. A rebuild or reinstall recreates them."
    )
    risk_level = "moderate"
    sort_order = 35

    def __init__(self, roots: tuple[Path, ...] | None = None) -> None:
        self._roots = roots

    def _project_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        home = home_dir()
        return tuple(home / name for name in _DEFAULT_ROOT_NAMES)

    @property
    def unavailable_reason(self) -> str | None:
        if not any(r.is_dir() for r in self._project_roots()):
            return "No project directories found"
        return None

    def scan(self) -> ScanResult:
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []
        seen: set[str] = set()

        for root in self._project_roots():
            if not root.is_dir():
                continue
            for entry in walk(
                root,
                warnings,
                skip_dir=_SKIP_DIRS.__contains__,
                max_depth=_MAX_DEPTH,
                descend=lambda e: _artifact_kind(e) is None,
            ):
                if entry.path in seen or not entry.is_dir(follow_symlinks=False):
                    continue
                kind = _artifact_kind(entry)
                if kind is None:
                    continue
                seen.add(entry.path)
                path = Path(entry.path)
                size, _count = dir_info(path, warnings)
                if size > 0:
                    entries.append(self._entry(path, size, f"{kind} in {path.parent.name}"))

        return self._result(entries, warnings, summary=f"Found {len(entries)} build artifact directories")
