"""Category for package manager download caches."""

from __future__ import annotations

from pathlib import Path

from reclaim.models.category import CacheDirsCategory
from reclaim.utils import home_dir, xdg_cache_home


class PackageManagersCategory(CacheDirsCategory):
    """Download caches of npm, yarn, pnpm, pip, uv, Poetry, Cargo and Go."""

    id = "package_managers"
    label = "Package Manager Caches"
    description = "Downloaded package archives. Package managers fetch them again when needed."
    sort_order = 30

    _recreate_dirs = True

    @property
    def _cache_dirs(self) -> tuple[Path, ...]:
        home = home_dir()
        cache = xdg_cache_home()
        return (
            home / ".npm" / "_cacache",
            cache / "yarn",
            cache / "pnpm",
            cache / "pip",
            cache / "pipenv",
            cache / "uv",
            cache / "pypoetry",
            cache / "go-build",
            home / ".cargo" / "registry" / "cache",
        )
