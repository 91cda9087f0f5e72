"""Category discovery and loading."""

from __future__ import annotations

import importlib.util
import inspect
import logging
from pathlib import Path
from types import ModuleType

from reclaim.categories.app_logs import AppLogsCategory
from reclaim.categories.broken_symlinks import BrokenSymlinksCategory
from reclaim.categories.browser_caches import BrowserCachesCategory
from reclaim.categories.build_artifacts import BuildArtifactsCategory
from reclaim.categories.duplicates import DuplicatesCategory
from reclaim.categories.empty_folders import EmptyFoldersCategory
from reclaim.categories.language_files import LanguageFilesCategory
from reclaim.categories.large_files import LargeFilesCategory
from reclaim.categories.marker_files import MarkerFilesCategory
from reclaim.categories.old_files import OldFilesCategory
from reclaim.categories.package_managers import PackageManagersCategory
from reclaim.categories.privacy import PrivacyCategory
from reclaim.categories.screenshots import ScreenshotsCategory
from reclaim.categories.system_caches import SystemCachesCategory
from reclaim.categories.trash import TrashCategory
from reclaim.core.registry import CategoryRegistry
from reclaim.models.category import CacheDirsCategory, CleanCategory
from reclaim.settings import Settings
from reclaim.utils import xdg_data_home

log = logging.getLogger(__name__)

# Abstract base classes that should not be instantiated
_ABSTRACT_BASES = {CleanCategory, CacheDirsCategory}


def _optional_paths(settings: Settings, key: str) -> tuple[Path, ...] | None:
    """Configured paths for *key*, or None to let the category pick its defaults."""
    return settings.get_paths(key) or None


def builtin_categories(settings: Settings) -> list[CleanCategory]:
    """Instantiate the built-in categories with parameters from *settings*."""
    root = settings.scan_root()
    return [
        SystemCachesCategory(),
        AppLogsCategory(),
        BrowserCachesCategory(),
        BuildArtifactsCategory(roots=_optional_paths(settings, "build_artifacts.roots")),
        PackageManagersCategory(),
        TrashCategory(),
        MarkerFilesCategory(root=root),
        LargeFilesCategory(threshold=settings.get_size("large_files.threshold"), root=root),
        LanguageFilesCategory(
            roots=_optional_paths(settings, "language_files.roots"),
            keep=settings.get("language_files.keep", []),
        ),
        OldFilesCategory(
            min_size=settings.get_size("old_files.min_size"),
            max_age_days=settings.get_int("old_files.max_age_days"),
            roots=_optional_paths(settings, "old_files.roots"),
        ),
        DuplicatesCategory(
            min_size=settings.get_size("duplicates.min_size"),
            max_size=settings.get_size("duplicates.max_size"),
            roots=_optional_paths(settings, "duplicates.roots"),
        ),
        ScreenshotsCategory(
            max_age_days=settings.get_int("screenshots.max_age_days"),
            roots=_optional_paths(settings, "screenshots.roots"),
        ),
        PrivacyCategory(),
        BrokenSymlinksCategory(),
        EmptyFoldersCategory(),
    ]


def _find_categories_in_module(module: ModuleType) -> list[type[CleanCategory]]:
    """Find all concrete CleanCategory subclasses defined in a module."""
    found: list[type[CleanCategory]] = []
    for _, obj in inspect.getmembers(module, inspect.isclass):
        if obj.__module__ != module.__name__ or obj in _ABSTRACT_BASES:
            continue
        if issubclass(obj, CleanCategory) and not inspect.isabstract(obj):
            found.append(obj)
    return found


def load_categories_from_directory(directory: Path) -> list[type[CleanCategory]]:
    """Load category classes from ``*.py`` files or ``<pkg>/category.py`` in *directory*."""
    if not directory.is_dir():
        return []

    found: list[type[CleanCategory]] = []
    for path in sorted(directory.iterdir()):
        if path.is_dir() and (path / "__init__.py").exists():
            module_file = path / "category.py"
            if not module_file.exists():
                module_file = path / "__init__.py"
        elif path.suffix == ".py" and path.name != "__init__.py":
            module_file = path
        else:
            continue

        try:
            spec = importlib.util.spec_from_file_location(f"reclaim_ext_category_{path.stem}", module_file)
            if spec is None or spec.loader is None:
                continue
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            found.extend(_find_categories_in_module(module))
        except Exception:
            log.exception("Failed to load category from: %s", module_file)
    return found


def external_category_dirs(settings: Settings) -> list[Path]:
    """User-local category directory followed by configured ``category_paths``."""
    return [xdg_data_home() / "reclaim" / "categories", *settings.get_paths("category_paths")]


def load_categories(registry: CategoryRegistry, settings: Settings | None = None) -> CategoryRegistry:
    """Register the built-in categories, then external ones.

    An external category whose id clashes with an already registered one
    is ignored by the registry.
    """
    settings = settings or Settings()

    for category in builtin_categories(settings):
        registry.register(category)

    for directory in external_category_dirs(settings):
        for cls in load_categories_from_directory(directory):
            try:
                registry.register(cls())
            except Exception:
                log.exception("Failed to instantiate category: %s", cls.__name__)

    log.info("Loaded %d categories", len(registry))
    return registry
