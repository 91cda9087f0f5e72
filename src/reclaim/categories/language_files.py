"""Category for translations in languages the user does not use."""

from __future__ import annotations

import logging
import os
from functools import cached_property
from pathlib import Path
from typing import Iterable

from reclaim.core.walker import dir_info
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import xdg_data_home

log = logging.getLogger(__name__)

# Always kept regardless of the session locale
_ALWAYS_KEEP = frozenset({"C", "POSIX", "en", "en_US", "en_GB"})

_LOCALE_ENV = ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG")


def _normalize(code: str) -> str:
    """``pt_BR.UTF-8@euro`` -> ``pt_BR``."""
    return code.split(".", 1)[0].split("@", 1)[0].strip()


def session_languages(extra: Iterable[str] = ()) -> frozenset[str]:
    """Language codes in use, from the locale environment plus *extra*."""
    langs = set(_ALWAYS_KEEP)
    for var in _LOCALE_ENV:
        for part in os.environ.get(var, "").split(":"):
            code = _normalize(part)
            if code:
                langs.add(code)
                langs.add(code.split("_", 1)[0])
    for code in extra:
        langs.add(_normalize(code))
    return frozenset(langs)


class LanguageFilesCategory(CleanCategory):
    """``<root>/<lang>/LC_MESSAGES`` catalogs for languages not in use."""

    id = "language_files"
    label = "Unused Locale Files"
    description = "Translation catalogs of user-installed applications for languages you do not use."
    risk_level = "moderate"
    sort_order = 60

    def __init__(self, roots: tuple[Path, ...] | None = None, keep: Iterable[str] = ()) -> None:
        self._roots = roots
        self._keep = tuple(keep)

    @cached_property
    def keep_languages(self) -> frozenset[str]:
        return session_languages(self._keep)

    def _locale_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        data = xdg_data_home()
        roots = [data / "locale"]
        try:
            roots.extend(sorted(p / "locale" for p in data.iterdir() if (p / "locale").is_dir()))
        except OSError:
            log.debug("Cannot list %s", data)
        return tuple(roots)

    def _is_kept(self, code: str) -> bool:
        keep = self.keep_languages
        return code in keep or code.split("_", 1)[0] in keep or _normalize(code) in keep

    def scan(self) -> ScanResult:
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []

        for root in self._locale_roots():
            if not root.is_dir():
                continue
            try:
                lang_dirs = sorted(root.iterdir())
            except OSError as exc:
                warnings.append(ScanWarning.from_error(root, exc))
                continue
            for lang_dir in lang_dirs:
                if lang_dir.is_symlink() or not (lang_dir / "LC_MESSAGES").is_dir():
                    continue
                if self._is_kept(lang_dir.name):
                    continue
                size, _count = dir_info(lang_dir, warnings)
                if size > 0:
                    entries.append(self._entry(lang_dir, size, f"Locale {lang_dir.name} in {root.parent.name}"))

        return self._result(entries, warnings, summary=f"Found {len(entries)} unused locale directories")
