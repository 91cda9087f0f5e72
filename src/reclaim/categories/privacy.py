"""Category for browsing history, cookies and recent-documents lists."""

from __future__ import annotations

from pathlib import Path

from reclaim.core.walker import entry_size
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import home_dir, xdg_config_home, xdg_data_home

_FIREFOX_TARGETS = (
    "cookies.sqlite",
    "cookies.sqlite-wal",
    "cookies.sqlite-shm",
    "places.sqlite",
    "places.sqlite-wal",
    "places.sqlite-shm",
    "formhistory.sqlite",
    "webappsstore.sqlite",
)

_CHROMIUM_TARGETS = (
    "Cookies",
    "Cookies-journal",
    "History",
    "History-journal",
    "Login Data",
    "Login Data-journal",
    "Web Data",
    "Web Data-journal",
    "Top Sites",
    "Top Sites-journal",
    "Visited Links",
)

_CHROMIUM_VENDORS = (
    "chromium",
    "google-chrome",
    "BraveSoftware/Brave-Browser",
    "microsoft-edge",
    "vivaldi",
)


def _chromium_profiles(base: Path) -> list[Path]:
    if not base.is_dir():
        return []
    profiles = [base / "Default"]
    try:
        profiles.extend(sorted(p for p in base.iterdir() if p.name.startswith("Profile ")))
    except OSError:
        pass
    return [p for p in profiles if p.is_dir()]


class PrivacyCategory(CleanCategory):
    """Browser history/cookie databases and the desktop recent-files list."""

    id = "privacy"
    label = "Privacy Data"
    description = (
        "Browsing history, cookies, saved form data and recently-used lists. "
        "Clearing cookies will log you out of websites."
    )
    risk_level = "aggressive"
    sort_order = 90

    def _candidates(self) -> list[Path]:
        home = home_dir()
        config = xdg_config_home()
        found: list[Path] = []

        firefox = home / ".mozilla" / "firefox"
        if firefox.is_dir():
            try:
                profiles = sorted(p for p in firefox.iterdir() if p.is_dir())
            except OSError:
                profiles = []
            for profile in profiles:
                found.extend(profile / t for t in _FIREFOX_TARGETS)

        for vendor in _CHROMIUM_VENDORS:
            for profile in _chromium_profiles(config / vendor):
                found.extend(profile / t for t in _CHROMIUM_TARGETS)

        found.append(xdg_data_home() / "recently-used.xbel")
        return [p for p in found if p.exists() and not p.is_symlink()]

    def scan(self) -> ScanResult:
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []

        for path in self._candidates():
            size = entry_size(path, warnings)
            if size > 0:
                entries.append(self._entry(path, size, f"Privacy: {path.name}"))

        entries.sort(key=lambda e: (-e.size_bytes, str(e.path)))
        return self._result(entries, warnings, summary=f"Found {len(entries)} privacy-sensitive files")
