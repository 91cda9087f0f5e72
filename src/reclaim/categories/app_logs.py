"""Category for application log files in the user's config, data and state dirs."""

from __future__ import annotations

import re
from pathlib import Path

from reclaim.core.walker import iter_files, should_skip_dir
from reclaim.models.category import CleanCategory
from reclaim.models.scan_result import ScanEntry, ScanResult, ScanWarning
from reclaim.utils import home_dir, xdg_config_home, xdg_data_home, xdg_state_home

# app.log, app.log.1, app.log.2.gz, app.log.old
_LOG_RE = re.compile(r"\.log(\.\d+)?(\.(gz|xz|bz2|zst))?$|\.log\.old$")

_MAX_DEPTH = 6


class AppLogsCategory(CleanCategory):
    """Log files written by desktop applications."""

    id = "app_logs"
    label = "Application Logs"
    description = "Log files left by applications. Logs are only useful when debugging a problem."
    sort_order = 15

    def __init__(self, roots: tuple[Path, ...] | None = None) -> None:
        self._roots = roots

    def _log_roots(self) -> tuple[Path, ...]:
        if self._roots is not None:
            return self._roots
        return (xdg_config_home(), xdg_data_home(), xdg_state_home())

    def _session_logs(self) -> list[Path]:
        home = home_dir()
        return [p for p in (home / ".xsession-errors.old",) if p.is_file()]

    def scan(self) -> ScanResult:
        entries: list[ScanEntry] = []
        warnings: list[ScanWarning] = []
        seen: set[Path] = set()

        for path, st in iter_files(self._log_roots(), warnings, skip_dir=should_skip_dir, max_depth=_MAX_DEPTH):
            if not _LOG_RE.search(path.name) or path in seen:
                continue
            seen.add(path)
            if st.st_size > 0:
                entries.append(self._entry(path, st.st_size, f"Log: {path.name}"))

        if self._roots is None:
            for path in self._session_logs():
                try:
                    size = path.lstat().st_size
                except OSError as exc:
                    warnings.append(ScanWarning.from_error(path, exc))
                    continue
                if size > 0 and path not in seen:
                    entries.append(self._entry(path, size, f"Log: {path.name}"))

        return self._result(entries, warnings, summary=f"Found {len(entries)} log files")
