"""Plain-text and JSON rendering of deletion reports."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from reclaim.models.clean_result import DeletionReport, EntryStatus
from reclaim.models.scan_result import ScanResult
from reclaim.utils import bytes_to_human

log = logging.getLogger(__name__)


def format_report(report: DeletionReport, *, now: datetime | None = None) -> str:
    """Render *report* as a text document with one line per entry."""
    now = now or datetime.now()
    title = "Reclaim Cleaning Report" + (" (dry run)" if report.dry_run else "")
    freed_label = "Would free" if report.dry_run else "Total freed"

    lines = [
        f"=== {title} ===",
        f"Generated: {now:%Y-%m-%d %H:%M:%S}",
        "",
        f"{freed_label}: {bytes_to_human(report.bytes_freed)}",
        f"Deleted: {report.deleted}  Skipped: {report.skipped}  Failed: {report.failed}",
        "",
        "--- Details ---",
        "",
    ]
    for outcome in report.outcomes:
        for item in outcome.outcomes:
            line = f"[{outcome.category_id}] {item.status.value:7s} {item.entry.path} ({bytes_to_human(item.entry.size_bytes)})"
            if item.status is not EntryStatus.DELETED:
                line += f": {item.reason}"
            lines.append(line)

    if report.warnings:
        lines += ["", "--- Warnings ---", ""]
        lines += [str(w) for w in report.warnings]

    return "\n".join(lines) + "\n"


def write_report(report: DeletionReport, path: Path) -> Path:
    """Write the text report to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_report(report), encoding="utf-8")
    log.info("Report written to %s", path)
    return path


def report_to_dict(report: DeletionReport) -> dict[str, Any]:
    return {
        "dry_run": report.dry_run,
        "deleted": report.deleted,
        "skipped": report.skipped,
        "failed": report.failed,
        "bytes_freed": report.bytes_freed,
        "categories": [
            {
                "category_id": o.category_id,
                "bytes_freed": o.bytes_freed,
                "entries": [
                    {
                        "path": str(item.entry.path),
                        "size_bytes": item.entry.size_bytes,
                        "status": item.status.value,
                        "reason": item.reason,
                    }
                    for item in o.outcomes
                ],
            }
            for o in report.outcomes
        ],
        "warnings": [{"path": str(w.path), "reason": w.reason, "kind": w.kind.value} for w in report.warnings],
    }


def scan_result_to_dict(result: ScanResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "category_id": result.category_id,
        "category_label": result.category_label,
        "total_bytes": result.total_bytes,
        "entry_count": len(result.entries),
        "summary": result.summary,
        "entries": [
            {
                "path": str(e.path),
                "size_bytes": e.size_bytes,
                "report_only": e.report_only,
                "description": e.description,
            }
            for e in result.entries
        ],
        "warnings": [{"path": str(w.path), "reason": w.reason, "kind": w.kind.value} for w in result.warnings],
    }
    if result.groups:
        data["groups"] = [
            {
                "key": g.key,
                "size_bytes": g.size_bytes,
                "keeper": str(g.keeper.path),
                "removable": [str(e.path) for e in g.removable],
                "reclaimable_bytes": g.reclaimable_bytes,
            }
            for g in result.groups
        ]
    return data
