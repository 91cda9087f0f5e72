"""CLI interface for Reclaim."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from reclaim.core.category_loader import load_categories
from reclaim.core.controller import DeletionController
from reclaim.core.errors import ReclaimError
from reclaim.core.registry import ALL, SAFE, CategoryRegistry
from reclaim.core.runner import ScanRequest, ShredRequest, TaskRunner
from reclaim.models.clean_result import DeletionReport
from reclaim.models.progress import EventKind
from reclaim.models.scan_result import ScanResult
from reclaim.report import report_to_dict, scan_result_to_dict, write_report
from reclaim.settings import Settings
from reclaim.utils import bytes_to_human, display_path


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_registry(settings: Settings) -> CategoryRegistry:
    return load_categories(CategoryRegistry(), settings)


def _selector(category_ids: tuple[str, ...]) -> str | tuple[str, ...]:
    return category_ids or ALL


def _risk_tag(risk_level: str) -> str:
    if risk_level == "moderate":
        return click.style(" [moderate risk]", fg="yellow")
    if risk_level == "aggressive":
        return click.style(" [aggressive]", fg="red")
    return ""


def _print_result(result: ScanResult) -> None:
    if result.total_bytes > 0 or result.entries:
        tag = click.style(" [report only]", fg="bright_black") if any(e.report_only for e in result.entries) else ""
        click.echo(
            f"  {click.style('✓', fg='green')} {result.category_label:30s} — "
            f"{click.style(bytes_to_human(result.total_bytes), fg='green', bold=True)} "
            f"({len(result.entries):,} items){tag}"
        )
    else:
        click.echo(f"  {click.style('·', fg='bright_black')} {result.category_label:30s} — nothing to clean")
    if result.warnings:
        click.echo(f"      {click.style(f'{len(result.warnings)} paths could not be read', fg='yellow')}")


def _print_report(report: DeletionReport) -> None:
    for outcome in report.outcomes:
        if outcome.failed:
            click.echo(
                f"  {click.style('!', fg='yellow')} {outcome.category_id:30s} — "
                f"{bytes_to_human(outcome.bytes_freed)}, {outcome.failed} error(s)"
            )
        else:
            click.echo(
                f"  {click.style('✓', fg='green')} {outcome.category_id:30s} — "
                f"{click.style(bytes_to_human(outcome.bytes_freed), fg='green', bold=True)}"
            )
    for error in report.errors:
        click.echo(f"      {click.style(error, fg='red')}")

    label = "Would free" if report.dry_run else "Total freed"
    click.echo(f"\n{label}: {click.style(bytes_to_human(report.bytes_freed), fg='green', bold=True)}")
    click.echo(f"Deleted: {report.deleted}  Skipped: {report.skipped}  Failed: {report.failed}\n")
    if report.dry_run:
        click.echo("(dry run — no files were deleted)")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: $XDG_CONFIG_HOME/reclaim/settings.json)",
)
@click.pass_context
def main(ctx: click.Context, verbose: int, config_path: Path | None) -> None:
    """Reclaim: find and remove junk files safely."""
    _setup_logging(verbose)
    ctx.obj = Settings(config_path)


def _registry(ctx: click.Context) -> CategoryRegistry:
    return _build_registry(ctx.find_object(Settings))


# ── list ─────────────────────────────────────────────────────────────────

@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List known junk categories."""
    registry = _registry(ctx)

    if as_json:
        data = [
            {
                "id": c.id,
                "label": c.label,
                "description": c.description,
                "risk_level": c.risk_level,
                "report_only": c.report_only,
                "available": c.is_available(),
            }
            for c in registry
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for category in registry:
        status = "" if category.is_available() else click.style(" [not available]", fg="bright_black")
        click.echo(
            f"  {click.style(category.id, fg='cyan', bold=True):30s}  {category.label}"
            f"{_risk_tag(category.risk_level)}{status}"
        )
        click.echo(f"    {category.description}")


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("category_ids", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def scan(ctx: click.Context, category_ids: tuple[str, ...], as_json: bool) -> None:
    """Scan for junk (preview only, never deletes)."""
    registry = _registry(ctx)

    with TaskRunner(registry) as runner:
        try:
            op = runner.submit(ScanRequest(_selector(category_ids)))
        except ReclaimError as exc:
            raise click.ClickException(str(exc)) from exc

        if not as_json:
            click.echo(f"\n{click.style('🔍', bold=True)} Scanning...\n")
        for event in op.events():
            if event.kind is EventKind.FAILED:
                raise click.ClickException(f"Scan failed: {event.reason}")
        summary = op.wait()

    results = summary.scan_results
    if as_json:
        click.echo(json.dumps([scan_result_to_dict(r) for r in results], indent=2))
        return

    for result in results:
        _print_result(result)
    for path, reason in summary.failures:
        click.echo(f"  {click.style('✗', fg='red')} {path.name:30s} — error during scan: {reason}")

    total = sum(r.total_bytes for r in results if not any(e.report_only for e in r.entries))
    click.echo(f"\nTotal reclaimable: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")


# ── duplicates ───────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def duplicates(ctx: click.Context, as_json: bool) -> None:
    """Show groups of files with identical content."""
    registry = _registry(ctx)
    try:
        result = registry.get("duplicates").scan()
    except ReclaimError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps(scan_result_to_dict(result).get("groups", []), indent=2))
        return

    if not result.groups:
        click.echo("No duplicates found.")
        return

    for group in result.groups:
        click.echo(
            f"\n  {click.style(bytes_to_human(group.size_bytes), bold=True)} × {len(group)} "
            f"({click.style(bytes_to_human(group.reclaimable_bytes), fg='green')} reclaimable)"
        )
        click.echo(f"    {click.style('keep', fg='cyan')}    {display_path(group.keeper.path)}")
        for entry in group.removable:
            click.echo(f"    {click.style('remove', fg='yellow')}  {display_path(entry.path)}")
    click.echo(f"\n{result.summary}\n")


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("category_ids", nargs=-1)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--safe", is_flag=True, help="Clean only the safe-risk categories")
@click.option("--dry-run", is_flag=True, help="Show what would be cleaned without doing it")
@click.option("--include-report-only", is_flag=True, help="Also delete entries that are only reported by default")
@click.option("--report", "report_path", type=click.Path(dir_okay=False, path_type=Path), help="Write a text report")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def clean(
    ctx: click.Context,
    category_ids: tuple[str, ...],
    yes: bool,
    safe: bool,
    dry_run: bool,
    include_report_only: bool,
    report_path: Path | None,
    as_json: bool,
) -> None:
    """Scan and clean the selected categories."""
    if safe and category_ids:
        raise click.UsageError("--safe cannot be combined with category ids")
    controller = DeletionController(_registry(ctx))

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning...\n")
    try:
        results = controller.scan(SAFE if safe else _selector(category_ids))
    except ReclaimError as exc:
        raise click.ClickException(str(exc)) from exc

    controller.select_all()
    if include_report_only:
        for result in results:
            for entry in result.entries:
                if entry.report_only:
                    controller.select(entry)

    selected = controller.selected_entries()
    if not selected:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "results": []}))
        else:
            click.echo("Nothing to clean.")
        return

    if not as_json:
        for result in results:
            _print_result(result)
        click.echo(f"\nSelected: {click.style(bytes_to_human(controller.selected_bytes), fg='green', bold=True)}\n")

    confirmed = False
    if not dry_run:
        confirmed = yes or (not as_json and click.confirm("Delete the selected files?", default=False))
        if not confirmed and not as_json:
            click.echo("Not confirmed, showing a dry run.\n")

    if confirmed and not as_json:
        click.echo(f"{click.style('🧹', bold=True)} Cleaning...\n")
    report = controller.delete(confirmed=confirmed)

    if report_path is not None:
        write_report(report, report_path)

    if as_json:
        status = "cleaned" if confirmed else "dry_run"
        click.echo(json.dumps({"status": status, **report_to_dict(report)}, indent=2))
        return

    _print_report(report)
    if report_path is not None:
        click.echo(f"Report written to {report_path}")


# ── shred ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--passes", "-n", type=int, default=None, help="Overwrite passes (default from settings, 3)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def shred(ctx: click.Context, paths: tuple[Path, ...], passes: int | None, yes: bool) -> None:
    """Overwrite files several times, then delete them."""
    settings = ctx.find_object(Settings)
    if passes is None:
        passes = settings.get_int("shred.passes")

    confirmed = yes or click.confirm(
        f"Irreversibly shred {len(paths)} path(s) with {passes} passes?", default=False
    )

    with TaskRunner(_registry(ctx)) as runner:
        try:
            op = runner.submit(ShredRequest(paths=paths, passes=passes, confirmed=confirmed))
        except ReclaimError as exc:
            raise click.ClickException(str(exc)) from exc

        for event in op.events():
            match event.kind:
                case EventKind.SHREDDING if event.pass_number is None:
                    click.echo(f"  {click.style('·', fg='bright_black')} {event.message}")
                case EventKind.SHREDDING if event.pass_number == event.passes:
                    click.echo(f"  {click.style('✓', fg='green')} {event.path}")
                case EventKind.WARNING:
                    click.echo(f"  {click.style('✗', fg='red')} {event.message}")
                case EventKind.FAILED:
                    raise click.ClickException(f"Shred failed: {event.reason}")
        summary = op.wait()

    verb = "Would shred" if summary.dry_run else "Shredded"
    click.echo(
        f"\n{verb} {summary.completed} path(s), "
        f"{click.style(bytes_to_human(summary.bytes_processed), bold=True)}, {summary.failed} failed"
    )
    if summary.dry_run:
        click.echo("(not confirmed — nothing was shredded)")
    if summary.failed:
        ctx.exit(1)
