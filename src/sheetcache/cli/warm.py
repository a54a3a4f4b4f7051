"""Cache warm command."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from ..store import CacheStats
from ..warm import STATUS_CACHED, STATUS_ERROR, WarmReport
from . import cli
from .options import engine_options, load_engine

_STATUS_STYLES: dict[str, str] = {
    STATUS_CACHED: "green",
    STATUS_ERROR: "red",
}


def _format_bytes(n: float) -> str:
    """Format a byte count using SI-like suffixes."""
    if n == 0:
        return "0 B"
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(n) < 1024:
            if n == int(n):
                return f"{int(n)} {unit}"
            return f"{n:.1f} {unit}"
        n = n / 1024
    return f"{n:.1f} PB"


def _format_seconds(seconds: float | None) -> str:
    return "-" if seconds is None else f"{seconds:.2f}s"


def _build_table(report: WarmReport) -> Table:
    """Construct a Rich Table from the warm report."""
    table = Table()
    table.add_column("Source", style="cyan")
    table.add_column("Status")
    table.add_column("Rows", justify="right")
    table.add_column("Fetch", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Error")

    for outcome in report.outcomes:
        style = _STATUS_STYLES.get(outcome.status, "dim")
        table.add_row(
            outcome.source_key,
            f"[{style}]{outcome.status}[/]",
            "-" if outcome.row_count is None else str(outcome.row_count),
            _format_seconds(outcome.fetch_seconds),
            _format_seconds(outcome.total_seconds),
            outcome.error or "",
        )

    table.add_section()
    table.add_row(
        "[bold]Total[/bold]",
        f"[bold]{report.cached} cached, {report.skipped} skipped, "
        f"{len(report.errors)} errors[/bold]",
        "",
        "",
        f"[bold]{_format_seconds(report.elapsed_seconds)}[/bold]",
        "",
    )
    return table


def _format_stats(stats: CacheStats) -> str:
    return (
        f"{stats.total_files} file(s), {stats.total_rows} row(s), "
        f"{_format_bytes(stats.total_size)} cached (TTL {stats.ttl_seconds:.0f}s)"
    )


@cli.command()
@engine_options
@click.argument("sources", nargs=-1, required=True)
def warm(config_path: str | None, verbose: bool, sources: tuple[str, ...]) -> None:
    """Fetch, decode and index SOURCES, then print a report.

    Exits with status 1 when at least one source failed.
    """
    engine = load_engine(config_path, verbose)
    report = engine.warm(list(sources))

    console = Console()
    console.print(_build_table(report))
    console.print(_format_stats(engine.stats()))

    if report.errors:
        raise SystemExit(1)
