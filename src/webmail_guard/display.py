"""Rich-based display functions for Webmail Guard."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .constants import RECENT_RESULTS_LIMIT
from .models import RiskStatus, ScanResult, ScanStatistics
from .scanner import ScanListener

console = Console()

_STATUS_COLORS = {
    RiskStatus.SAFE: "green",
    RiskStatus.SUSPECTED: "yellow",
    RiskStatus.DANGEROUS: "red",
}
_STATUS_ICONS = {
    RiskStatus.SAFE: "✓",
    RiskStatus.SUSPECTED: "⚠",
    RiskStatus.DANGEROUS: "✗",
}


def configure_logging(verbosity: int = 0) -> None:
    """Route library logging through the shared Rich console."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _truncate(text: str, max_length: int) -> str:
    if not text:
        return ""
    return text[:max_length] + "..." if len(text) > max_length else text


def status_label(result: ScanResult) -> str:
    color = _STATUS_COLORS[result.status]
    return f"[{color}]{_STATUS_ICONS[result.status]} {result.status.value}[/{color}]"


def display_results(
    results: list[ScanResult],
    min_score: int = 0,
    limit: int | None = None,
) -> None:
    """Display results lowest score first, so threats are on top."""
    shown = sorted((r for r in results if r.score >= min_score), key=lambda r: r.score)
    if limit is not None:
        shown = shown[:limit]

    table = Table(title="Scan Results")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    table.add_column("Sender")
    table.add_column("Subject")
    table.add_column("Threats")

    for idx, result in enumerate(shown, start=1):
        color = _STATUS_COLORS[result.status]
        score_text = f"[{color}]{result.score}[/{color}]"
        if result.degraded:
            score_text += " [dim](offline)[/dim]"
        table.add_row(
            str(idx),
            score_text,
            status_label(result),
            _truncate(result.record.sender, 30),
            _truncate(result.record.subject, 40),
            ", ".join(result.threats),
        )

    console.print(table)


def display_statistics(stats: ScanStatistics) -> None:
    if stats.total == 0:
        summary = "[dim]No emails scanned yet.[/dim]"
    elif stats.dangerous:
        summary = f"[bold red]{stats.dangerous} threat(s) detected![/bold red]"
    elif stats.suspected:
        summary = f"[yellow]{stats.suspected} suspected email(s)[/yellow]"
    else:
        summary = f"[green]All {stats.total} emails are safe[/green]"

    console.print(
        Panel(
            f"{summary}\n"
            f"Safe: [green]{stats.safe}[/green]  |  "
            f"Suspected: [yellow]{stats.suspected}[/yellow]  |  "
            f"Dangerous: [red]{stats.dangerous}[/red]  |  "
            f"Safety score: [bold]{stats.average_score if stats.total else '--'}[/bold]",
            title="Summary",
        )
    )


class ConsoleReporter(ScanListener):
    """Prints engine events as they happen."""

    def __init__(self, show_table_on_complete: bool = False) -> None:
        self.show_table_on_complete = show_table_on_complete
        self._latest: list[ScanResult] = []

    def on_scan_started(self) -> None:
        console.print("[dim]Scanning emails...[/dim]")

    def on_result_added(self, result: ScanResult) -> None:
        self._latest.append(result)
        offline = " [dim](offline)[/dim]" if result.degraded else ""
        console.print(
            f"  {status_label(result)} {result.score:>3}{offline}  "
            f"{_truncate(result.record.sender, 30)} - {_truncate(result.record.subject, 40)}"
        )

    def on_scan_completed(self, stats: ScanStatistics) -> None:
        if self.show_table_on_complete and self._latest:
            display_results(self._latest, limit=RECENT_RESULTS_LIMIT)
        self._latest = []
        display_statistics(stats)
