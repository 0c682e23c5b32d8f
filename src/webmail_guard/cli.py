"""CLI entry point for Webmail Guard."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from .cache import ResultCache
from .classifier import ClassifierClient
from .constants import API_ENDPOINT, QUIET_PERIOD_SECONDS, WATCH_INTERVAL_SECONDS
from .display import ConsoleReporter, configure_logging, console, display_results, display_statistics
from .document import LiveDocument
from .export import export_results
from .models import ScanResult, ScanStatistics
from .monitor import ChangeMonitor, watch
from .providers import is_supported_host, selectors_for
from .scanner import ScanListener, ScanOrchestrator

_HTML_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load_document(html_file: Path, host: str | None) -> LiveDocument:
    document = LiveDocument(html_file)
    document.refresh()
    document.hostname = host or document.detect_hostname()

    if not document.hostname:
        console.print("[dim]No host given or found in the page; using generic selectors.[/dim]")
    elif not is_supported_host(document.hostname):
        console.print(
            f"[yellow]{document.hostname} is not a supported webmail host; "
            "using generic selectors.[/yellow]"
        )
    return document


async def _run_scan(
    document: LiveDocument,
    endpoint: str,
    use_cache: bool,
) -> tuple[list[ScanResult], ScanStatistics]:
    cache = ResultCache() if use_cache else None
    listeners: list[ScanListener] = [cache] if cache else []
    try:
        async with ClassifierClient(endpoint=endpoint) as classifier:
            orchestrator = ScanOrchestrator(
                document,
                selectors_for(document.hostname),
                classifier,
                listeners=listeners,
            )
            with console.status("Scanning emails..."):
                await orchestrator.run_full_scan()
                await orchestrator.on_opened_message_detected()
            return orchestrator.results(), orchestrator.statistics()
    finally:
        if cache:
            cache.close()


async def _run_watch(
    document: LiveDocument,
    endpoint: str,
    interval: float,
    quiet_period: float,
    use_cache: bool,
) -> None:
    cache = ResultCache() if use_cache else None
    listeners: list[ScanListener] = [ConsoleReporter(show_table_on_complete=True)]
    if cache:
        listeners.append(cache)
    try:
        async with ClassifierClient(endpoint=endpoint) as classifier:
            orchestrator = ScanOrchestrator(
                document,
                selectors_for(document.hostname),
                classifier,
                listeners=listeners,
            )
            monitor = ChangeMonitor(orchestrator, quiet_period=quiet_period)
            await orchestrator.run_full_scan()
            await orchestrator.on_opened_message_detected()
            try:
                await watch(document, monitor, interval=interval)
            finally:
                await monitor.drain()
    finally:
        if cache:
            cache.close()


@click.group()
@click.version_option(version="0.1.0", prog_name="webmail-guard")
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """Webmail Guard - score the risk of messages in a webmail page."""
    configure_logging(verbose)


@cli.command()
@click.argument("html_file", type=_HTML_FILE)
@click.option("--host", default=None, envvar="WEBMAIL_GUARD_HOST", help="Webmail hostname the page came from.")
@click.option(
    "--endpoint",
    default=API_ENDPOINT,
    envvar="WEBMAIL_GUARD_ENDPOINT",
    show_default=True,
    help="Remote classifier URL.",
)
@click.option("--no-cache", is_flag=True, help="Do not store results in the cache.")
@click.option("--min-score", default=0, type=click.IntRange(0, 100), help="Minimum score to display (0-100).")
def scan(html_file: Path, host: str | None, endpoint: str, no_cache: bool, min_score: int) -> None:
    """Scan a saved webmail page and score every message in it."""
    document = _load_document(html_file, host)
    results, stats = asyncio.run(_run_scan(document, endpoint, use_cache=not no_cache))

    if not results:
        console.print("[yellow]No emails found.[/yellow]")
        return

    display_results(results, min_score=min_score)
    display_statistics(stats)


@cli.command(name="watch")
@click.argument("html_file", type=_HTML_FILE)
@click.option("--host", default=None, envvar="WEBMAIL_GUARD_HOST", help="Webmail hostname the page came from.")
@click.option(
    "--endpoint",
    default=API_ENDPOINT,
    envvar="WEBMAIL_GUARD_ENDPOINT",
    show_default=True,
    help="Remote classifier URL.",
)
@click.option(
    "--interval",
    default=WATCH_INTERVAL_SECONDS,
    type=click.FloatRange(min=0.05),
    envvar="WEBMAIL_GUARD_WATCH_INTERVAL",
    show_default=True,
    help="Seconds between checks of the page file.",
)
@click.option(
    "--quiet-period",
    default=QUIET_PERIOD_SECONDS,
    type=click.FloatRange(min=0.0),
    envvar="WEBMAIL_GUARD_QUIET_PERIOD",
    show_default=True,
    help="Seconds without changes before a scan starts.",
)
@click.option("--no-cache", is_flag=True, help="Do not store results in the cache.")
def watch_cmd(
    html_file: Path,
    host: str | None,
    endpoint: str,
    interval: float,
    quiet_period: float,
    no_cache: bool,
) -> None:
    """Watch a webmail page file and score messages as they appear."""
    document = _load_document(html_file, host)
    console.print(f"[bold]Watching[/bold] {html_file} (Ctrl+C to stop)")
    try:
        asyncio.run(_run_watch(document, endpoint, interval, quiet_period, use_cache=not no_cache))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")


@cli.command(name="export")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    help="Output format.",
)
@click.option("-o", "--output", required=True, help="Output file path.")
def export_cmd(fmt: str, output: str) -> None:
    """Export cached scan results to CSV or JSON."""
    with ResultCache() as cache:
        results = cache.load_results()

    if not results:
        raise click.ClickException("No cached results found. Run 'scan' first.")

    export_results(results, format=fmt, output_path=output)
    console.print(f"Results saved to {output}")


@cli.group(name="cache")
def cache_group() -> None:
    """Manage the result cache."""


@cache_group.command(name="info")
def cache_info() -> None:
    """Show cache statistics."""
    with ResultCache() as cache:
        info = cache.get_info()
        stats = cache.load_latest_stats()

    if info["result_count"] == 0:
        console.print("[dim]Cache is empty.[/dim]")
        return

    console.print(f"[bold]Database size:[/bold] {info['db_file_size'] / 1024:.1f} KB")
    console.print(f"[bold]Last scan:[/bold] {info['last_scan_date'] or 'never completed'}")
    console.print(f"[bold]Results:[/bold] {info['result_count']}")
    console.print(f"[bold]Offline verdicts:[/bold] {info['degraded_count']}")
    if stats is not None:
        display_statistics(stats)


@cache_group.command(name="clear")
def cache_clear() -> None:
    """Clear the result cache."""
    with ResultCache() as cache:
        cache.clear()
    console.print("[green]Cache cleared.[/green]")
