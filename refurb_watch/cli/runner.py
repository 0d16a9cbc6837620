# refurb_watch/cli/runner.py

"""Headless CLI actions: run the tracker, show or chart the history."""

import logging
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.table import Table

from refurb_watch.notify.slack_notifier import NotificationError, SlackNotifier
from refurb_watch.scrapers.page_fetcher import FetchError
from refurb_watch.services.history_stats import (
    availability_pct,
    chip_rank,
    freshness,
)
from refurb_watch.services.tracker import RefurbTracker
from refurb_watch.storage.chart_exporter import (
    export_catalog_chart,
    export_price_history_chart,
)
from refurb_watch.storage.history_store import HistoryStore

logger = logging.getLogger("refurb_watch.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)

_FRESHNESS_STYLES: dict[str, str] = {
    "now": "green",
    "recent": "cyan",
    "stale": "yellow",
    "old": "red",
}


def _make_store(history_file: str | None) -> HistoryStore:
    return HistoryStore(Path(history_file) if history_file else None)


async def run_once(
    history_file: str | None = None,
    notify: bool = False,
    tracker: RefurbTracker | None = None,
    notifier: SlackNotifier | None = None,
) -> int:
    """Run the tracker once and return an exit code (0=ok, 1=fail)."""
    tracker = tracker or RefurbTracker(store=_make_store(history_file))
    _err.print(f"[bold]Fetching[/bold] {tracker.url}")

    try:
        summary = await tracker.run()
    except FetchError as exc:
        logger.error("Run aborted: %s", exc, exc_info=True)
        _err.print(f"[red]Error: {exc}[/red]")
        return 1

    if summary.extracted == 0:
        _err.print("[yellow]No products found in the listing.[/yellow]")
    else:
        _err.print(
            f"[dim]{summary.extracted} listed "
            f"(via {summary.extraction_source})[/dim]"
        )

    _err.print(
        f"[green]✓ Done: {summary.added} added, {summary.updated} updated, "
        f"{summary.skipped} skipped — {summary.total} total[/green]"
    )

    if notify:
        notifier = notifier or SlackNotifier()
        try:
            notifier.notify(summary.new_records)
        except NotificationError as exc:
            logger.error("Notification failed: %s", exc, exc_info=True)
            _err.print(f"[red]Notification failed: {exc}[/red]")
            return 1

    return 0


def show_history(history_file: str | None = None) -> int:
    """Print the stored history as a Rich table without fetching."""
    today = date.today()
    collection = _make_store(history_file).load(today)
    if not collection.entries:
        _err.print("[yellow]History is empty.[/yellow]")
        return 0

    table = Table(
        title=(
            f"{len(collection.entries)} products — "
            f"updated {collection.collected_at}"
        ),
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("Chip", style="bold")
    table.add_column("Ref", style="dim")
    table.add_column("RAM", justify="right")
    table.add_column("Storage", justify="right")
    table.add_column("Network")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Avail %", justify="right")
    table.add_column("Status")
    table.add_column("First Seen")
    table.add_column("Last Seen")

    ordered = sorted(
        collection.entries,
        key=lambda e: (chip_rank(e.chip_family), e.current_price),
    )
    for e in ordered:
        fresh = freshness(e, today)
        style = _FRESHNESS_STYLES[fresh.bucket]
        table.add_row(
            e.chip_family,
            e.reference_id,
            e.memory_size or "—",
            e.storage_size or "—",
            e.network_class,
            f"${e.current_price:,.2f}",
            f"{availability_pct(e)}",
            f"[{style}]{fresh.label}[/{style}]",
            e.first_observed.isoformat(),
            e.last_observed.isoformat(),
        )

    Console().print(table)
    return 0


def run_dashboard(
    history_file: str | None = None,
    open_browser: bool = True,
) -> int:
    """Export the stored history as price and catalog HTML charts."""
    collection = _make_store(history_file).load()
    path = export_price_history_chart(
        collection, open_browser=open_browser,
    )
    if path is None:
        _err.print("[yellow]Nothing to chart yet.[/yellow]")
        return 1
    catalog = export_catalog_chart(collection, open_browser=open_browser)
    for saved in (path, catalog):
        _err.print(f"[dim]Chart saved → {saved}[/dim]")
    return 0
