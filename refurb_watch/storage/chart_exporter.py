# refurb_watch/storage/chart_exporter.py

"""Generate interactive Plotly HTML charts from the price history."""

import importlib
import logging
import webbrowser
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from refurb_watch.config.settings import Settings
from refurb_watch.models.history import HistoryCollection, HistoryEntry
from refurb_watch.services.history_stats import (
    RAM_ORDER,
    STORAGE_ORDER,
    availability_pct,
    chip_color,
    chip_rank,
    distribution,
    price_ranges,
    sku_counts,
)

logger = logging.getLogger("refurb_watch.chart")


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _get_plotly_subplots() -> ModuleType:
    return importlib.import_module("plotly.subplots")


def trace_label(entry: HistoryEntry) -> str:
    """Legend label such as ``M4 Pro 24GB/512GB (MX2H3LL/A)``."""
    config = "/".join(s for s in (entry.memory_size, entry.storage_size) if s)
    parts = [entry.chip_family]
    if config:
        parts.append(config)
    return f"{' '.join(parts)} ({entry.reference_id})"


def _build_history_chart(collection: HistoryCollection) -> Any:
    """Build one line per entry, grouped and colored by chip."""
    go = _get_plotly_go()
    fig: Any = go.Figure()

    ordered = sorted(
        collection.entries,
        key=lambda e: (chip_rank(e.chip_family), e.current_price),
    )
    for entry in ordered:
        if not entry.sightings:
            continue
        fig.add_trace(go.Scatter(
            x=[s.date.isoformat() for s in entry.sightings],
            y=[s.price for s in entry.sightings],
            mode="lines+markers",
            name=trace_label(entry),
            legendgroup=entry.chip_family,
            line={"color": chip_color(entry.chip_family), "shape": "hv"},
            hovertemplate=(
                "%{x}<br>"
                "Price: $%{y:,.2f}<br>"
                f"Availability: {availability_pct(entry)}%"
                "<extra></extra>"
            ),
        ))

    fig.update_layout(
        title=(
            f"Refurbished price history — {len(collection.entries)} "
            f"products, updated {collection.collected_at}"
        ),
        xaxis_title="Date",
        yaxis_title="Price (USD)",
        hovermode="closest",
        template="plotly_white",
        legend={"orientation": "h", "y": -0.2},
    )
    return fig


# Light-to-dark ramps for the stacked RAM / storage bars
_RAM_SHADES = (
    "#ffcdd2", "#ef9a9a", "#ef5350", "#e53935", "#c62828", "#b71c1c",
)
_STORAGE_SHADES = (
    "#bbdefb", "#64b5f6", "#2196f3", "#1976d2", "#0d47a1", "#01579b",
)


def _add_stacked(
    fig: Any,
    go: ModuleType,
    dist: dict[str, dict[str, int]],
    order: tuple[str, ...],
    shades: tuple[str, ...],
    col: int,
) -> None:
    # Shared offsetgroup plus an explicit base stacks bars in group mode
    chips = list(dist)
    base = [0] * len(chips)
    for value, shade in zip(order, shades):
        heights = [dist[c][value] for c in chips]
        fig.add_trace(
            go.Bar(
                x=chips,
                y=heights,
                base=list(base),
                offsetgroup=f"stack{col}",
                name=value,
                marker_color=shade,
                legendgroup=f"col{col}",
                hovertemplate=f"{value}: %{{y}} SKUs<extra></extra>",
            ),
            row=2,
            col=col,
        )
        base = [b + h for b, h in zip(base, heights)]


def _build_catalog_chart(collection: HistoryCollection) -> Any:
    """SKU counts, price ranges and RAM / storage mix per chip."""
    go = _get_plotly_go()
    subplots = _get_plotly_subplots()
    fig: Any = subplots.make_subplots(
        rows=2,
        cols=2,
        subplot_titles=(
            "Distinct SKUs",
            "Price range",
            "RAM configurations",
            "Storage configurations",
        ),
    )
    entries = collection.entries

    counts = sku_counts(entries)
    chips = list(counts)
    fig.add_trace(
        go.Bar(
            x=chips,
            y=[counts[c] for c in chips],
            marker_color=[chip_color(c) for c in chips],
            name="SKUs",
            showlegend=False,
        ),
        row=1,
        col=1,
    )

    ranges = price_ranges(entries)
    ranged = list(ranges)
    for label, attr, opacity in (
        ("Min", "low", 0.4),
        ("Avg", "average", 0.7),
        ("Max", "high", 1.0),
    ):
        fig.add_trace(
            go.Bar(
                x=ranged,
                y=[getattr(ranges[c], attr) for c in ranged],
                marker_color=[chip_color(c) for c in ranged],
                opacity=opacity,
                name=label,
                showlegend=False,
                hovertemplate=f"{label}: $%{{y:,.0f}}<extra></extra>",
            ),
            row=1,
            col=2,
        )

    _add_stacked(
        fig, go, distribution(entries, "memory_size", RAM_ORDER),
        RAM_ORDER, _RAM_SHADES, col=1,
    )
    _add_stacked(
        fig, go, distribution(entries, "storage_size", STORAGE_ORDER),
        STORAGE_ORDER, _STORAGE_SHADES, col=2,
    )

    fig.update_layout(
        title=f"Refurbished catalog, updated {collection.collected_at}",
        barmode="group",
        template="plotly_white",
        height=800,
    )
    return fig


def _write_figure(
    fig: Any,
    prefix: str,
    charts_dir: Path | None,
    open_browser: bool,
) -> Path:
    target_dir = charts_dir or Settings.CHARTS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = target_dir / f"{prefix}_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())
    return filepath


def export_price_history_chart(
    collection: HistoryCollection,
    charts_dir: Path | None = None,
    open_browser: bool = False,
) -> Path | None:
    """Write the price history chart as a standalone HTML file."""
    if not collection.entries:
        logger.warning("No history entries to chart")
        return None
    return _write_figure(
        _build_history_chart(collection),
        "price_history",
        charts_dir,
        open_browser,
    )


def export_catalog_chart(
    collection: HistoryCollection,
    charts_dir: Path | None = None,
    open_browser: bool = False,
) -> Path | None:
    """Write the per-chip catalog breakdown as a standalone HTML file."""
    if not collection.entries:
        logger.warning("No history entries to chart")
        return None
    return _write_figure(
        _build_catalog_chart(collection),
        "catalog",
        charts_dir,
        open_browser,
    )
