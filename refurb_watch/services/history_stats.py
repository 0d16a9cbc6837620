# refurb_watch/services/history_stats.py

"""Availability and freshness figures derived from a history entry."""

from dataclasses import dataclass
from datetime import date
from types import MappingProxyType

from refurb_watch.models.history import HistoryEntry

CHIP_ORDER: tuple[str, ...] = ("M4 Pro", "M4", "M2 Pro", "M2", "M1", "Intel")

CHIP_COLORS = MappingProxyType({
    "M4 Pro": "#2196f3",
    "M4": "#4caf50",
    "M2 Pro": "#e91e63",
    "M2": "#ff9800",
    "M1": "#9c27b0",
    "Intel": "#607d8b",
})

DEFAULT_CHIP_COLOR = "#999999"


@dataclass(frozen=True)
class Freshness:
    """How recently an entry was last listed."""

    label: str
    bucket: str  # "now", "recent", "stale", "old"
    days: int


def chip_color(chip: str) -> str:
    return CHIP_COLORS.get(chip, DEFAULT_CHIP_COLOR)


def chip_rank(chip: str) -> int:
    """Position in CHIP_ORDER; unknown chips sort last."""
    try:
        return CHIP_ORDER.index(chip)
    except ValueError:
        return len(CHIP_ORDER)


def availability_pct(entry: HistoryEntry) -> int:
    """Share of days in the observed window with a sighting, 0-100."""
    if not entry.sightings:
        return 0
    span = (entry.last_observed - entry.first_observed).days + 1
    if span <= 0:
        return 100
    return min(100, round(len(entry.sightings) / span * 100))


def freshness(entry: HistoryEntry, today: date) -> Freshness:
    """Classify how long ago the entry was last seen."""
    days = (today - entry.last_observed).days
    if days <= 0:
        return Freshness("In Stock", "now", days)
    if days <= 3:
        return Freshness(f"{days}d ago", "recent", days)
    if days <= 14:
        return Freshness(f"{days}d ago", "stale", days)
    return Freshness(f"{days}d ago", "old", days)


# --- Catalog breakdowns -------------------------------------------------

RAM_ORDER: tuple[str, ...] = ("8GB", "16GB", "24GB", "32GB", "48GB", "64GB")
STORAGE_ORDER: tuple[str, ...] = (
    "256GB", "512GB", "1TB", "2TB", "4TB", "8TB",
)


@dataclass(frozen=True)
class PriceRange:
    """Min / mean / max current price of one chip family."""

    low: float
    average: float
    high: float
    count: int


def _chips_in_order(entries: list[HistoryEntry]) -> list[str]:
    """CHIP_ORDER first, then any other chips present, alphabetically."""
    extra = sorted(
        {e.chip_family for e in entries} - set(CHIP_ORDER)
    )
    return [*CHIP_ORDER, *extra]


def sku_counts(entries: list[HistoryEntry]) -> dict[str, int]:
    """Distinct reference ids per chip, zero-filled for known chips."""
    counts = {chip: 0 for chip in _chips_in_order(entries)}
    for e in entries:
        counts[e.chip_family] += 1
    return counts


def price_ranges(entries: list[HistoryEntry]) -> dict[str, PriceRange]:
    """Current-price spread per chip; chips without entries are omitted."""
    by_chip: dict[str, list[float]] = {}
    for e in entries:
        by_chip.setdefault(e.chip_family, []).append(e.current_price)
    ranges: dict[str, PriceRange] = {}
    for chip in _chips_in_order(entries):
        prices = by_chip.get(chip)
        if not prices:
            continue
        ranges[chip] = PriceRange(
            low=min(prices),
            average=float(round(sum(prices) / len(prices))),
            high=max(prices),
            count=len(prices),
        )
    return ranges


def distribution(
    entries: list[HistoryEntry],
    attribute: str,
    order: tuple[str, ...],
) -> dict[str, dict[str, int]]:
    """Count entries per chip and attribute value (e.g. ``ram``).

    Only chips with at least one entry appear; values outside *order*
    are ignored.
    """
    active = [c for c, n in sku_counts(entries).items() if n]
    dist = {chip: {value: 0 for value in order} for chip in active}
    for e in entries:
        value = getattr(e, attribute)
        if value in dist[e.chip_family]:
            dist[e.chip_family][value] += 1
    return dist
