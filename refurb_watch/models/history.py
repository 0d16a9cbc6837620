# refurb_watch/models/history.py

"""Persistent price history models and their JSON wire format."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any

logger = logging.getLogger("refurb_watch.models")


class LegacyEntryError(ValueError):
    """A stored entry is too incomplete to be upgraded."""


@dataclass
class Sighting:
    """One dated price observation for a reference id."""

    date: date
    price: float


@dataclass
class HistoryEntry:
    """Price history of one product configuration over time."""

    reference_id: str
    chip_family: str
    cpu_cores: int
    gpu_cores: int
    memory_size: str
    storage_size: str
    network_class: str
    current_price: float
    first_observed: date
    last_observed: date
    sightings: list[Sighting] = field(
        default_factory=lambda: list[Sighting]()
    )
    list_price: float | None = None
    discount_percent: float | None = None


@dataclass
class HistoryCollection:
    """The unit of persistence: every tracked entry plus run metadata."""

    collected_at: str
    source: str
    entries: list[HistoryEntry] = field(
        default_factory=lambda: list[HistoryEntry]()
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the on-disk layout read by the dashboard."""
        return {
            "collectedAt": self.collected_at,
            "source": self.source,
            "products": [entry_to_dict(e) for e in self.entries],
        }


def _json_number(value: float | None) -> float | int | None:
    """Write integral prices as ints (599, not 599.0)."""
    if value is None:
        return None
    if float(value).is_integer():
        return int(value)
    return value


def _parse_day(value: object) -> date:
    """Parse ``YYYY-MM-DD`` (a longer ISO timestamp is truncated)."""
    return date.fromisoformat(str(value)[:10])


def _finite_float(value: object) -> float:
    """``float(value)``, rejecting NaN and infinities."""
    number = float(str(value))
    if not math.isfinite(number):
        raise ValueError(f"non-finite number {value!r}")
    return number


def _optional_float(ref: str, key: str, value: object) -> float | None:
    """Read a collaborator-owned number; unreadable values become None."""
    if value is None or value == "":
        return None
    try:
        return _finite_float(value)
    except ValueError:
        logger.warning("%s: ignoring unreadable %s %r", ref, key, value)
        return None


def _core_count(ref: str, key: str, value: object) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(_finite_float(value))
    except ValueError:
        logger.warning("%s: ignoring unreadable %s %r", ref, key, value)
        return 0


def entry_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    """Serialise a HistoryEntry using the persisted key names."""
    return {
        "ref": entry.reference_id,
        "chip": entry.chip_family,
        "cpuCores": entry.cpu_cores,
        "gpuCores": entry.gpu_cores,
        "ram": entry.memory_size,
        "storage": entry.storage_size,
        "ethernet": entry.network_class,
        "refurbPrice": _json_number(entry.current_price),
        "retailPrice": _json_number(entry.list_price),
        "discount": entry.discount_percent,
        "firstSeen": entry.first_observed.isoformat(),
        "lastSeen": entry.last_observed.isoformat(),
        "sightings": [
            {"date": s.date.isoformat(), "price": _json_number(s.price)}
            for s in entry.sightings
        ],
    }


def _parse_sightings(
    ref: str, raw_sightings: list[Any],
) -> list[Sighting]:
    """Parse stored sightings into day-unique, date-ordered form.

    Unreadable sightings are dropped; when a day appears twice the
    later one in file order wins.
    """
    by_day: dict[date, float] = {}
    for item in raw_sightings:
        if not isinstance(item, dict):
            continue
        try:
            by_day[_parse_day(item["date"])] = _finite_float(item["price"])
        except (KeyError, TypeError, ValueError):
            logger.debug(
                "Dropped unreadable sighting for %s: %r", ref, item,
            )
    return [Sighting(date=d, price=by_day[d]) for d in sorted(by_day)]


def upgrade_entry(raw: dict[str, Any]) -> HistoryEntry:
    """Upgrade a stored entry from any earlier schema to HistoryEntry.

    Older files lack ``sightings`` (and often ``firstSeen``); when no
    stored sighting is readable a single one is seeded from
    ``lastSeen`` / ``refurbPrice``, so such an entry starts and ends on
    ``lastSeen``. The observation window and current price are always
    taken from the sightings themselves so the entry is consistent
    before it reaches the reconciler. Unreadable optional fields fall
    back to their defaults instead of losing the entry.

    Raises:
        LegacyEntryError: if the entry has no ``ref`` or no usable
            observation to anchor its history on.
    """
    ref = str(raw.get("ref") or "").strip()
    if not ref:
        raise LegacyEntryError("entry has no ref")

    raw_sightings = raw.get("sightings")
    sightings = (
        _parse_sightings(ref, raw_sightings)
        if isinstance(raw_sightings, list) else []
    )
    if not sightings:
        seed = {"date": raw.get("lastSeen"), "price": raw.get("refurbPrice")}
        sightings = _parse_sightings(ref, [seed])
        if not sightings:
            raise LegacyEntryError(
                f"{ref}: no readable sightings and no lastSeen/refurbPrice"
            )
        if isinstance(raw_sightings, list):
            logger.warning(
                "%s: no readable sightings, seeded from lastSeen", ref,
            )

    return HistoryEntry(
        reference_id=ref,
        chip_family=str(raw.get("chip") or "Intel"),
        cpu_cores=_core_count(ref, "cpuCores", raw.get("cpuCores")),
        gpu_cores=_core_count(ref, "gpuCores", raw.get("gpuCores")),
        memory_size=str(raw.get("ram") or ""),
        storage_size=str(raw.get("storage") or ""),
        network_class=str(raw.get("ethernet") or "GbE"),
        current_price=sightings[-1].price,
        first_observed=sightings[0].date,
        last_observed=sightings[-1].date,
        sightings=sightings,
        list_price=_optional_float(ref, "retailPrice", raw.get("retailPrice")),
        discount_percent=_optional_float(ref, "discount", raw.get("discount")),
    )
