# refurb_watch/services/history_reconciler.py

"""Merges today's observations into the persisted price history."""

import copy
import logging
from dataclasses import dataclass, field
from datetime import date

from refurb_watch.models.history import (
    HistoryCollection,
    HistoryEntry,
    Sighting,
)
from refurb_watch.models.product import NormalizedAttributes, Product

logger = logging.getLogger("refurb_watch.reconciler")


@dataclass
class Observation:
    """One listing seen today, with its derived attributes and price."""

    record: Product
    attributes: NormalizedAttributes
    price: float | None


@dataclass
class ReconcileResult:
    """Updated collection plus what happened to each observation."""

    collection: HistoryCollection
    added: list[str] = field(default_factory=lambda: list[str]())
    updated: list[str] = field(default_factory=lambda: list[str]())
    skipped: int = 0


def _new_entry(
    ref: str, attrs: NormalizedAttributes, price: float, today: date,
) -> HistoryEntry:
    return HistoryEntry(
        reference_id=ref,
        chip_family=attrs.chip_family,
        cpu_cores=attrs.cpu_cores,
        gpu_cores=attrs.gpu_cores,
        memory_size=attrs.memory_size,
        storage_size=attrs.storage_size,
        network_class=attrs.network_class,
        current_price=price,
        first_observed=today,
        last_observed=today,
        sightings=[Sighting(date=today, price=price)],
    )


def add_sighting(entry: HistoryEntry, today: date, price: float) -> bool:
    """Record *price* for *today*, overwriting a same-day sighting.

    Returns False (and leaves the entry alone) when *today* is older
    than the last recorded sighting.
    """
    last = entry.sightings[-1] if entry.sightings else None
    if last is not None and last.date > today:
        return False
    if last is not None and last.date == today:
        last.price = price
    else:
        entry.sightings.append(Sighting(date=today, price=price))
    entry.first_observed = entry.sightings[0].date
    entry.last_observed = today
    entry.current_price = price
    return True


def reconcile(
    collection: HistoryCollection,
    observations: list[Observation],
    today: date,
) -> ReconcileResult:
    """Merge *observations* made on *today* into a copy of *collection*.

    Entries keyed by reference id are created on first sight and get a
    sighting appended (or today's overwritten) afterwards. Entries not
    observed today are left as they are. The returned collection is
    ordered by current price, cheapest first.
    """
    merged = copy.deepcopy(collection)
    by_ref: dict[str, HistoryEntry] = {
        e.reference_id: e for e in merged.entries
    }
    result = ReconcileResult(collection=merged)

    for obs in observations:
        ref = obs.record.identifier.strip()
        if not ref:
            logger.debug("Skipped '%s': no reference id", obs.record.name)
            result.skipped += 1
            continue
        if obs.price is None:
            logger.debug("Skipped %s: no price", ref)
            result.skipped += 1
            continue

        existing = by_ref.get(ref)
        if existing is None:
            by_ref[ref] = _new_entry(ref, obs.attributes, obs.price, today)
            result.added.append(ref)
            logger.info(
                "New listing %s (%s) at %.2f",
                ref,
                obs.attributes.chip_family,
                obs.price,
            )
            continue

        if not add_sighting(existing, today, obs.price):
            logger.warning(
                "Skipped %s: last sighting %s is after %s",
                ref,
                existing.last_observed,
                today,
            )
            result.skipped += 1
            continue
        if ref not in result.added and ref not in result.updated:
            result.updated.append(ref)

    merged.entries = sorted(
        by_ref.values(),
        key=lambda e: (e.current_price, e.reference_id),
    )
    merged.collected_at = today.isoformat()

    logger.info(
        "Reconciled: %d added, %d updated, %d skipped — %d total",
        len(result.added),
        len(result.updated),
        result.skipped,
        len(merged.entries),
    )
    return result
