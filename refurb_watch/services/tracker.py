# refurb_watch/services/tracker.py

"""Orchestrates one fetch → extract → normalize → reconcile → save run."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date

from refurb_watch.config.settings import Settings
from refurb_watch.models.product import Product
from refurb_watch.normalize.attribute_normalizer import normalize_attributes
from refurb_watch.scrapers.listing_extractor import ListingExtractor
from refurb_watch.scrapers.page_fetcher import PageFetcher
from refurb_watch.services.history_reconciler import Observation, reconcile
from refurb_watch.storage.history_store import HistoryStore

logger = logging.getLogger("refurb_watch.tracker")


@dataclass
class RunSummary:
    """Outcome of a single tracker run."""

    extraction_source: str
    extracted: int = 0
    added: int = 0
    updated: int = 0
    skipped: int = 0
    total: int = 0
    new_records: list[Product] = field(
        default_factory=lambda: list[Product]()
    )


class RefurbTracker:
    """Coordinates the fetcher, extractor, reconciler and store.

    Stages run strictly in order; blocking I/O is awaited in a worker
    thread before the next stage starts. :class:`FetchError` from the
    fetcher is not caught here.
    """

    def __init__(
        self,
        fetcher: PageFetcher | None = None,
        extractor: ListingExtractor | None = None,
        store: HistoryStore | None = None,
        url: str | None = None,
    ) -> None:
        self.fetcher = fetcher or PageFetcher()
        self.extractor = extractor or ListingExtractor()
        self.store = store or HistoryStore()
        self.url = url or Settings.LISTING_URL

    @staticmethod
    def _observe(records: list[Product]) -> list[Observation]:
        return [
            Observation(
                record=r,
                attributes=normalize_attributes(r.name, r.description),
                price=r.price_amount,
            )
            for r in records
        ]

    async def run(self, today: date | None = None) -> RunSummary:
        """Run the tracker once and persist the merged history."""
        today = today or date.today()

        history = await asyncio.to_thread(self.store.load, today)

        logger.info("Fetching %s", self.url)
        html = await asyncio.to_thread(self.fetcher.fetch, self.url)

        extraction = self.extractor.extract(html)
        observations = self._observe(extraction.records)

        result = reconcile(history, observations, today)
        await asyncio.to_thread(self.store.save, result.collection)

        added_refs = set(result.added)
        new_records: list[Product] = []
        for r in extraction.records:
            if r.identifier in added_refs:
                new_records.append(r)
                added_refs.discard(r.identifier)

        return RunSummary(
            extraction_source=extraction.source,
            extracted=len(extraction.records),
            added=len(result.added),
            updated=len(result.updated),
            skipped=result.skipped,
            total=len(result.collection.entries),
            new_records=new_records,
        )
