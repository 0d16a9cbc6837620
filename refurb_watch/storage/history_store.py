# refurb_watch/storage/history_store.py

"""JSON-file persistence for the price history collection."""

import json
import logging
import os
import stat
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, cast

from refurb_watch.config.settings import Settings
from refurb_watch.models.history import (
    HistoryCollection,
    HistoryEntry,
    LegacyEntryError,
    upgrade_entry,
)

logger = logging.getLogger("refurb_watch.storage")


class HistoryStore:
    """Load and atomically overwrite the single history snapshot."""

    def __init__(
        self,
        path: Path | None = None,
        source: str | None = None,
    ) -> None:
        self.path: Path = path or Settings.HISTORY_PATH
        self.source: str = source or Settings.SOURCE_LABEL
        logger.debug("HistoryStore initialised — path=%s", self.path)

    def _empty(self, today: date) -> HistoryCollection:
        return HistoryCollection(
            collected_at=today.isoformat(), source=self.source,
        )

    def load(self, today: date | None = None) -> HistoryCollection:
        """Read the stored collection, upgrading legacy entries.

        A missing or unreadable file yields an empty collection.
        """
        today = today or date.today()
        if not self.path.exists():
            logger.info("No history at %s, starting fresh", self.path)
            return self._empty(today)

        try:
            with open(self.path, encoding="utf-8") as f:
                data: object = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "Unreadable history file %s (%s), starting fresh",
                self.path,
                exc,
            )
            return self._empty(today)

        if not isinstance(data, dict):
            logger.warning(
                "History file %s is not an object, starting fresh",
                self.path,
            )
            return self._empty(today)

        doc = cast(dict[str, Any], data)
        raw_products: object = doc.get("products")
        items: list[object] = (
            cast(list[object], raw_products)
            if isinstance(raw_products, list) else []
        )

        by_ref: dict[str, HistoryEntry] = {}
        dropped = 0
        for item in items:
            if not isinstance(item, dict):
                dropped += 1
                continue
            try:
                entry = upgrade_entry(cast(dict[str, Any], item))
            except LegacyEntryError as exc:
                logger.warning("Dropped stored entry: %s", exc)
                dropped += 1
                continue
            by_ref[entry.reference_id] = entry

        logger.info(
            "Loaded %d history entries from %s (%d dropped)",
            len(by_ref),
            self.path,
            dropped,
        )
        return HistoryCollection(
            collected_at=str(doc.get("collectedAt") or today.isoformat())[:10],
            source=str(doc.get("source") or self.source),
            entries=list(by_ref.values()),
        )

    def save(self, collection: HistoryCollection) -> Path:
        """Overwrite the history file in one step (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # The replacement keeps the previous file mode (0644 when new)
        mode = (
            stat.S_IMODE(self.path.stat().st_mode) if self.path.exists()
            else 0o644
        )
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(
                    collection.to_dict(), f, ensure_ascii=False, indent=2,
                )
                f.write("\n")
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(
            "Saved %d history entries to %s",
            len(collection.entries),
            self.path,
        )
        return self.path
