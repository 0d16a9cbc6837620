# tests/test_history_store.py

"""Tests for the JSON history store."""

import json
import os
import stat
import tempfile
import unittest
from datetime import date
from pathlib import Path
from typing import Any
from unittest.mock import patch

from refurb_watch.models.history import HistoryCollection
from refurb_watch.models.product import NormalizedAttributes, Product
from refurb_watch.services.history_reconciler import Observation, reconcile
from refurb_watch.storage.history_store import HistoryStore

TODAY = date(2025, 1, 10)


class TestHistoryStore(unittest.TestCase):
    """Load / save behaviour, including corrupt and legacy files."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "data" / "refurb-history.json"
        self.store = HistoryStore(self.path, source="test-source")

    def _write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(payload, encoding="utf-8")

    def _collection(self) -> HistoryCollection:
        attrs = NormalizedAttributes("M4", 4, 10, 10, "16GB", "256GB", "GbE")
        observations = [
            Observation(Product("Mac mini", identifier=ref), attrs, price)
            for ref, price in (("B2", 799.0), ("A1", 599.0))
        ]
        empty = HistoryCollection("2025-01-01", "test-source")
        return reconcile(empty, observations, TODAY).collection

    def test_missing_file_gives_empty_collection(self) -> None:
        collection = self.store.load(TODAY)
        self.assertEqual(collection.entries, [])
        self.assertEqual(collection.collected_at, "2025-01-10")
        self.assertEqual(collection.source, "test-source")

    def test_corrupt_file_gives_empty_collection(self) -> None:
        self._write("{not json")
        collection = self.store.load(TODAY)
        self.assertEqual(collection.entries, [])

    def test_wrong_shape_gives_empty_collection(self) -> None:
        self._write("[1, 2, 3]")
        self.assertEqual(self.store.load(TODAY).entries, [])

    def test_save_then_load(self) -> None:
        original = self._collection()
        self.store.save(original)
        loaded = self.store.load(TODAY)
        self.assertEqual(loaded, original)

    def test_saved_layout(self) -> None:
        self.store.save(self._collection())
        text = self.path.read_text(encoding="utf-8")
        self.assertTrue(text.endswith("\n"))
        data: dict[str, Any] = json.loads(text)
        self.assertEqual(data["collectedAt"], "2025-01-10")
        self.assertEqual(data["source"], "test-source")
        self.assertEqual(
            [p["ref"] for p in data["products"]], ["A1", "B2"],
        )

    def test_save_leaves_no_temp_files(self) -> None:
        self.store.save(self._collection())
        self.store.save(self._collection())
        self.assertEqual(
            sorted(p.name for p in self.path.parent.iterdir()),
            ["refurb-history.json"],
        )

    def test_failed_save_keeps_previous_file(self) -> None:
        """A write error must not leave a truncated history behind."""
        self._write('{"collectedAt": "old", "source": "s", "products": []}')
        with patch(
            "refurb_watch.storage.history_store.json.dump",
            side_effect=OSError("disk full"),
        ):
            with self.assertRaises(OSError):
                self.store.save(self._collection())
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(data["collectedAt"], "old")
        self.assertEqual(len(list(self.path.parent.iterdir())), 1)

    @unittest.skipUnless(os.name == "posix", "POSIX file modes")
    def test_new_file_is_world_readable(self) -> None:
        self.store.save(self._collection())
        self.assertEqual(stat.S_IMODE(self.path.stat().st_mode), 0o644)

    @unittest.skipUnless(os.name == "posix", "POSIX file modes")
    def test_save_keeps_existing_mode(self) -> None:
        self._write('{"products": []}')
        os.chmod(self.path, 0o664)
        self.store.save(self._collection())
        self.assertEqual(stat.S_IMODE(self.path.stat().st_mode), 0o664)

    def test_timestamp_collected_at_truncated_to_date(self) -> None:
        self._write(json.dumps({
            "collectedAt": "2024-11-02T07:00:12.345Z", "products": [],
        }))
        self.assertEqual(self.store.load(TODAY).collected_at, "2024-11-02")

    def test_legacy_entries_upgraded_on_load(self) -> None:
        self._write(json.dumps({
            "collectedAt": "2024-11-02",
            "source": "apple.com/shop/refurbished",
            "products": [
                {
                    "ref": "FMXF3LL/A", "chip": "M2", "cpuCores": 8,
                    "gpuCores": 10, "ram": "8GB", "storage": "256GB",
                    "ethernet": "GbE", "refurbPrice": 509,
                    "retailPrice": None, "discount": None,
                    "lastSeen": "2024-11-02",
                },
                {"chip": "M1", "lastSeen": "2024-11-02"},
                "garbage",
            ],
        }))
        collection = self.store.load(TODAY)
        self.assertEqual(len(collection.entries), 1)
        entry = collection.entries[0]
        self.assertEqual(entry.first_observed, date(2024, 11, 2))
        self.assertEqual(len(entry.sightings), 1)
        self.assertEqual(collection.collected_at, "2024-11-02")

    def test_damaged_entries_survive_load_and_save(self) -> None:
        """Empty sightings or a bad retailPrice never delete history."""
        self._write(json.dumps({
            "collectedAt": "2025-01-09",
            "source": "s",
            "products": [
                {"ref": "A1", "refurbPrice": 599, "lastSeen": "2025-01-09",
                 "sightings": []},
                {"ref": "B2", "refurbPrice": 799, "lastSeen": "2025-01-09",
                 "retailPrice": "$899",
                 "sightings": [{"date": "2025-01-09", "price": 799}]},
            ],
        }))
        self.store.save(self.store.load(TODAY))
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(
            [p["ref"] for p in data["products"]], ["A1", "B2"],
        )
        self.assertIsNone(data["products"][1]["retailPrice"])

    def test_duplicate_refs_keep_last(self) -> None:
        base = {"lastSeen": "2024-11-02", "chip": "M2"}
        self._write(json.dumps({"products": [
            {**base, "ref": "A1", "refurbPrice": 1},
            {**base, "ref": "A1", "refurbPrice": 2},
        ]}))
        collection = self.store.load(TODAY)
        self.assertEqual(len(collection.entries), 1)
        self.assertEqual(collection.entries[0].current_price, 2.0)


if __name__ == "__main__":
    unittest.main()
