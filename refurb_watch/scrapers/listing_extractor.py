# refurb_watch/scrapers/listing_extractor.py

"""Extracts raw product records from the refurbished listing page."""

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, cast

from bs4 import BeautifulSoup

from refurb_watch.config.settings import Settings
from refurb_watch.models.product import Product

logger = logging.getLogger("refurb_watch.extractor")

SOURCE_JSON_LD = "json-ld"
SOURCE_BOOTSTRAP = "bootstrap"
SOURCE_NONE = "none"


@dataclass
class ExtractionResult:
    """Records found in one document and the path that produced them."""

    records: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    source: str = SOURCE_NONE
    malformed_blocks: int = 0


def _nested(data: object, *keys: str) -> object:
    """Walk nested dicts, returning None as soon as a level is missing."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = cast(dict[str, Any], current).get(key)
    return current


def _to_price(value: object) -> float | None:
    """Coerce '1,299.00' / 1299 / None into a finite float or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(str(value).replace(",", "").strip())
    except ValueError:
        return None
    return price if math.isfinite(price) else None


def build_description(title: str, dimensions: dict[str, Any]) -> str:
    """Synthesize a spec description from bootstrap tile dimensions.

    Mirrors the wording of the JSON-LD descriptions (``16GB unified
    memory``, ``512GB SSD``) and keeps the title so the Ethernet
    pattern can still match.
    """
    parts: list[str] = []
    mem = re.search(r"(\d+)", str(dimensions.get("tsMemorySize") or ""))
    if mem:
        parts.append(f"{mem.group(1)}GB unified memory")
    cap = re.search(
        r"(\d+)(gb|tb)",
        str(dimensions.get("dimensionCapacity") or ""),
        re.IGNORECASE,
    )
    if cap:
        parts.append(f"{cap.group(1)}{cap.group(2).upper()} SSD")
    parts.append(title)
    return " · ".join(parts)


class ListingExtractor:
    """Parse listing HTML: JSON-LD first, bootstrap blob as fallback."""

    def __init__(
        self,
        product_type: str | None = None,
        name_pattern: str | None = None,
        bootstrap_variable: str | None = None,
        default_currency: str | None = None,
    ) -> None:
        self.product_type = product_type or Settings.PRODUCT_TYPE
        self.name_re = re.compile(
            name_pattern or Settings.PRODUCT_NAME_PATTERN, re.IGNORECASE,
        )
        self.bootstrap_variable = (
            bootstrap_variable or Settings.BOOTSTRAP_VARIABLE
        )
        self.bootstrap_re = re.compile(
            rf"(?:window\.)?{re.escape(self.bootstrap_variable)}\s*=\s*"
        )
        self.default_currency = (
            default_currency or Settings.DEFAULT_CURRENCY
        )

    def _matches_name(self, name: str) -> bool:
        return bool(name) and bool(self.name_re.search(name))

    # ------------------------------------------------------------------
    # Primary: JSON-LD structured data
    # ------------------------------------------------------------------

    def _record_from_item(self, item: dict[str, Any]) -> Product:
        """Convert a schema.org Product item to a Product record."""
        offers: object = item.get("offers")
        if isinstance(offers, list):
            offer_list = cast(list[object], offers)
            offers = offer_list[0] if offer_list else None
        offer: dict[str, Any] = (
            cast(dict[str, Any], offers) if isinstance(offers, dict) else {}
        )
        return Product(
            name=str(item.get("name") or "").strip(),
            description=str(item.get("description") or ""),
            identifier=str(item.get("sku") or "").strip(),
            price_amount=_to_price(offer.get("price")),
            price_currency=str(
                offer.get("priceCurrency") or self.default_currency
            ),
        )

    def _extract_json_ld(
        self, soup: BeautifulSoup,
    ) -> tuple[list[Product], int]:
        """Return matching records and the number of malformed blocks."""
        records: list[Product] = []
        malformed = 0
        for script in soup.find_all(
            "script", attrs={"type": "application/ld+json"}
        ):
            raw = script.string
            if not raw or not raw.strip():
                continue
            try:
                data: object = json.loads(raw)
            except json.JSONDecodeError as exc:
                malformed += 1
                logger.debug("Skipping malformed JSON-LD block: %s", exc)
                continue

            items: list[object] = (
                cast(list[object], data) if isinstance(data, list)
                else [data]
            )
            for item in items:
                if not isinstance(item, dict):
                    continue
                product = cast(dict[str, Any], item)
                if product.get("@type") != self.product_type:
                    continue
                if not self._matches_name(str(product.get("name") or "")):
                    continue
                records.append(self._record_from_item(product))
        return records, malformed

    # ------------------------------------------------------------------
    # Fallback: window.REFURB_GRID_BOOTSTRAP
    # ------------------------------------------------------------------

    def _load_bootstrap(self, soup: BeautifulSoup) -> dict[str, Any] | None:
        """Find and decode the bootstrap object assignment, if present."""
        decoder = json.JSONDecoder()
        for script in soup.find_all("script"):
            text = script.string
            if not text:
                continue
            match = self.bootstrap_re.search(text)
            if not match:
                continue
            try:
                data, _end = decoder.raw_decode(text, match.end())
            except json.JSONDecodeError as exc:
                logger.warning("Bootstrap blob is not valid JSON: %s", exc)
                return None
            if isinstance(data, dict):
                return cast(dict[str, Any], data)
            return None
        return None

    def _tile_to_record(self, tile: dict[str, Any]) -> Product:
        """Map one bootstrap tile to a Product record."""
        title = str(tile.get("title") or "").strip()
        dims = _nested(tile, "filters", "dimensions")
        dimensions = (
            cast(dict[str, Any], dims) if isinstance(dims, dict) else {}
        )
        return Product(
            name=title,
            description=build_description(title, dimensions),
            identifier=str(tile.get("partNumber") or "").strip(),
            price_amount=_to_price(
                _nested(tile, "price", "currentPrice", "raw_amount")
            ),
            price_currency=str(
                _nested(tile, "price", "priceCurrency")
                or self.default_currency
            ),
        )

    def _extract_bootstrap(self, soup: BeautifulSoup) -> list[Product]:
        data = self._load_bootstrap(soup)
        if data is None:
            return []
        tiles: object = data.get("tiles")
        if not isinstance(tiles, list):
            return []
        records: list[Product] = []
        for tile in cast(list[object], tiles):
            if not isinstance(tile, dict):
                continue
            tile_dict = cast(dict[str, Any], tile)
            if self._matches_name(str(tile_dict.get("title") or "")):
                records.append(self._tile_to_record(tile_dict))
        return records

    # ------------------------------------------------------------------
    # Public entry-point
    # ------------------------------------------------------------------

    def extract(self, html: str) -> ExtractionResult:
        """Extract product records from a listing document."""
        soup = BeautifulSoup(html, "lxml")

        records, malformed = self._extract_json_ld(soup)
        if malformed:
            logger.warning("Skipped %d malformed JSON-LD block(s)", malformed)
        if records:
            logger.info("Extracted %d products via JSON-LD", len(records))
            return ExtractionResult(records, SOURCE_JSON_LD, malformed)

        logger.info(
            "JSON-LD had no products, falling back to %s",
            self.bootstrap_variable,
        )
        records = self._extract_bootstrap(soup)
        if records:
            logger.info(
                "Extracted %d products via bootstrap blob", len(records),
            )
            return ExtractionResult(records, SOURCE_BOOTSTRAP, malformed)

        logger.warning("No products found in either data source")
        return ExtractionResult([], SOURCE_NONE, malformed)
