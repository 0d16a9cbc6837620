# refurb_watch/models/product.py

"""Listing-level data models passed between extractor and normalizer."""

from dataclasses import dataclass


@dataclass
class Product:
    """A raw product record as scraped from the listing page."""

    name: str
    description: str = ""
    identifier: str = ""
    price_amount: float | None = None
    price_currency: str = "USD"


@dataclass(frozen=True)
class NormalizedAttributes:
    """Typed configuration attributes derived from a product's text."""

    chip_family: str
    generation: int
    cpu_cores: int
    gpu_cores: int
    memory_size: str
    storage_size: str
    network_class: str
