# refurb_watch/normalize/attribute_normalizer.py

"""Free-text specification parsing into typed product attributes."""

import re
from dataclasses import dataclass

from refurb_watch.models.product import NormalizedAttributes
from refurb_watch.normalize.chip_classifier import (
    CHIP_PATTERNS,
    ChipPattern,
    classify_chip,
)

# "Originally released October 2024" runs straight into the spec text
_RELEASE_NOTE_RE = re.compile(r"Originally released\s+\w+\s+\d{4}")

_MEMORY_RE = re.compile(r"(\d+)\s*GB\s*unified\s*memory", re.IGNORECASE)
_STORAGE_RE = re.compile(r"(\d+\s*[GT]B)\s*SSD", re.IGNORECASE)
_TEN_GIG_RE = re.compile(r"10\s*Gigabit\s*Ethernet", re.IGNORECASE)

# Summary-line patterns keep Apple's wording for human-readable output
_SUMMARY_MEMORY_RE = re.compile(r"(\d+)GB unified memory")
_SUMMARY_STORAGE_RE = re.compile(r"(\d+[GT]B) SSD")
# The port count digit is jammed before "Gigabit" / "10 Gigabit"
_SUMMARY_ETHERNET_RE = re.compile(r"\d*(10 Gigabit|Gigabit) Ethernet")
_SUMMARY_THUNDERBOLT_RE = re.compile(
    r"((?:Two|Three|Four|\d+) Thunderbolt \d+ ports?)"
)

NETWORK_HIGH_TIER = "10GbE"
NETWORK_BASE_TIER = "GbE"


@dataclass(frozen=True)
class SpecInfo:
    """Memory, storage and network class parsed from a description."""

    memory_size: str
    storage_size: str
    network_class: str


def _strip_release_note(description: str) -> str:
    return _RELEASE_NOTE_RE.sub("", description, count=1)


def parse_specs(description: str | None) -> SpecInfo:
    """Extract memory, storage and network class independently.

    A field that does not match is left empty; network falls back to
    the base tier.
    """
    if not description:
        return SpecInfo("", "", NETWORK_BASE_TIER)
    cleaned = _strip_release_note(description)

    mem = _MEMORY_RE.search(cleaned)
    storage = _STORAGE_RE.search(cleaned)
    return SpecInfo(
        memory_size=f"{mem.group(1)}GB" if mem else "",
        storage_size=re.sub(r"\s+", "", storage.group(1)) if storage else "",
        network_class=(
            NETWORK_HIGH_TIER if _TEN_GIG_RE.search(cleaned)
            else NETWORK_BASE_TIER
        ),
    )


def format_spec_summary(description: str | None) -> str:
    """Build a one-line summary such as ``16GB RAM · 512GB SSD``."""
    if not description:
        return ""
    cleaned = _strip_release_note(description)
    parts: list[str] = []
    mem = _SUMMARY_MEMORY_RE.search(cleaned)
    if mem:
        parts.append(f"{mem.group(1)}GB RAM")
    storage = _SUMMARY_STORAGE_RE.search(cleaned)
    if storage:
        parts.append(f"{storage.group(1)} SSD")
    eth = _SUMMARY_ETHERNET_RE.search(cleaned)
    if eth:
        parts.append(f"{eth.group(1)} Ethernet")
    thunderbolt = _SUMMARY_THUNDERBOLT_RE.search(cleaned)
    if thunderbolt:
        parts.append(thunderbolt.group(1))
    return " · ".join(parts)


def normalize_attributes(
    name: str,
    description: str | None = None,
    chip_patterns: tuple[ChipPattern, ...] = CHIP_PATTERNS,
) -> NormalizedAttributes:
    """Derive typed attributes from a product's name and description."""
    chip = classify_chip(name, chip_patterns)
    specs = parse_specs(description)
    return NormalizedAttributes(
        chip_family=chip.chip,
        generation=chip.generation,
        cpu_cores=chip.cpu_cores,
        gpu_cores=chip.gpu_cores,
        memory_size=specs.memory_size,
        storage_size=specs.storage_size,
        network_class=specs.network_class,
    )
