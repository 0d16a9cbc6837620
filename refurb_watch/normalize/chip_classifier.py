# refurb_watch/normalize/chip_classifier.py

"""Chip family classification from Apple product names."""

import re
from dataclasses import dataclass

# Apple separates the tokens with non-breaking hyphens, "with" and "and",
# so anything is allowed between generation, CPU and GPU counts.
_CORES = r".*?(\d+).core\s*CPU.*?(\d+).core\s*GPU"


@dataclass(frozen=True)
class ChipPattern:
    """A chip variant label and the name pattern that identifies it."""

    variant: str
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class ChipInfo:
    """Chip family and advertised core counts."""

    chip: str
    generation: int
    cpu_cores: int
    gpu_cores: int


# Ordered most specific first: every "M4 Pro" name also matches "M4".
CHIP_PATTERNS: tuple[ChipPattern, ...] = (
    ChipPattern("Pro", re.compile(r"\bM(\d+)\s*Pro\b" + _CORES, re.IGNORECASE)),
    ChipPattern("", re.compile(r"\bM(\d+)\b" + _CORES, re.IGNORECASE)),
)

LEGACY_CHIP = ChipInfo(chip="Intel", generation=0, cpu_cores=0, gpu_cores=0)


def classify_chip(
    name: str,
    patterns: tuple[ChipPattern, ...] = CHIP_PATTERNS,
) -> ChipInfo:
    """Return the first matching chip variant, or the Intel baseline."""
    for entry in patterns:
        match = entry.pattern.search(name)
        if not match:
            continue
        generation = int(match.group(1))
        chip = f"M{generation}"
        if entry.variant:
            chip = f"{chip} {entry.variant}"
        return ChipInfo(
            chip=chip,
            generation=generation,
            cpu_cores=int(match.group(2)),
            gpu_cores=int(match.group(3)),
        )
    return LEGACY_CHIP
