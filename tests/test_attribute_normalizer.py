# tests/test_attribute_normalizer.py

"""Tests for chip classification and spec parsing."""

import re
import unittest

from refurb_watch.normalize.attribute_normalizer import (
    format_spec_summary,
    normalize_attributes,
    parse_specs,
)
from refurb_watch.normalize.chip_classifier import (
    CHIP_PATTERNS,
    LEGACY_CHIP,
    ChipPattern,
    classify_chip,
)


class TestClassifyChip(unittest.TestCase):
    """Ordered, first-match-wins chip patterns."""

    def test_pro_variant_wins_over_generic(self) -> None:
        """An M4 Pro name also matches the generic M4 pattern."""
        info = classify_chip(
            "Refurbished Mac mini Apple M4 Pro Chip with 12‑Core CPU "
            "and 16‑Core GPU"
        )
        self.assertEqual(info.chip, "M4 Pro")
        self.assertEqual(info.generation, 4)
        self.assertEqual(info.cpu_cores, 12)
        self.assertEqual(info.gpu_cores, 16)

    def test_base_variant(self) -> None:
        info = classify_chip(
            "Refurbished Mac mini Apple M2 Chip with 8‑Core CPU and "
            "10‑Core GPU"
        )
        self.assertEqual(info.chip, "M2")
        self.assertEqual((info.cpu_cores, info.gpu_cores), (8, 10))

    def test_generation_aware(self) -> None:
        """Generations beyond the known ones still classify."""
        info = classify_chip("Mac mini M5 Pro 14-core CPU 20-core GPU")
        self.assertEqual(info.chip, "M5 Pro")
        self.assertEqual(info.generation, 5)

    def test_plain_hyphen_and_case(self) -> None:
        info = classify_chip("mac mini m1 chip with 8-core cpu and 8-core gpu")
        self.assertEqual(info.chip, "M1")
        self.assertEqual(info.cpu_cores, 8)

    def test_no_match_is_intel_baseline(self) -> None:
        """Unmatched names default to Intel with zero cores."""
        info = classify_chip(
            "Refurbished Mac mini 3.0GHz 6-core Intel Core i5"
        )
        self.assertEqual(info, LEGACY_CHIP)
        self.assertEqual(info.chip, "Intel")
        self.assertEqual(info.cpu_cores, 0)
        self.assertEqual(info.gpu_cores, 0)

    def test_pattern_order_is_significant(self) -> None:
        """Reversing the table changes the answer for Pro names."""
        reversed_patterns = tuple(reversed(CHIP_PATTERNS))
        name = "Mac mini M4 Pro with 12-core CPU and 16-core GPU"
        self.assertEqual(classify_chip(name).chip, "M4 Pro")
        self.assertEqual(classify_chip(name, reversed_patterns).chip, "M4")

    def test_custom_pattern_table(self) -> None:
        """Pattern tables are injectable."""
        patterns = (
            ChipPattern(
                "Max",
                re.compile(
                    r"\bM(\d+)\s*Max\b.*?(\d+).core CPU.*?(\d+).core GPU",
                    re.IGNORECASE,
                ),
            ),
        )
        info = classify_chip(
            "Mac Studio M4 Max 16-core CPU 40-core GPU", patterns,
        )
        self.assertEqual(info.chip, "M4 Max")
        self.assertEqual(info.gpu_cores, 40)


class TestParseSpecs(unittest.TestCase):
    """Independent memory / storage / network extraction."""

    def test_release_note_prefix_stripped(self) -> None:
        """'October 2024' must not merge into the memory size."""
        specs = parse_specs(
            "Originally released October 202416GB unified memory"
            "256GB SSD1Gigabit Ethernet port"
        )
        self.assertEqual(specs.memory_size, "16GB")
        self.assertEqual(specs.storage_size, "256GB")
        self.assertEqual(specs.network_class, "GbE")

    def test_ten_gigabit(self) -> None:
        specs = parse_specs("24GB unified memory512GB SSD110 Gigabit Ethernet")
        self.assertEqual(specs.network_class, "10GbE")

    def test_storage_whitespace_removed(self) -> None:
        specs = parse_specs("8GB unified memory 1 TB SSD")
        self.assertEqual(specs.storage_size, "1TB")

    def test_partial_match(self) -> None:
        """Memory without storage leaves storage empty."""
        specs = parse_specs("32GB unified memory")
        self.assertEqual(specs.memory_size, "32GB")
        self.assertEqual(specs.storage_size, "")

    def test_empty_description(self) -> None:
        specs = parse_specs(None)
        self.assertEqual(
            (specs.memory_size, specs.storage_size, specs.network_class),
            ("", "", "GbE"),
        )


class TestFormatSpecSummary(unittest.TestCase):
    """Human-readable spec line used in notifications."""

    def test_full_summary(self) -> None:
        summary = format_spec_summary(
            "Originally released October 202424GB unified memory"
            "512GB SSD110 Gigabit Ethernet portThree Thunderbolt 5 ports"
        )
        self.assertEqual(
            summary,
            "24GB RAM · 512GB SSD · 10 Gigabit Ethernet · "
            "Three Thunderbolt 5 ports",
        )

    def test_base_ethernet(self) -> None:
        summary = format_spec_summary("8GB unified memory1Gigabit Ethernet")
        self.assertEqual(summary, "8GB RAM · Gigabit Ethernet")

    def test_empty(self) -> None:
        self.assertEqual(format_spec_summary(""), "")


class TestNormalizeAttributes(unittest.TestCase):
    """End-to-end attribute derivation."""

    def test_combines_chip_and_specs(self) -> None:
        attrs = normalize_attributes(
            "Refurbished Mac mini Apple M4 Pro Chip with 12‑Core CPU and "
            "16‑Core GPU",
            "Originally released October 202424GB unified memory512GB SSD"
            "110 Gigabit Ethernet port",
        )
        self.assertEqual(attrs.chip_family, "M4 Pro")
        self.assertEqual(attrs.generation, 4)
        self.assertEqual(attrs.cpu_cores, 12)
        self.assertEqual(attrs.gpu_cores, 16)
        self.assertEqual(attrs.memory_size, "24GB")
        self.assertEqual(attrs.storage_size, "512GB")
        self.assertEqual(attrs.network_class, "10GbE")

    def test_deterministic(self) -> None:
        args = ("Mac mini M2 8-core CPU 10-core GPU", "8GB unified memory")
        self.assertEqual(normalize_attributes(*args), normalize_attributes(*args))


if __name__ == "__main__":
    unittest.main()
