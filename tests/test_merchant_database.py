"""Tests for the merchant database."""

from pathlib import Path

import pytest

from finance_tracker.models.category import MerchantMapping
from finance_tracker.processing.merchant_database import (
    DEFAULT_DATABASE,
    MerchantDatabase,
    load_merchant_database,
    match_merchant,
)


class TestMerchantDatabase:
    """Tests for MerchantDatabase lookups."""

    def test_default_table_match(self) -> None:
        """Test a well-known payee matches the shipped table."""
        mapping = DEFAULT_DATABASE.match("albert heijn 1234 amsterdam")

        assert mapping is not None
        assert mapping.pattern == "ALBERT HEIJN"
        assert mapping.category_slug == "groceries"
        assert mapping.confidence == 0.95

    def test_first_in_table_order(self) -> None:
        """Test the earliest mapping wins when several occur in the text."""
        db = MerchantDatabase([
            MerchantMapping("JUMBO", "groceries", 0.9),
            MerchantMapping("LIDL", "groceries.discount", 0.95),
        ])

        mapping = db.match("LIDL VIA JUMBO")

        assert mapping is not None
        assert mapping.pattern == "JUMBO"

    def test_pattern_with_trailing_space(self) -> None:
        """Test patterns keep significant whitespace."""
        assert DEFAULT_DATABASE.match("NS GROEP AMSTERDAM") is not None
        assert match_merchant("BONSAI") is None

    def test_no_match(self) -> None:
        """Test unknown payees return None."""
        assert DEFAULT_DATABASE.match("LOCAL BAKERY") is None

    def test_injected_table(self) -> None:
        """Test a substituted table is used instead of the shipped one."""
        db = MerchantDatabase([MerchantMapping("BAKKER BART", "food.bakery", 0.8)])

        assert match_merchant("BAKKER BART 12", db) is not None
        assert match_merchant("ALBERT HEIJN", db) is None
        assert len(db) == 1

    def test_empty_table(self) -> None:
        """Test an empty table matches nothing."""
        assert MerchantDatabase([]).match("ALBERT HEIJN") is None

    def test_injected_empty_table_not_replaced(self) -> None:
        """Test an injected empty table is searched rather than the shipped one."""
        assert match_merchant("ALBERT HEIJN 1234", MerchantDatabase([])) is None


class TestMerchantMapping:
    """Tests for MerchantMapping validation."""

    def test_confidence_must_be_below_one(self) -> None:
        """Test merchant confidence is strictly below 1.0."""
        with pytest.raises(ValueError, match="Merchant confidence"):
            MerchantMapping("X", "groceries", 1.0)

    def test_negative_confidence_rejected(self) -> None:
        """Test negative confidence is rejected."""
        with pytest.raises(ValueError):
            MerchantMapping("X", "groceries", -0.1)


class TestLoadMerchantDatabase:
    """Tests for loading merchant tables from YAML."""

    def test_load_valid_file(self, tmp_path: Path) -> None:
        """Test mappings are loaded in file order."""
        path = tmp_path / "merchants.yaml"
        path.write_text(
            "merchants:\n"
            "  - pattern: BAKKER BART\n"
            "    categorySlug: food.bakery\n"
            "    confidence: 0.8\n"
            "  - pattern: FIETSENMAKER\n"
            "    category_slug: transport.bike\n"
            "    confidence: 0.85\n",
            encoding="utf-8",
        )

        db = load_merchant_database(path)

        assert [m.pattern for m in db.mappings] == ["BAKKER BART", "FIETSENMAKER"]
        assert db.mappings[1].category_slug == "transport.bike"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_merchant_database(tmp_path / "missing.yaml")

    def test_merchants_not_a_list(self, tmp_path: Path) -> None:
        """Test a non-list merchants key is rejected."""
        path = tmp_path / "merchants.yaml"
        path.write_text("merchants: nope\n", encoding="utf-8")

        with pytest.raises(ValueError, match="must be a list"):
            load_merchant_database(path)

    def test_invalid_entry(self, tmp_path: Path) -> None:
        """Test an entry without a pattern is rejected."""
        path = tmp_path / "merchants.yaml"
        path.write_text("merchants:\n  - categorySlug: x\n    confidence: 0.5\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid merchant entry"):
            load_merchant_database(path)
