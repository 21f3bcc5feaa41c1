"""Unit tests for identifier and quantity normalization."""
from decimal import Decimal

import pytest

from allocintake.id_normalizer import normalize_description, normalize_item_id, normalize_store_key
from allocintake.quantity_normalizer import is_numeric, parse_decimal, parse_quantity


class TestItemIdNormalizer:
    def test_trims_and_uppercases(self):
        assert normalize_item_id("  a100 ") == "A100"
        assert normalize_item_id("sku-1b") == "SKU-1B"

    def test_blank_values(self):
        assert normalize_item_id(None) == ""
        assert normalize_item_id("") == ""
        assert normalize_item_id("   ") == ""
        assert normalize_item_id(float("nan")) == ""

    @pytest.mark.parametrize("raw", ["a100", "  Mixed Case  ", "", "00123", "x\ty"])
    def test_idempotent(self, raw):
        once = normalize_item_id(raw)
        assert normalize_item_id(once) == once

    def test_keeps_leading_zeros(self):
        assert normalize_item_id("00123") == "00123"

    def test_store_key(self):
        assert normalize_store_key(" Downtown ") == "DOWNTOWN"
        assert normalize_store_key(None) == ""


def test_normalize_description_collapses_whitespace():
    assert normalize_description("  Blue   Widget ") == "Blue Widget"
    assert normalize_description(None) == ""


class TestQuantityNormalizer:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0", 0),
            ("", 0),
            ("   ", 0),
            ("-5", -5),
            ("abc", 0),
            ("12.9", 12),
            ("-12.9", -12),
            ("1,234", 1234),
            ("1,234.75", 1234),
            (" 7 ", 7),
            ("+3", 3),
            ("1e3", 1000),
            ("(4)", -4),
            (None, 0),
            (5, 5),
            (2.5, 2),
        ],
    )
    def test_parse_quantity(self, raw, expected):
        assert parse_quantity(raw) == expected

    def test_parse_decimal_returns_none_for_garbage(self):
        assert parse_decimal("12abc") is None
        assert parse_decimal("N/A") is None
        assert parse_decimal("") is None
        assert parse_decimal("nan") is None
        assert parse_decimal("inf") is None

    def test_parse_decimal_value(self):
        assert parse_decimal("1,000.5") == Decimal("1000.5")

    def test_is_numeric(self):
        assert is_numeric("10")
        assert is_numeric("0")
        assert not is_numeric("SKU1")
        assert not is_numeric("")
