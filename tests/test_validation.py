"""
Unit tests for input normalisation.
"""
from decimal import Decimal

import pytest

from storefront.domain.errors import InvalidInputError
from storefront.domain.validation import normalize_identifier, parse_price, parse_quantity


class TestNormalizeIdentifier:
    """Test suite for identifier normalisation."""

    @pytest.mark.unit
    def test_int_ids_become_strings(self) -> None:
        assert normalize_identifier(7, "product_id") == "7"

    @pytest.mark.unit
    def test_surrounding_whitespace_is_stripped(self) -> None:
        assert normalize_identifier("  alice ", "user_id") == "alice"

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["", "   ", None, True, 1.5, ["a"]])
    def test_rejects_empty_or_wrong_type(self, value: object) -> None:
        with pytest.raises(InvalidInputError):
            normalize_identifier(value, "user_id")

    @pytest.mark.unit
    def test_rejects_key_separator(self) -> None:
        """An id containing ':' could alias another user's cart records."""
        with pytest.raises(InvalidInputError, match="must not contain"):
            normalize_identifier("alice:item:1", "user_id")


class TestParseQuantity:
    """Test suite for quantity parsing."""

    @pytest.mark.unit
    def test_accepts_positive_int(self) -> None:
        assert parse_quantity(3) == 3

    @pytest.mark.unit
    def test_accepts_integral_string(self) -> None:
        assert parse_quantity(" 4 ") == 4

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [0, -1, 1.0, 2.5, "1.5", "-2", "abc", "", None, True, "\u00b2"])
    def test_rejects_non_positive_or_non_integer(self, value: object) -> None:
        with pytest.raises(InvalidInputError, match="positive integer"):
            parse_quantity(value)


class TestParsePrice:
    """Test suite for price parsing."""

    @pytest.mark.unit
    def test_parses_numbers_and_strings(self) -> None:
        assert parse_price(2) == Decimal("2")
        assert parse_price("2.50") == Decimal("2.50")
        assert parse_price(0) == Decimal("0")

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [-0.01, "-1", "NaN", "Infinity", "two", None, False])
    def test_rejects_negative_or_non_numeric(self, value: object) -> None:
        with pytest.raises(InvalidInputError, match="non-negative number"):
            parse_price(value)
