"""
Tests for monetary amount handling
"""

import pytest
from decimal import Decimal, ROUND_HALF_UP, ROUND_HALF_EVEN

from toybank.money import format_amount, parse_amount, rounding_mode, to_amount


class TestToAmount:
    """Test conversion and rounding policy"""

    def test_quantizes_to_two_places(self):
        assert to_amount(500) == Decimal("500.00")
        assert str(to_amount("75.5")) == "75.50"

    def test_half_even_rounding(self):
        assert to_amount("0.125") == Decimal("0.12")
        assert to_amount("0.135") == Decimal("0.14")

    def test_configurable_rounding(self):
        assert to_amount("0.125", rounding=ROUND_HALF_UP) == Decimal("0.13")
        assert to_amount("12.345", precision=1) == Decimal("12.3")

    def test_float_goes_through_string(self):
        # 0.1 + 0.2 as a float is 0.30000000000000004
        assert to_amount(0.1 + 0.2) == Decimal("0.30")

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError):
            to_amount(Decimal("NaN"))
        with pytest.raises(ValueError):
            to_amount("Infinity")

    def test_repeated_adjustments_do_not_drift(self):
        amount = to_amount("100.00")
        for _ in range(1000):
            amount = to_amount(amount + Decimal("0.10"))
        for _ in range(1000):
            amount = to_amount(amount - Decimal("0.10"))
        assert amount == Decimal("100.00")


class TestParseAmount:
    """Test parsing of user typed adjustments"""

    @pytest.mark.parametrize("text,expected", [
        ("-400", Decimal("-400.00")),
        ("+50.00", Decimal("50.00")),
        ("  25.5 ", Decimal("25.50")),
        ("$1,200.75", Decimal("1200.75")),
        ("12,345,678", Decimal("12345678.00")),
        ("1200", Decimal("1200.00")),
        ("-$20", Decimal("-20.00")),
        (".5", Decimal("0.50")),
        ("0", Decimal("0.00")),
    ])
    def test_valid_amounts(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [
        "", "abc", "1.2.3", "--5", "NaN", "inf", "1e3", "$-5",
        "1,,2", "12,3", ",100", "1,2345", "1,000,00",
    ])
    def test_invalid_amounts(self, text):
        with pytest.raises(ValueError):
            parse_amount(text)


class TestFormatting:
    """Test display formatting and rounding mode lookup"""

    def test_format_amount(self):
        assert format_amount(Decimal("150.00")) == "$150.00"
        assert format_amount(Decimal("15000.5")) == "$15,000.50"
        assert format_amount(Decimal("-20")) == "-$20.00"

    def test_rounding_mode_lookup(self):
        assert rounding_mode("ROUND_HALF_EVEN") == ROUND_HALF_EVEN
        assert rounding_mode("round_half_up") == ROUND_HALF_UP

    def test_unknown_rounding_mode(self):
        with pytest.raises(ValueError):
            rounding_mode("ROUND_SIDEWAYS")
        with pytest.raises(ValueError):
            rounding_mode("Decimal")
