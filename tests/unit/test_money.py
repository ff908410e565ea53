"""
Unit tests for money and currency helpers in ledger_kernel.db.types.

Verifies:
- Rounding determinism (ROUND_HALF_UP to cents)
- Float constructor prohibition
- The one-cent balance tolerance
- ISO 4217 validation and normalization
"""

from decimal import Decimal

import pytest

from ledger_kernel.db.types import (
    BALANCE_TOLERANCE,
    InvalidAmountError,
    InvalidCurrencyError,
    is_balanced,
    round_money,
    to_money,
    validate_currency,
)


class TestRoundMoney:

    def test_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")

    def test_negative_half_up(self):
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")

    def test_custom_places(self):
        assert round_money(Decimal("1.23456"), 4) == Decimal("1.2346")


class TestToMoney:

    def test_from_string(self):
        assert to_money("100.5") == Decimal("100.50")

    def test_from_int(self):
        assert to_money(7) == Decimal("7.00")

    def test_from_decimal(self):
        assert to_money(Decimal("0.125")) == Decimal("0.13")

    def test_float_rejected(self):
        with pytest.raises(TypeError, match="float"):
            to_money(0.1)

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            to_money(True)

    @pytest.mark.parametrize("value", ["not a number", "", "1.2.3", "Infinity", "-inf", "NaN", Decimal("NaN")])
    def test_non_numeric_or_non_finite_rejected(self, value):
        with pytest.raises(InvalidAmountError) as exc_info:
            to_money(value)

        assert exc_info.value.code == "INVALID_AMOUNT"

    def test_invalid_amount_is_a_value_error(self):
        with pytest.raises(ValueError):
            to_money("abc")

    def test_surrounding_whitespace_accepted(self):
        assert to_money(" 12.5 ") == Decimal("12.50")


class TestBalanceTolerance:

    def test_tolerance_is_one_cent(self):
        assert BALANCE_TOLERANCE == Decimal("0.01")

    def test_within_tolerance(self):
        assert is_balanced(Decimal("100.00"), Decimal("100.00"))
        assert is_balanced(Decimal("100.000"), Decimal("100.009"))

    def test_one_cent_is_unbalanced(self):
        assert not is_balanced(Decimal("100.00"), Decimal("100.01"))


class TestValidateCurrency:

    def test_normalizes_case_and_whitespace(self):
        assert validate_currency(" usd ") == "USD"

    @pytest.mark.parametrize("code", ["", "US", "USDX", "ZZZ"])
    def test_rejects_invalid(self, code):
        with pytest.raises(InvalidCurrencyError):
            validate_currency(code)

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_currency("XXX")
