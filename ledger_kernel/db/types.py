"""
Module: ledger_kernel.db.types
Responsibility: Annotated column aliases and helpers for monetary values and
    currency codes.  Centralizes precision, rounding and currency validation
    so models, services and reports share one definition.
Architecture position: Kernel > DB.  Imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Money is Decimal with two fraction digits.  round_money() is the only
      sanctioned rounding function; to_money() is the only sanctioned way to
      turn caller input into an amount.
    - Currency codes are validated against ISO 4217 before being stored.
    - No floats.  to_money() refuses float input outright.

Failure modes:
    - InvalidCurrencyError on an unknown or malformed currency code.
    - TypeError when a float (or other non-numeric type) is offered as money.
    - InvalidAmountError when a string is not a number or a value is not
      finite (NaN, Infinity).

Audit relevance:
    Every amount column uses Money, so stored values and computed totals agree
    to the cent.  BALANCE_TOLERANCE is the single threshold used for both the
    entry balance check and report balance flags.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated

from sqlalchemy import Numeric, String, Text


# Monetary amount, 19 digits with 2 fraction digits
Money = Annotated[Decimal, Numeric(19, 2)]

# ISO 4217 currency code (e.g., "USD", "EUR")
Currency = Annotated[str, String(3)]

# Short identifier strings (codes, entry numbers, references)
ShortCode = Annotated[str, String(50)]

# Names and descriptions
LongText = Annotated[str, String(500)]

# Free-form notes
Notes = Annotated[str, Text]


MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

# Debits and credits are considered equal when they differ by less than this
BALANCE_TOLERANCE = Decimal("0.01")

ZERO = Decimal("0.00")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized with ROUND_HALF_UP by default.
    """
    return value.quantize(Decimal(10) ** -decimal_places, rounding=rounding)


class InvalidAmountError(ValueError):
    """Monetary input that is not a finite number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value: object):
        self.value = str(value)
        super().__init__(f"Invalid monetary amount: {value!r}")


def to_money(value: Decimal | int | str) -> Decimal:
    """
    Coerce caller input into a two-decimal monetary amount.

    Args:
        value: Decimal, int, or numeric string.

    Returns:
        The value as a Decimal rounded to cents.

    Raises:
        TypeError: If value is a float or any other unsupported type.
        InvalidAmountError: If value does not parse or is not finite.
    """
    if isinstance(value, (bool, float)) or not isinstance(value, (Decimal, int, str)):
        raise TypeError(
            f"Monetary amounts must be Decimal, int or str, got {type(value).__name__}"
        )
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise InvalidAmountError(value)
        return round_money(amount)
    except InvalidOperation as exc:
        raise InvalidAmountError(value) from exc


def is_balanced(debits: Decimal, credits: Decimal) -> bool:
    """True when debits and credits differ by less than one cent."""
    return abs(debits - credits) < BALANCE_TOLERANCE


# ISO 4217 currency codes
ISO_4217_CURRENCIES: frozenset[str] = frozenset({
    "USD", "EUR", "GBP", "JPY", "CHF", "CAD", "AUD", "NZD",
    "AED", "ARS", "BDT", "BGN", "BHD", "BRL", "CLP", "CNY", "COP", "CZK",
    "DKK", "EGP", "GHS", "HKD", "HUF", "IDR", "ILS", "INR", "ISK",
    "JOD", "KES", "KRW", "KWD", "KZT", "LKR", "MAD", "MXN", "MYR",
    "NGN", "NOK", "OMR", "PEN", "PHP", "PKR", "PLN", "QAR",
    "RON", "RSD", "RUB", "SAR", "SEK", "SGD", "THB", "TND", "TRY", "TWD",
    "UAH", "UGX", "UYU", "VND", "XAF", "XOF", "ZAR", "ZMW",
})


class InvalidCurrencyError(ValueError):
    """Raised when an invalid ISO 4217 currency code is provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


def validate_currency(currency: str) -> str:
    """
    Validate and normalize an ISO 4217 currency code.

    Returns:
        The uppercase, trimmed code.

    Raises:
        InvalidCurrencyError: If the code is not a recognized ISO 4217 code.
    """
    if not currency or not isinstance(currency, str):
        raise InvalidCurrencyError(str(currency))

    normalized = currency.upper().strip()
    if len(normalized) != 3 or normalized not in ISO_4217_CURRENCIES:
        raise InvalidCurrencyError(currency)

    return normalized
