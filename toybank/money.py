"""
Money Handling Module

Loan amounts are Decimal values quantized to a fixed number of places with a
fixed rounding rule, so repeated adjustments never drift. NEVER uses float
for monetary values; floats coming back from a driver are converted through
their string form.
"""

import decimal
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, getcontext
from typing import Union

# Set global decimal context for financial precision
getcontext().prec = 28

DEFAULT_PRECISION = 2
DEFAULT_ROUNDING = ROUND_HALF_EVEN

_AMOUNT_PATTERN = re.compile(
    r"^([+-]?)\s*\$?\s*((?:[0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)(?:\.[0-9]*)?|\.[0-9]+)$"
)

AmountLike = Union[Decimal, int, float, str]


def rounding_mode(name: str) -> str:
    """Resolve a decimal rounding constant by name, e.g. "ROUND_HALF_UP"."""
    mode = getattr(decimal, name.upper(), None)
    if not isinstance(mode, str) or not name.upper().startswith("ROUND_"):
        raise ValueError(f"Unknown rounding mode: {name}")
    return mode


def to_amount(value: AmountLike, precision: int = DEFAULT_PRECISION,
              rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """
    Convert a value to a monetary Decimal.

    Args:
        value: Decimal, int, float or numeric string
        precision: Number of decimal places to keep
        rounding: Decimal rounding mode

    Returns:
        Decimal quantized to ``precision`` places
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if not value.is_finite():
        raise ValueError(f"Amount must be finite, got {value}")
    return value.quantize(Decimal(1).scaleb(-precision), rounding=rounding)


def parse_amount(text: str, precision: int = DEFAULT_PRECISION,
                 rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """
    Parse a user supplied signed amount such as "-400", "+50.00" or "$1,200.5".

    Raises:
        ValueError: If the text is not a plain decimal amount
    """
    match = _AMOUNT_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"Not a valid amount: {text!r}")

    sign, digits = match.groups()
    try:
        value = Decimal(sign + digits.replace(",", ""))
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {text!r}")

    return to_amount(value, precision, rounding)


def format_amount(amount: Decimal, precision: int = DEFAULT_PRECISION) -> str:
    """Format for display, e.g. ``$1,234.50`` or ``-$20.00``"""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.{precision}f}"
