"""
Math Utilities

Robust conversion of form and cell values to numbers, and the fixed-decimal
money arithmetic used for invoice and credit note totals.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, NamedTuple, Optional

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
WHOLE = Decimal("1")


def safe_decimal_convert(value: Any, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
    """
    Safely converts a value to a Decimal.

    Handles:
    - ints, floats and Decimals
    - strings with whitespace, a thousands comma or a decimal comma ("1 234,50")

    Returns:
        The converted value, or default if conversion fails.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, Decimal):
        return value

    if isinstance(value, (int, float)):
        return Decimal(str(value))

    if isinstance(value, str):
        cleaned = value.strip().replace(" ", "").replace(" ", "")
        if not cleaned:
            return default
        if "," in cleaned and "." in cleaned:
            cleaned = cleaned.replace(",", "")
        elif "," in cleaned:
            cleaned = cleaned.replace(",", ".")
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            return default
        if not number.is_finite():
            return default
        return number

    return default


def is_number(value: Any) -> bool:
    return safe_decimal_convert(value, default=None) is not None


def format_fixed(value: Any, places: int = 2) -> str:
    """Fixed-decimal string, rounded half-up ("15" -> "15.00")."""
    number = safe_decimal_convert(value)
    quantum = WHOLE if places == 0 else Decimal(1).scaleb(-places)
    return str(number.quantize(quantum, rounding=ROUND_HALF_UP))


def format_percent(value: Any) -> str:
    """Tax rate as an integer-percent string ("15.4" -> "15")."""
    return format_fixed(value, 0)


def format_currency(value: Any, symbol: str) -> str:
    """Amount with thousands separators, two decimals and the currency symbol prefix."""
    number = safe_decimal_convert(value).quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{symbol or ''}{number:,.2f}"


class Totals(NamedTuple):
    subtotal: str
    tax_rate: str
    tax_amount: str
    total: str


def calculate_totals(subtotal: Any, tax_rate: Any) -> Totals:
    """
    tax amount = subtotal * rate / 100 rounded to cents; total = subtotal + tax amount.

    Non-numeric input counts as zero.
    """
    subtotal_num = safe_decimal_convert(subtotal)
    rate_num = safe_decimal_convert(tax_rate)
    tax_amount = (subtotal_num * rate_num / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    total = subtotal_num.quantize(CENT, rounding=ROUND_HALF_UP) + tax_amount
    return Totals(
        subtotal=format_fixed(subtotal_num, 2),
        tax_rate=format_percent(rate_num),
        tax_amount=str(tax_amount),
        total=str(total.quantize(CENT, rounding=ROUND_HALF_UP)),
    )
