"""
Display formatting.
Amounts are kept unrounded everywhere else; they are rounded to cents here,
at the very edge, for JSON responses and reports.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union, Optional

CENTS = Decimal('0.01')


def to_cents(value: Union[int, float, Decimal, str, None]) -> Optional[Decimal]:
    """
    Round an amount to cents (half up).

    Examples:
        to_cents(Decimal('123.76665')) -> Decimal('123.77')
        to_cents(None) -> None
    """
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        return None


def money(value: Union[int, float, Decimal, str, None]) -> Optional[str]:
    """Amount as a plain two-decimal string ("123.77"), or None."""
    cents = to_cents(value)
    return str(cents) if cents is not None else None
