"""
formatting.py - Display helpers for dollars and token counts

Quantities are stored in whole dollars and whole tokens; the planner shows
them with thousands separators, and token counts in millions ("M tokens").
"""

from decimal import Decimal, ROUND_HALF_UP

from .core import TOKEN_SCALE, to_decimal


def format_currency(value, places: int = 2) -> str:
    """
    Format a dollar amount with thousands separators.

    None and NaN render as "$0", like an empty results cell.

    Example:
        >>> format_currency(Decimal("1234567.891"))
        '$1,234,567.89'
        >>> format_currency(-5)
        '-$5.00'
    """
    if value is None:
        return "$0"
    amount = to_decimal(value)
    if amount.is_nan():
        return "$0"
    quantized = amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    sign = "-" if quantized < 0 else ""
    return f"{sign}${abs(quantized):,.{places}f}"


def format_tokens(tokens, places: int = 3) -> str:
    """
    Format a token count in millions.

    Example:
        >>> format_tokens(2500000)
        '2.500M'
    """
    millions = to_decimal(tokens) / TOKEN_SCALE
    quantized = millions.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return f"{quantized:,.{places}f}M"
