"""
Money helpers.

All monetary values are Decimal rounded half-up to cents.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.config.business_constants import MONEY_QUANTUM, ZERO


def to_decimal(value: object) -> Decimal:
    """
    Convert a numeric value (or None) to Decimal.

    Database drivers return Decimal, int or float for aggregates
    depending on the backend; floats go through str() to avoid
    binary noise.

    Args:
        value: Value to convert

    Returns:
        Decimal value (0 for None)

    Raises:
        ValueError: If value is not numeric
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a numeric value: {value!r}") from e


def round_money(value: object) -> Decimal:
    """Round to cents (half-up)."""
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def round_percent(value: Decimal, places: int = 2) -> Decimal:
    """Round a percentage value (half-up)."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def safe_percent(part: Decimal, whole: Decimal) -> Decimal:
    """Percentage of part in whole, 0 when whole is 0."""
    if whole == 0:
        return ZERO
    return round_percent(part / whole * 100)
