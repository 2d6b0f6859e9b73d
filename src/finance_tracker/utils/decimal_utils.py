"""Decimal utilities for monetary aggregation.

All monetary arithmetic uses Decimal so that aggregations over the same
snapshot are exactly reproducible.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


def to_decimal(value: object, field_name: str = "amount") -> Decimal:
    """Convert a stored numeric value to Decimal.

    Floats are converted through their string form so that 12.34 becomes
    Decimal("12.34") rather than its binary expansion.

    Args:
        value: int, float, str or Decimal.
        field_name: Name used in the error message.

    Returns:
        The value as Decimal.

    Raises:
        ValueError: If the value is missing, boolean, or not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid {field_name}: {value!r}") from e
        if not result.is_finite():
            raise ValueError(f"Invalid {field_name}: {value!r}")
        return result
    raise ValueError(f"Invalid {field_name}: {value!r}")


def round_currency(amount: Decimal, decimal_places: int = 2) -> Decimal:
    """Round an amount half-up to a fixed number of decimal places.

    Args:
        amount: Amount to round.
        decimal_places: Number of decimal places (default 2).

    Returns:
        Rounded Decimal.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def format_currency(
    amount: Decimal,
    symbol: str = "€",
    decimal_places: int = 2,
) -> str:
    """Format a Decimal amount for display.

    Args:
        amount: The amount to format.
        symbol: Currency symbol prefix.
        decimal_places: Number of decimal places (default 2).

    Returns:
        Formatted string like "-€1,234.56".
    """
    rounded = round_currency(amount, decimal_places)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.{decimal_places}f}"


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimal amounts starting from Decimal zero.

    Args:
        amounts: Iterable of Decimal amounts.

    Returns:
        Sum as Decimal.
    """
    total = ZERO
    for amount in amounts:
        total += amount
    return total
