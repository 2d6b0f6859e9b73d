"""Presentation helpers shared by the console, CSV and Excel outputs."""

from decimal import Decimal
from typing import Optional, Sequence

from finance_tracker.models.category import DEFAULT_CATEGORY_COLOR
from finance_tracker.models.report import CategorySpending
from finance_tracker.utils.decimal_utils import HUNDRED, ZERO, round_currency, sum_amounts

OTHER_CATEGORY_ID = "other"
OTHER_CATEGORY_NAME = "Other"
OTHER_CATEGORY_ICON = "📦"


def fold_other(spending: Sequence[CategorySpending], limit: int = 7) -> list[CategorySpending]:
    """Keep the top entries and fold the rest into a single "Other" entry.

    Args:
        spending: Entries sorted by amount descending.
        limit: Number of entries kept as-is.

    Returns:
        At most limit + 1 entries; unchanged when there is nothing to fold.

    Raises:
        ValueError: If limit is negative.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    if len(spending) <= limit:
        return list(spending)

    kept = list(spending[:limit])
    rest = spending[limit:]
    grand_total = sum_amounts(entry.amount for entry in spending)
    other_amount = sum_amounts(entry.amount for entry in rest)

    kept.append(
        CategorySpending(
            category_id=OTHER_CATEGORY_ID,
            category_name=OTHER_CATEGORY_NAME,
            category_icon=OTHER_CATEGORY_ICON,
            category_color=DEFAULT_CATEGORY_COLOR,
            amount=other_amount,
            percentage=(other_amount / grand_total * HUNDRED) if grand_total > 0 else ZERO,
            transaction_count=sum(entry.transaction_count for entry in rest),
        )
    )
    return kept


def format_percentage(value: Decimal) -> str:
    """Format a percentage with one decimal, e.g. "45.5%"."""
    return f"{round_currency(value, 1)}%"


# Leading characters that make spreadsheet apps evaluate a cell; "|" covers DDE
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r", "\n", "|")


def escape_formula(text: Optional[str]) -> Optional[str]:
    """Quote free text that a spreadsheet would evaluate as a formula.

    Descriptions and counterparty names come from bank exports, so they are
    written as text with a leading apostrophe when they look like a formula.
    Falsy values are returned unchanged.
    """
    if text and text.startswith(FORMULA_PREFIXES):
        return "'" + text
    return text
