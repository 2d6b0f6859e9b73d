"""Pure aggregation routines over a transaction snapshot.

Every function here is deterministic for a given (transactions, categories,
budgets) snapshot, performs no I/O, and returns zeroed or empty structures
for empty input. Money is summed as Decimal.

Totals leave out transactions flagged exclude_from_totals (lump-sum
statement entries) and transactions whose top-level category is the
transfer category.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

from finance_tracker.models.budget import Budget, BudgetStatus
from finance_tracker.models.category import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    Category,
)
from finance_tracker.models.report import (
    BudgetProgress,
    CategorySpending,
    MonthlyTotal,
    ReimbursementSummary,
    Summary,
    TimelineData,
)
from finance_tracker.models.transaction import ReimbursementType, Transaction
from finance_tracker.utils.date_utils import (
    add_months,
    each_day,
    end_of_month,
    format_day_label,
    format_month_label,
    month_key,
    start_of_month,
)
from finance_tracker.utils.decimal_utils import HUNDRED, ZERO, round_currency, sum_amounts
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"
TRANSFER_CATEGORY_ID = "transfer"

# Months averaged for budget suggestions
SUGGESTION_MONTHS = 3

CategoryMap = Mapping[str, Category]


def get_top_level_category_id(
    category_id: Optional[str],
    categories: Optional[CategoryMap],
) -> str:
    """Resolve the top-level category of a category id.

    Args:
        category_id: Category id, or None for uncategorized.
        categories: Category map; when None ids are returned unchanged.

    Returns:
        "uncategorized" for None, the id itself for unknown or root
        categories, and the parent id for subcategories.
    """
    if not category_id:
        return UNCATEGORIZED_ID
    if categories is None:
        return category_id
    category = categories.get(category_id)
    if category is None or not category.parent_id:
        return category_id
    return category.parent_id


def _counts_toward_totals(txn: Transaction, categories: Optional[CategoryMap]) -> bool:
    if txn.exclude_from_totals:
        return False
    if categories is not None and txn.category_id:
        if get_top_level_category_id(txn.category_id, categories) == TRANSFER_CATEGORY_ID:
            return False
    return True


def _is_counted_expense(txn: Transaction, categories: Optional[CategoryMap]) -> bool:
    """Expense that counts toward spending (not pending reimbursement)."""
    return (
        txn.is_expense
        and not txn.is_pending_reimbursement
        and _counts_toward_totals(txn, categories)
    )


def _expense_parts(txn: Transaction) -> list[tuple[Optional[str], Decimal]]:
    """Split an expense into (category_id, positive amount) parts.

    Split transactions contribute each positive split to its own category;
    other transactions contribute their absolute amount.
    """
    if txn.is_split and txn.splits:
        return [(split.category_id, split.amount) for split in txn.splits if split.amount > 0]
    return [(txn.category_id, abs(txn.amount))]


def calculate_summary(
    transactions: Sequence[Transaction],
    categories: Optional[CategoryMap] = None,
) -> Summary:
    """Total income, expenses, and pending reimbursements.

    Pending reimbursable expenses are reported separately and are not part
    of total_expenses; cleared ones count as normal expenses.

    Args:
        transactions: Transactions in the period.
        categories: Category map used to leave out transfers.

    Returns:
        Summary over the transactions.
    """
    total_income = ZERO
    total_expenses = ZERO
    pending_reimbursements = ZERO

    for txn in transactions:
        if not _counts_toward_totals(txn, categories):
            continue
        if txn.is_pending_reimbursement:
            pending_reimbursements += abs(txn.amount)
        elif txn.amount > 0:
            total_income += txn.amount
        else:
            total_expenses += abs(txn.amount)

    return Summary(
        total_income=total_income,
        total_expenses=total_expenses,
        net_balance=total_income - total_expenses,
        pending_reimbursements=pending_reimbursements,
        transaction_count=len(transactions),
    )


def _spending_entry(
    category_id: str,
    amount: Decimal,
    count: int,
    total: Decimal,
    categories: CategoryMap,
) -> CategorySpending:
    category = categories.get(category_id)
    return CategorySpending(
        category_id=category_id,
        category_name=category.name if category else UNCATEGORIZED_NAME,
        category_icon=category.icon if category else DEFAULT_CATEGORY_ICON,
        category_color=category.color if category else DEFAULT_CATEGORY_COLOR,
        amount=amount,
        percentage=(amount / total * HUNDRED) if total > 0 else ZERO,
        transaction_count=count,
    )


def calculate_category_spending(
    transactions: Sequence[Transaction],
    categories: CategoryMap,
    parent_id: Optional[str] = None,
) -> list[CategorySpending]:
    """Group expenses by category.

    Without parent_id, expenses are grouped by top-level category. With a
    parent_id, only spending in that category or its children is grouped,
    keyed by subcategory (direct hits on the parent keep the parent's key).

    Args:
        transactions: Transactions in the period.
        categories: Category map.
        parent_id: Top-level category to drill down into.

    Returns:
        Entries sorted by amount descending; percentages are of the group
        total and unrounded.
    """
    spending: dict[str, tuple[Decimal, int]] = {}

    for txn in transactions:
        if not _is_counted_expense(txn, categories):
            continue
        for category_id, amount in _expense_parts(txn):
            if parent_id is None:
                key = get_top_level_category_id(category_id, categories)
            else:
                if not category_id:
                    continue
                category = categories.get(category_id)
                if category_id == parent_id:
                    key = parent_id
                elif category is not None and category.parent_id == parent_id:
                    key = category_id
                else:
                    continue
            current_amount, current_count = spending.get(key, (ZERO, 0))
            spending[key] = (current_amount + amount, current_count + 1)

    total = sum_amounts(amount for amount, _ in spending.values())
    result = [
        _spending_entry(category_id, amount, count, total, categories)
        for category_id, (amount, count) in spending.items()
    ]
    return sorted(result, key=lambda entry: entry.amount, reverse=True)


def calculate_timeline(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    categories: Optional[CategoryMap] = None,
) -> list[TimelineData]:
    """Daily income and expense totals for every day in [start, end].

    Days without transactions are zero-filled; transactions outside the
    range and pending reimbursements are ignored.

    Args:
        transactions: Transactions to bucket.
        start: First day (inclusive).
        end: Last day (inclusive).
        categories: Category map used to leave out transfers.

    Returns:
        One entry per day, ascending.

    Raises:
        InvalidInputError: If start is after end.
    """
    days = each_day(start, end)
    daily: dict[date, list[Decimal]] = {day: [ZERO, ZERO] for day in days}

    for txn in transactions:
        if not _counts_toward_totals(txn, categories) or txn.is_pending_reimbursement:
            continue
        bucket = daily.get(txn.date)
        if bucket is None:
            continue
        if txn.amount > 0:
            bucket[1] += txn.amount
        else:
            bucket[0] += abs(txn.amount)

    return [
        TimelineData(
            date=day,
            label=format_day_label(day),
            expenses=daily[day][0],
            income=daily[day][1],
        )
        for day in days
    ]


def calculate_spending_by_category(
    transactions: Iterable[Transaction],
    categories: CategoryMap,
    rollup: bool = True,
) -> dict[str, Decimal]:
    """Total expense per category for budget tracking.

    Args:
        transactions: Transactions in the budget period.
        categories: Category map.
        rollup: Also add subcategory spending to the parent category.
            When False only directly-tagged spending is counted.

    Returns:
        Mapping of category id to positive spending.
    """
    spending: dict[str, Decimal] = {}

    for txn in transactions:
        if not _is_counted_expense(txn, categories):
            continue
        for category_id, amount in _expense_parts(txn):
            if not category_id:
                continue
            spending[category_id] = spending.get(category_id, ZERO) + amount

            if rollup:
                category = categories.get(category_id)
                if category is not None and category.parent_id:
                    spending[category.parent_id] = (
                        spending.get(category.parent_id, ZERO) + amount
                    )

    return spending


def budget_status(percentage: Decimal, alert_threshold: Decimal) -> BudgetStatus:
    """Classify a budget percentage.

    Args:
        percentage: Spent as a percentage of the limit.
        alert_threshold: Warning threshold percentage.

    Returns:
        EXCEEDED at or above 100, WARNING at or above the threshold, else SAFE.
    """
    if percentage >= HUNDRED:
        return BudgetStatus.EXCEEDED
    if percentage >= alert_threshold:
        return BudgetStatus.WARNING
    return BudgetStatus.SAFE


def calculate_budget_progress(
    budgets: Iterable[Budget],
    spending: Mapping[str, Decimal],
    categories: Optional[CategoryMap] = None,
) -> list[BudgetProgress]:
    """Progress of every active budget against its category spending.

    Args:
        budgets: Budgets to evaluate; inactive ones are skipped.
        spending: Output of calculate_spending_by_category().
        categories: Category map for display names.

    Returns:
        Progress entries sorted by percentage descending.
    """
    progress: list[BudgetProgress] = []

    for budget in budgets:
        if not budget.is_active:
            continue
        spent = spending.get(budget.category_id, ZERO)
        if budget.monthly_limit > 0:
            percentage = spent / budget.monthly_limit * HUNDRED
        else:
            percentage = ZERO
        category = categories.get(budget.category_id) if categories else None

        progress.append(
            BudgetProgress(
                budget_id=budget.id,
                budget_name=budget.name,
                category_id=budget.category_id,
                category_name=category.name if category else "Unknown",
                monthly_limit=budget.monthly_limit,
                alert_threshold=budget.alert_threshold,
                spent=spent,
                remaining=budget.monthly_limit - spent,
                percentage=percentage,
                status=budget_status(percentage, budget.alert_threshold),
            )
        )

    return sorted(progress, key=lambda p: p.percentage, reverse=True)


def suggestion_window(today: date) -> tuple[date, date]:
    """Date range of the three full months before today's month.

    Args:
        today: Reference date.

    Returns:
        (first day, last day) of the window.
    """
    current_month_start = start_of_month(today)
    window_start = add_months(current_month_start, -SUGGESTION_MONTHS)
    window_end = end_of_month(add_months(current_month_start, -1))
    return window_start, window_end


def calculate_budget_suggestions(three_month_spending: Mapping[str, Decimal]) -> dict[str, Decimal]:
    """Suggested monthly limits: three-month spending averaged per month.

    Args:
        three_month_spending: Spending per category over the suggestion window.

    Returns:
        Mapping of category id to the average rounded to two decimals.
    """
    divisor = Decimal(SUGGESTION_MONTHS)
    return {
        category_id: round_currency(amount / divisor)
        for category_id, amount in three_month_spending.items()
    }


def calculate_reimbursement_summary(
    pending: Sequence[Transaction],
    cleared: Sequence[Transaction],
) -> ReimbursementSummary:
    """Totals over already-partitioned reimbursable expenses.

    Args:
        pending: Expenses whose reimbursement is pending.
        cleared: Expenses whose reimbursement is cleared.

    Returns:
        ReimbursementSummary with absolute amounts.
    """
    def total_of(txns: Iterable[Transaction]) -> Decimal:
        return sum_amounts(abs(txn.amount) for txn in txns)

    return ReimbursementSummary(
        pending_total=total_of(pending),
        pending_work_total=total_of(
            t for t in pending
            if t.reimbursement is not None and t.reimbursement.type is ReimbursementType.WORK
        ),
        pending_personal_total=total_of(
            t for t in pending
            if t.reimbursement is not None and t.reimbursement.type is ReimbursementType.PERSONAL
        ),
        pending_count=len(pending),
        cleared_total=total_of(cleared),
        cleared_count=len(cleared),
    )


def calculate_monthly_totals(
    transactions: Iterable[Transaction],
    anchor: date,
    months: int = 6,
    direction: str = "expenses",
    categories: Optional[CategoryMap] = None,
    category_id: Optional[str] = None,
) -> list[MonthlyTotal]:
    """Per-month totals for the window of months ending at the anchor's month.

    Args:
        transactions: Transactions covering the window.
        anchor: Any date in the last month of the window.
        months: Number of months in the window.
        direction: "expenses" or "income".
        categories: Category map used to leave out transfers.
        category_id: Only count this top-level category (including splits
            and subcategories).

    Returns:
        One entry per month, oldest first, amounts rounded to cents.

    Raises:
        ValueError: If direction or months is invalid.
    """
    if direction not in ("expenses", "income"):
        raise ValueError(f"direction must be 'expenses' or 'income', got {direction!r}")
    if months < 1:
        raise ValueError(f"months must be positive, got {months}")

    anchor_month = start_of_month(anchor)
    month_starts = [add_months(anchor_month, -offset) for offset in range(months - 1, -1, -1)]
    totals: dict[str, list] = {month_key(d): [ZERO, 0] for d in month_starts}

    for txn in transactions:
        if not _counts_toward_totals(txn, categories) or txn.is_pending_reimbursement:
            continue
        if direction == "expenses" and not txn.is_expense:
            continue
        if direction == "income" and not txn.is_income:
            continue
        entry = totals.get(month_key(txn.date))
        if entry is None:
            continue

        if direction == "expenses":
            parts = _expense_parts(txn)
        else:
            parts = [(txn.category_id, txn.amount)]
        for part_category, amount in parts:
            if category_id is not None and (
                get_top_level_category_id(part_category, categories) != category_id
            ):
                continue
            entry[0] += amount
            entry[1] += 1

    return [
        MonthlyTotal(
            month_key=month_key(d),
            label=format_month_label(d),
            amount=round_currency(totals[month_key(d)][0]),
            transaction_count=totals[month_key(d)][1],
        )
        for d in month_starts
    ]


def month_range(anchor: date) -> tuple[date, date]:
    """First and last day of the anchor's month."""
    return start_of_month(anchor), end_of_month(anchor)
