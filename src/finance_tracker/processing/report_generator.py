"""Dashboard report generation from a transaction snapshot."""

from datetime import date
from typing import Sequence

from finance_tracker.models.budget import Budget
from finance_tracker.models.category import Category
from finance_tracker.models.report import DashboardReport
from finance_tracker.models.transaction import Transaction
from finance_tracker.processing.aggregations import (
    calculate_budget_progress,
    calculate_category_spending,
    calculate_monthly_totals,
    calculate_reimbursement_summary,
    calculate_spending_by_category,
    calculate_summary,
    calculate_timeline,
)
from finance_tracker.processing.reimbursements import partition_reimbursements
from finance_tracker.utils.date_utils import (
    add_months,
    is_date_in_range,
    start_of_month,
    validate_date_range,
)
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

MONTHLY_WINDOW = 6


def history_start(period_start: date, period_end: date, months: int = MONTHLY_WINDOW) -> date:
    """Earliest date the dashboard needs transactions from.

    Covers both the period itself and the monthly-totals window ending at
    period_end.
    """
    window_start = add_months(start_of_month(period_end), -(months - 1))
    return min(period_start, window_start)


def generate_dashboard(
    transactions: Sequence[Transaction],
    categories: Sequence[Category],
    budgets: Sequence[Budget],
    period_start: date,
    period_end: date,
    rollup: bool = True,
    months: int = MONTHLY_WINDOW,
) -> DashboardReport:
    """Generate every dashboard aggregation for a period.

    Single source of truth for dashboard numbers - used by the console,
    CSV and Excel outputs.

    Args:
        transactions: Transactions from history_start() through period_end;
            period figures use only those inside the period.
        categories: The user's categories.
        budgets: The user's budgets.
        period_start: First day of the period.
        period_end: Last day of the period.
        rollup: Count subcategory spending toward parent budgets.
        months: Length of the monthly-totals window.

    Returns:
        DashboardReport for the period.

    Raises:
        InvalidInputError: If period_start is after period_end.
    """
    validate_date_range(period_start, period_end)
    category_by_id = {cat.id: cat for cat in categories}
    in_period = [
        txn for txn in transactions if is_date_in_range(txn.date, period_start, period_end)
    ]
    pending, cleared = partition_reimbursements(in_period)
    spending = calculate_spending_by_category(in_period, category_by_id, rollup=rollup)

    report = DashboardReport(
        period_start=period_start,
        period_end=period_end,
        summary=calculate_summary(in_period, category_by_id),
        category_spending=calculate_category_spending(in_period, category_by_id),
        timeline=calculate_timeline(in_period, period_start, period_end, category_by_id),
        budget_progress=calculate_budget_progress(budgets, spending, category_by_id),
        reimbursements=calculate_reimbursement_summary(pending, cleared),
        monthly_totals=calculate_monthly_totals(
            transactions, period_end, months=months, categories=category_by_id
        ),
    )

    logger.info(
        f"Generated dashboard for {report.period_display}: "
        f"{len(in_period)} transactions, {len(report.budget_progress)} budgets"
    )
    return report
