"""Aggregation result models returned to request handlers and the CLI."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from finance_tracker.models.budget import BudgetStatus


@dataclass(frozen=True)
class Summary:
    """Income/expense totals for a transaction set.

    Attributes:
        total_income: Sum of positive amounts.
        total_expenses: Absolute sum of negative amounts.
        net_balance: total_income - total_expenses.
        pending_reimbursements: Absolute sum of pending reimbursable expenses.
        transaction_count: Number of transactions supplied.
    """

    total_income: Decimal
    total_expenses: Decimal
    net_balance: Decimal
    pending_reimbursements: Decimal
    transaction_count: int

    def to_dict(self) -> dict[str, object]:
        return {
            "totalIncome": float(self.total_income),
            "totalExpenses": float(self.total_expenses),
            "netBalance": float(self.net_balance),
            "pendingReimbursements": float(self.pending_reimbursements),
            "transactionCount": self.transaction_count,
        }


@dataclass(frozen=True)
class CategorySpending:
    """Expense total for one category within a group."""

    category_id: str
    category_name: str
    category_icon: str
    category_color: str
    amount: Decimal
    percentage: Decimal
    transaction_count: int

    def to_dict(self) -> dict[str, object]:
        return {
            "categoryId": self.category_id,
            "categoryName": self.category_name,
            "categoryIcon": self.category_icon,
            "categoryColor": self.category_color,
            "amount": float(self.amount),
            "percentage": float(self.percentage),
            "transactionCount": self.transaction_count,
        }


@dataclass(frozen=True)
class TimelineData:
    """Income and expenses for one calendar day."""

    date: date
    label: str
    expenses: Decimal
    income: Decimal

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    def to_dict(self) -> dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "label": self.label,
            "expenses": float(self.expenses),
            "income": float(self.income),
        }


@dataclass(frozen=True)
class BudgetProgress:
    """Spending against one budget's limit.

    percentage is kept unrounded; rounding is a display concern.
    """

    budget_id: str
    budget_name: str
    category_id: str
    category_name: str
    monthly_limit: Decimal
    alert_threshold: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: Decimal
    status: BudgetStatus

    def to_dict(self) -> dict[str, object]:
        return {
            "budgetId": self.budget_id,
            "budgetName": self.budget_name,
            "categoryId": self.category_id,
            "categoryName": self.category_name,
            "monthlyLimit": float(self.monthly_limit),
            "alertThreshold": float(self.alert_threshold),
            "spent": float(self.spent),
            "remaining": float(self.remaining),
            "percentage": float(self.percentage),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class ReimbursementSummary:
    """Totals over pending and cleared reimbursable expenses."""

    pending_total: Decimal
    pending_work_total: Decimal
    pending_personal_total: Decimal
    pending_count: int
    cleared_total: Decimal
    cleared_count: int

    def to_dict(self) -> dict[str, object]:
        return {
            "pendingTotal": float(self.pending_total),
            "pendingWorkTotal": float(self.pending_work_total),
            "pendingPersonalTotal": float(self.pending_personal_total),
            "pendingCount": self.pending_count,
            "clearedTotal": float(self.cleared_total),
            "clearedCount": self.cleared_count,
        }


@dataclass(frozen=True)
class MonthlyTotal:
    """Spending (or income) total for one calendar month."""

    month_key: str
    label: str
    amount: Decimal
    transaction_count: int

    def to_dict(self) -> dict[str, object]:
        return {
            "monthKey": self.month_key,
            "month": self.label,
            "amount": float(self.amount),
            "transactionCount": self.transaction_count,
        }


@dataclass(frozen=True)
class DashboardReport:
    """Everything the dashboard shows for one period.

    Built by generate_dashboard(); shared by the console, CSV and Excel
    outputs so each renders the same numbers.
    """

    period_start: date
    period_end: date
    summary: Summary
    category_spending: list[CategorySpending]
    timeline: list[TimelineData]
    budget_progress: list[BudgetProgress]
    reimbursements: ReimbursementSummary
    monthly_totals: list[MonthlyTotal]

    @property
    def period_display(self) -> str:
        """Human-readable period string."""
        return f"{self.period_start.isoformat()} to {self.period_end.isoformat()}"

    def to_dict(self) -> dict[str, object]:
        return {
            "periodStart": self.period_start.isoformat(),
            "periodEnd": self.period_end.isoformat(),
            "summary": self.summary.to_dict(),
            "categorySpending": [c.to_dict() for c in self.category_spending],
            "timeline": [t.to_dict() for t in self.timeline],
            "budgetProgress": [b.to_dict() for b in self.budget_progress],
            "reimbursements": self.reimbursements.to_dict(),
            "monthlyTotals": [m.to_dict() for m in self.monthly_totals],
        }
