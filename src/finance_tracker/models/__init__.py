"""Data models for transactions, categories, rules, budgets, and reports."""

from finance_tracker.models.budget import Budget, BudgetStatus
from finance_tracker.models.category import (
    CategorizationResult,
    Category,
    CategorySource,
    MatchType,
    MerchantMapping,
    StoredRule,
)
from finance_tracker.models.report import (
    BudgetProgress,
    CategorySpending,
    DashboardReport,
    MonthlyTotal,
    ReimbursementSummary,
    Summary,
    TimelineData,
)
from finance_tracker.models.transaction import (
    Reimbursement,
    ReimbursementStatus,
    ReimbursementType,
    Split,
    Transaction,
)

__all__ = [
    "Budget",
    "BudgetStatus",
    "CategorizationResult",
    "Category",
    "CategorySource",
    "MatchType",
    "MerchantMapping",
    "StoredRule",
    "BudgetProgress",
    "CategorySpending",
    "DashboardReport",
    "MonthlyTotal",
    "ReimbursementSummary",
    "Summary",
    "TimelineData",
    "Reimbursement",
    "ReimbursementStatus",
    "ReimbursementType",
    "Split",
    "Transaction",
]
