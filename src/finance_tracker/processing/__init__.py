"""Categorization cascade, aggregations, and bulk processing jobs."""

from finance_tracker.processing.aggregations import (
    calculate_budget_progress,
    calculate_budget_suggestions,
    calculate_category_spending,
    calculate_monthly_totals,
    calculate_reimbursement_summary,
    calculate_spending_by_category,
    calculate_summary,
    calculate_timeline,
    suggestion_window,
)
from finance_tracker.processing.categorizer import (
    CategorizationSnapshot,
    Categorizer,
    build_snapshot,
    categorize,
    categorize_transaction,
)
from finance_tracker.processing.merchant_database import (
    DEFAULT_DATABASE,
    MerchantDatabase,
    load_merchant_database,
    match_merchant,
)
from finance_tracker.processing.recategorizer import (
    RecategorizeResult,
    recategorize_transactions,
)
from finance_tracker.processing.reimbursements import (
    clear_reimbursements,
    mark_reimbursable,
    partition_reimbursements,
    unmark_reimbursement,
)
from finance_tracker.processing.report_generator import generate_dashboard, history_start
from finance_tracker.processing.rule_engine import match_rules, sort_rules
from finance_tracker.processing.slug_resolver import SlugResolver

__all__ = [
    "calculate_budget_progress",
    "calculate_budget_suggestions",
    "calculate_category_spending",
    "calculate_monthly_totals",
    "calculate_reimbursement_summary",
    "calculate_spending_by_category",
    "calculate_summary",
    "calculate_timeline",
    "suggestion_window",
    "CategorizationSnapshot",
    "Categorizer",
    "build_snapshot",
    "categorize",
    "categorize_transaction",
    "DEFAULT_DATABASE",
    "MerchantDatabase",
    "load_merchant_database",
    "match_merchant",
    "RecategorizeResult",
    "recategorize_transactions",
    "clear_reimbursements",
    "mark_reimbursable",
    "partition_reimbursements",
    "unmark_reimbursement",
    "generate_dashboard",
    "history_start",
    "match_rules",
    "sort_rules",
    "SlugResolver",
]
