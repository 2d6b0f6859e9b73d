"""CSV exporter for categorized transactions and dashboard figures."""

import csv
from pathlib import Path
from typing import Optional, Sequence

from finance_tracker.config import Config
from finance_tracker.models.category import Category
from finance_tracker.models.report import DashboardReport
from finance_tracker.models.transaction import Transaction
from finance_tracker.output.formatting import escape_formula, fold_other
from finance_tracker.utils.date_utils import date_to_iso
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)


class CSVExporter:
    """Exports finance data to CSV files for spreadsheet import.

    Creates separate CSV files in the output directory:
    - transactions.csv
    - summary.csv
    - category_spending.csv
    - budgets.csv
    - monthly_totals.csv
    """

    def __init__(self, config: Config, categories: Sequence[Category]):
        """Initialize CSV exporter.

        Args:
            config: Application configuration.
            categories: The user's categories, for display names.
        """
        self.config = config
        self.categories = {cat.id: cat for cat in categories}

    def export(
        self,
        output_dir: Path,
        transactions: Sequence[Transaction],
        report: Optional[DashboardReport] = None,
    ) -> list[Path]:
        """Export transactions and, if given, the dashboard report.

        Args:
            output_dir: Directory to write into (created if missing).
            transactions: Transactions to export.
            report: Dashboard report to export alongside.

        Returns:
            List of paths to created CSV files.
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        created_files = [self.export_transactions(output_dir / "transactions.csv", transactions)]
        if report is not None:
            created_files.extend([
                self._export_summary(output_dir, report),
                self._export_category_spending(output_dir, report),
                self._export_budgets(output_dir, report),
                self._export_monthly_totals(output_dir, report),
            ])

        logger.info(f"Exported {len(created_files)} CSV files")
        return created_files

    def export_transactions(
        self,
        output_path: Path,
        transactions: Sequence[Transaction],
    ) -> Path:
        """Export categorized transactions to one CSV file.

        Args:
            output_path: File to write.
            transactions: Transaction data.

        Returns:
            Path to created file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow([
                "Date", "Description", "Counterparty", "Amount", "Category",
                "Source", "Confidence", "Reimbursement", "Excluded",
            ])

            for txn in sorted(transactions, key=lambda t: (t.date, t.description)):
                reimbursement = ""
                if txn.reimbursement is not None:
                    reimbursement = (
                        f"{txn.reimbursement.type.value} ({txn.reimbursement.status.value})"
                    )
                writer.writerow([
                    date_to_iso(txn.date),
                    escape_formula(txn.description),
                    escape_formula(txn.counterparty or ""),
                    f"{txn.amount:.2f}",
                    escape_formula(self._get_category_name(txn.category_id) or ""),
                    txn.category_source.value,
                    f"{txn.category_confidence:.2f}",
                    reimbursement,
                    "Yes" if txn.exclude_from_totals else "",
                ])

        logger.info(f"Exported {len(transactions)} transactions to {output_path}")
        return output_path

    def _export_summary(self, output_dir: Path, report: DashboardReport) -> Path:
        output_path = output_dir / "summary.csv"
        summary = report.summary

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Period", report.period_display])
            writer.writerow(["Total Income", f"{summary.total_income:.2f}"])
            writer.writerow(["Total Expenses", f"{summary.total_expenses:.2f}"])
            writer.writerow(["Net Balance", f"{summary.net_balance:.2f}"])
            writer.writerow(["Pending Reimbursements", f"{summary.pending_reimbursements:.2f}"])
            writer.writerow(["Transactions", str(summary.transaction_count)])

        logger.debug(f"Exported summary to {output_path}")
        return output_path

    def _export_category_spending(self, output_dir: Path, report: DashboardReport) -> Path:
        output_path = output_dir / "category_spending.csv"
        entries = fold_other(report.category_spending, self.config.dashboard.top_categories)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Category", "Amount", "Percentage", "Transactions"])
            for entry in entries:
                writer.writerow([
                    escape_formula(entry.category_name),
                    f"{entry.amount:.2f}",
                    f"{entry.percentage:.1f}",
                    str(entry.transaction_count),
                ])

        logger.debug(f"Exported {len(entries)} category rows to {output_path}")
        return output_path

    def _export_budgets(self, output_dir: Path, report: DashboardReport) -> Path:
        output_path = output_dir / "budgets.csv"

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow([
                "Budget", "Category", "Limit", "Spent", "Remaining", "Percentage", "Status",
            ])
            for progress in report.budget_progress:
                writer.writerow([
                    escape_formula(progress.budget_name),
                    escape_formula(progress.category_name),
                    f"{progress.monthly_limit:.2f}",
                    f"{progress.spent:.2f}",
                    f"{progress.remaining:.2f}",
                    f"{progress.percentage:.1f}",
                    progress.status.value,
                ])

        logger.debug(f"Exported budgets to {output_path}")
        return output_path

    def _export_monthly_totals(self, output_dir: Path, report: DashboardReport) -> Path:
        output_path = output_dir / "monthly_totals.csv"

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Month", "Amount", "Transactions"])
            for total in report.monthly_totals:
                writer.writerow([total.month_key, f"{total.amount:.2f}", str(total.transaction_count)])

        logger.debug(f"Exported monthly totals to {output_path}")
        return output_path

    def _get_category_name(self, category_id: Optional[str]) -> Optional[str]:
        """Get category display name."""
        if not category_id:
            return None
        category = self.categories.get(category_id)
        return category.name if category else category_id
