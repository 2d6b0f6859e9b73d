"""Excel dashboard workbook writer."""

from pathlib import Path
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from finance_tracker.config import Config
from finance_tracker.models.budget import BudgetStatus
from finance_tracker.models.category import Category
from finance_tracker.models.report import DashboardReport
from finance_tracker.models.transaction import Transaction
from finance_tracker.output.formatting import escape_formula, fold_other
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)


class ExcelWriter:
    """Writes a dashboard report to a multi-sheet Excel workbook.

    Generates sheets:
    - Summary
    - Categories (top categories plus "Other")
    - Timeline
    - Budgets
    - Monthly Totals
    - Transactions
    """

    SHEET_TRANSACTIONS = "Transactions"

    STATUS_FILLS = {
        BudgetStatus.SAFE: "CCFFCC",
        BudgetStatus.WARNING: "FFFFCC",
        BudgetStatus.EXCEEDED: "FFCCCC",
    }

    def __init__(self, config: Config, categories: Sequence[Category]):
        """Initialize Excel writer.

        Args:
            config: Application configuration.
            categories: The user's categories, for display names.
        """
        self.config = config
        self.dashboard_config = config.dashboard
        self.categories = {cat.id: cat for cat in categories}

        # Style definitions
        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        self.money_positive = Font(color="006600")  # Dark green
        self.money_negative = Font(color="CC0000")  # Dark red
        self.centered = Alignment(horizontal="center")

    def write(
        self,
        output_path: Path,
        report: DashboardReport,
        transactions: Optional[Sequence[Transaction]] = None,
    ) -> None:
        """Write the dashboard to an Excel workbook.

        Args:
            output_path: Path for output file.
            report: Dashboard report to render.
            transactions: Period transactions for the Transactions sheet.
        """
        logger.info(f"Writing Excel workbook to {output_path}")

        wb = Workbook()
        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        self._create_summary(wb, report)
        self._create_categories(wb, report)
        self._create_timeline(wb, report)
        self._create_budgets(wb, report)
        self._create_monthly_totals(wb, report)
        if transactions is not None:
            self._create_transactions(wb, transactions)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        logger.info(f"Excel workbook saved: {output_path}")

    def _write_headers(self, ws, headers: list[str]) -> None:
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.centered
        ws.freeze_panes = "A2"

    def _set_widths(self, ws, widths: list[int]) -> None:
        for i, width in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(i)].width = width

    def _create_summary(self, wb: Workbook, report: DashboardReport) -> None:
        ws = wb.create_sheet("Summary")
        summary = report.summary
        reimbursements = report.reimbursements

        ws.cell(row=1, column=1, value="DASHBOARD SUMMARY").font = Font(bold=True, size=14)
        ws.cell(row=2, column=1, value="Period")
        ws.cell(row=2, column=2, value=report.period_display)

        rows = [
            ("Total Income", summary.total_income),
            ("Total Expenses", summary.total_expenses),
            ("Net Balance", summary.net_balance),
            ("Pending Reimbursements", summary.pending_reimbursements),
            ("Pending (Work)", reimbursements.pending_work_total),
            ("Pending (Personal)", reimbursements.pending_personal_total),
            ("Cleared Reimbursements", reimbursements.cleared_total),
        ]
        for row, (label, amount) in enumerate(rows, 4):
            ws.cell(row=row, column=1, value=label)
            cell = ws.cell(row=row, column=2, value=float(amount))
            cell.number_format = self._money_format()

        count_row = 4 + len(rows)
        ws.cell(row=count_row, column=1, value="Transactions")
        ws.cell(row=count_row, column=2, value=summary.transaction_count)

        self._set_widths(ws, [28, 18])

    def _create_categories(self, wb: Workbook, report: DashboardReport) -> None:
        ws = wb.create_sheet("Categories")
        self._write_headers(ws, ["Category", "Amount", "Percentage", "Transactions"])

        entries = fold_other(report.category_spending, self.dashboard_config.top_categories)
        for row, entry in enumerate(entries, 2):
            ws.cell(row=row, column=1, value=escape_formula(f"{entry.category_icon} {entry.category_name}"))
            amount_cell = ws.cell(row=row, column=2, value=float(entry.amount))
            amount_cell.number_format = self._money_format()
            pct_cell = ws.cell(row=row, column=3, value=float(entry.percentage) / 100)
            pct_cell.number_format = "0.0%"
            ws.cell(row=row, column=4, value=entry.transaction_count)

        self._set_widths(ws, [30, 14, 12, 14])
        logger.debug(f"Created Categories sheet with {len(entries)} rows")

    def _create_timeline(self, wb: Workbook, report: DashboardReport) -> None:
        ws = wb.create_sheet("Timeline")
        self._write_headers(ws, ["Date", "Label", "Income", "Expenses"])

        for row, day in enumerate(report.timeline, 2):
            ws.cell(row=row, column=1, value=day.date)
            ws.cell(row=row, column=2, value=day.label)
            income_cell = ws.cell(row=row, column=3, value=float(day.income))
            income_cell.number_format = self._money_format()
            expense_cell = ws.cell(row=row, column=4, value=float(day.expenses))
            expense_cell.number_format = self._money_format()

        self._set_widths(ws, [12, 10, 14, 14])

    def _create_budgets(self, wb: Workbook, report: DashboardReport) -> None:
        ws = wb.create_sheet("Budgets")
        self._write_headers(
            ws, ["Budget", "Category", "Limit", "Spent", "Remaining", "Used", "Status"]
        )

        for row, progress in enumerate(report.budget_progress, 2):
            ws.cell(row=row, column=1, value=escape_formula(progress.budget_name))
            ws.cell(row=row, column=2, value=escape_formula(progress.category_name))
            for col, amount in enumerate(
                (progress.monthly_limit, progress.spent, progress.remaining), 3
            ):
                cell = ws.cell(row=row, column=col, value=float(amount))
                cell.number_format = self._money_format()
            pct_cell = ws.cell(row=row, column=6, value=float(progress.percentage) / 100)
            pct_cell.number_format = "0.0%"

            status_cell = ws.cell(row=row, column=7, value=progress.status.value)
            color = self.STATUS_FILLS[progress.status]
            status_cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")

        self._set_widths(ws, [25, 25, 12, 12, 12, 10, 10])

    def _create_monthly_totals(self, wb: Workbook, report: DashboardReport) -> None:
        ws = wb.create_sheet("Monthly Totals")
        self._write_headers(ws, ["Month", "Amount", "Transactions"])

        for row, total in enumerate(report.monthly_totals, 2):
            ws.cell(row=row, column=1, value=total.label)
            cell = ws.cell(row=row, column=2, value=float(total.amount))
            cell.number_format = self._money_format()
            ws.cell(row=row, column=3, value=total.transaction_count)

        self._set_widths(ws, [12, 14, 14])

    def _create_transactions(self, wb: Workbook, transactions: Sequence[Transaction]) -> None:
        ws = wb.create_sheet(self.SHEET_TRANSACTIONS)
        self._write_headers(
            ws, ["Date", "Description", "Counterparty", "Amount", "Category", "Source", "Confidence"]
        )

        sorted_txns = sorted(transactions, key=lambda t: (t.date, t.description))
        for row, txn in enumerate(sorted_txns, 2):
            ws.cell(row=row, column=1, value=txn.date)
            ws.cell(row=row, column=2, value=escape_formula(txn.description))
            ws.cell(row=row, column=3, value=escape_formula(txn.counterparty or ""))

            amount_cell = ws.cell(row=row, column=4, value=float(txn.amount))
            amount_cell.number_format = self._money_format()
            amount_cell.font = self.money_negative if txn.amount < 0 else self.money_positive

            ws.cell(row=row, column=5, value=escape_formula(self._get_category_name(txn.category_id)))
            ws.cell(row=row, column=6, value=txn.category_source.value)
            conf_cell = ws.cell(row=row, column=7, value=txn.category_confidence)
            conf_cell.number_format = "0.00"

        self._set_widths(ws, [12, 40, 25, 12, 20, 10, 10])
        logger.debug(f"Created Transactions sheet with {len(sorted_txns)} rows")

    def _get_category_name(self, category_id: Optional[str]) -> Optional[str]:
        """Get display name for a category."""
        if not category_id:
            return None
        category = self.categories.get(category_id)
        return category.name if category else category_id

    def _money_format(self) -> str:
        """Get number format for money values.

        Returns:
            Excel number format string.
        """
        symbol = self.dashboard_config.currency_symbol
        return f'{symbol}#,##0.00_);[Red]({symbol}#,##0.00)'
