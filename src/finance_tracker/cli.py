"""Command-line interface for the finance tracker."""

import argparse
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from finance_tracker import __version__
from finance_tracker.config import Config, ConfigError, get_config_dir, load_config
from finance_tracker.errors import FinanceTrackerError, StoreError
from finance_tracker.models.budget import BudgetStatus
from finance_tracker.models.report import DashboardReport
from finance_tracker.models.transaction import ReimbursementType, Transaction
from finance_tracker.output.formatting import fold_other, format_percentage
from finance_tracker.processing.aggregations import (
    calculate_budget_progress,
    calculate_budget_suggestions,
    calculate_reimbursement_summary,
    calculate_spending_by_category,
    month_range,
    suggestion_window,
)
from finance_tracker.processing.categorizer import Categorizer
from finance_tracker.processing.recategorizer import recategorize_transactions
from finance_tracker.processing.reimbursements import (
    clear_reimbursements,
    mark_reimbursable,
    partition_reimbursements,
    unmark_reimbursement,
)
from finance_tracker.processing.report_generator import generate_dashboard, history_start
from finance_tracker.store import FileTransactionStore, category_map
from finance_tracker.utils.decimal_utils import format_currency
from finance_tracker.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)

STATUS_STYLES = {
    BudgetStatus.SAFE: "green",
    BudgetStatus.WARNING: "yellow",
    BudgetStatus.EXCEEDED: "red",
}


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}") from e


def _month(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid month (expected YYYY-MM): {value}") from e


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="finance-tracker",
        description="Categorize bank transactions and report on spending and budgets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s categorize --text "ALBERT HEIJN 1234 AMSTERDAM"
  %(prog)s recategorize --max-seconds 60
  %(prog)s dashboard --start 2024-01-01 --end 2024-01-31 -o report.xlsx
  %(prog)s budgets --month 2024-03 --suggest
  %(prog)s reimbursements --mark txn-42 --type work
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: <config-dir>/settings.yaml)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Base config directory (default: $FINANCE_TRACKER_CONFIG_DIR or ./config)",
    )
    parser.add_argument(
        "-d", "--data",
        type=Path,
        default=None,
        help="JSON data file (default: data_file from settings)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v, -vv)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    categorize = subparsers.add_parser(
        "categorize", help="Categorize uncategorized transactions"
    )
    categorize.add_argument(
        "--text",
        default=None,
        help="Categorize a single description instead of stored transactions",
    )
    categorize.add_argument(
        "--counterparty",
        default=None,
        help="Counterparty for --text",
    )
    categorize.add_argument(
        "--dry-run",
        action="store_true",
        help="Show results without saving",
    )
    categorize.add_argument(
        "--export",
        type=Path,
        default=None,
        metavar="FILE",
        help="Export categorized transactions to CSV",
    )

    recategorize = subparsers.add_parser(
        "recategorize", help="Re-run categorization over all non-manual transactions"
    )
    recategorize.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Transactions per committed batch (default: from settings)",
    )
    recategorize.add_argument(
        "--max-seconds",
        type=float,
        default=None,
        help="Stop starting new batches after this many seconds",
    )

    dashboard = subparsers.add_parser("dashboard", help="Show the spending dashboard")
    dashboard.add_argument("--start", type=_iso_date, default=None, help="Start date (YYYY-MM-DD)")
    dashboard.add_argument("--end", type=_iso_date, default=None, help="End date (YYYY-MM-DD)")
    dashboard.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Write the dashboard to an .xlsx workbook or a CSV directory",
    )

    budgets = subparsers.add_parser("budgets", help="Show budget progress")
    budgets.add_argument("--month", type=_month, default=None, help="Month (YYYY-MM)")
    budgets.add_argument(
        "--suggest",
        action="store_true",
        help="Suggest limits from the previous three months",
    )

    reimbursements = subparsers.add_parser(
        "reimbursements", help="List and manage reimbursable expenses"
    )
    action = reimbursements.add_mutually_exclusive_group()
    action.add_argument("--mark", metavar="ID", default=None, help="Mark an expense reimbursable")
    action.add_argument("--unmark", metavar="ID", default=None, help="Remove reimbursement tracking")
    action.add_argument(
        "--clear",
        metavar="INCOME_ID",
        default=None,
        help="Clear expenses (see --expenses) against an incoming payment",
    )
    reimbursements.add_argument(
        "--type",
        choices=[t.value for t in ReimbursementType],
        default=ReimbursementType.WORK.value,
        help="Reimbursement type for --mark",
    )
    reimbursements.add_argument("--note", default=None, help="Note for --mark")
    reimbursements.add_argument(
        "--expenses",
        nargs="+",
        metavar="ID",
        default=None,
        help="Expense ids cleared by --clear",
    )

    subparsers.add_parser("validate", help="Validate configuration and data files")

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def open_store(args: argparse.Namespace, config: Config) -> FileTransactionStore:
    """Open the file store named on the command line or in settings."""
    data_path = args.data or Path(config.data_file)
    return FileTransactionStore(data_path, config.budgets.default_alert_threshold)


def _money(config: Config, amount: Decimal) -> str:
    return format_currency(amount, config.dashboard.currency_symbol)


def run_categorize(args: argparse.Namespace, config: Config) -> int:
    """Categorize one description, or every uncategorized stored transaction."""
    store = open_store(args, config)
    categorizer = Categorizer(store, config.load_merchants())
    categorizer.initialize()

    if args.text is not None:
        result = categorizer.categorize(args.text, args.counterparty)
        if not result.is_match:
            console.print("[yellow]No category found[/yellow]")
            return 0
        category = category_map(categorizer.snapshot.categories).get(result.category_id or "")
        console.print(
            f"[green]{category.name if category else result.category_id}[/green] "
            f"(source: {result.source.value}, confidence: {result.confidence:.2f})"
        )
        if result.matched_pattern:
            console.print(f"  matched pattern: {result.matched_pattern}")
        return 0

    transactions = store.load_transactions()
    pending = [t for t in transactions if t.category_id is None and not t.is_manually_categorized]
    categorizer.categorize_all(pending)
    categorized = sum(1 for t in pending if t.category_id is not None)

    console.print(f"Categorized {categorized} of {len(pending)} uncategorized transactions")

    if args.export:
        from finance_tracker.output import CSVExporter

        exporter = CSVExporter(config, categorizer.snapshot.categories)
        exporter.export_transactions(args.export, transactions)
        console.print(f"[green]Exported transactions to {args.export}[/green]")

    if args.dry_run:
        console.print("[dim]Dry run: no changes saved[/dim]")
    elif categorized:
        store.save_transactions(transactions)
    return 0


def run_recategorize(args: argparse.Namespace, config: Config) -> int:
    """Recategorize all non-manual transactions in committed batches."""
    store = open_store(args, config)
    categorizer = Categorizer(store, config.load_merchants())
    batch_size = args.batch_size or config.categorization.batch_size

    with console.status("[bold green]Recategorizing transactions..."):
        result = recategorize_transactions(
            store, categorizer, batch_size=batch_size, max_seconds=args.max_seconds
        )

    console.print("\n[bold]Recategorization Summary[/bold]")
    console.print(f"  Processed: {result.processed}")
    console.print(f"  Updated: {result.updated}")
    console.print(f"  Unchanged: {result.skipped}")
    if result.timed_out:
        console.print("[yellow]  Time limit reached; remaining transactions not processed[/yellow]")

    if result.errors:
        console.print(f"\n[red]Errors ({len(result.errors)}):[/red]")
        for e in result.errors[:10]:
            console.print(f"  - {e}")
        if len(result.errors) > 10:
            console.print(f"  ... and {len(result.errors) - 10} more")
    return 0


def display_dashboard(report: DashboardReport, config: Config) -> None:
    """Print a dashboard report to the console."""
    summary = report.summary
    console.print(f"\n[bold]Dashboard {report.period_display}[/bold]")
    console.print(f"  Income: [green]{_money(config, summary.total_income)}[/green]")
    console.print(f"  Expenses: [red]{_money(config, summary.total_expenses)}[/red]")
    console.print(f"  Net balance: {_money(config, summary.net_balance)}")
    if summary.pending_reimbursements:
        console.print(
            f"  Pending reimbursements: {_money(config, summary.pending_reimbursements)}"
        )
    console.print(f"  Transactions: {summary.transaction_count}")

    entries = fold_other(report.category_spending, config.dashboard.top_categories)
    if entries:
        table = Table(title="Spending by category")
        table.add_column("Category")
        table.add_column("Amount", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Txns", justify="right")
        for entry in entries:
            table.add_row(
                f"{entry.category_icon} {entry.category_name}",
                _money(config, entry.amount),
                format_percentage(entry.percentage),
                str(entry.transaction_count),
            )
        console.print(table)

    months = Table(title="Monthly expenses")
    months.add_column("Month")
    months.add_column("Amount", justify="right")
    for total in report.monthly_totals:
        months.add_row(total.label, _money(config, total.amount))
    console.print(months)


def run_dashboard(args: argparse.Namespace, config: Config) -> int:
    """Build the dashboard for a period and print or export it."""
    store = open_store(args, config)
    default_start, default_end = month_range(date.today())
    start = args.start or default_start
    end = args.end or default_end

    categories = store.load_categories()
    transactions = store.load_transactions(history_start(start, end), end)
    report = generate_dashboard(
        transactions,
        categories,
        store.load_budgets(),
        start,
        end,
        rollup=config.budgets.rollup_subcategories,
    )
    display_dashboard(report, config)

    if args.output:
        period_txns = [t for t in transactions if start <= t.date <= end]
        if args.output.suffix.lower() == ".xlsx":
            from finance_tracker.output import ExcelWriter

            ExcelWriter(config, categories).write(args.output, report, period_txns)
            console.print(f"[green]Dashboard written to {args.output}[/green]")
        else:
            from finance_tracker.output import CSVExporter

            files = CSVExporter(config, categories).export(args.output, period_txns, report)
            console.print(f"[green]Exported {len(files)} CSV files to {args.output}[/green]")
    return 0


def run_budgets(args: argparse.Namespace, config: Config) -> int:
    """Show budget progress for a month, optionally with suggested limits."""
    store = open_store(args, config)
    month_start, month_end = month_range(args.month or date.today())
    categories = category_map(store.load_categories())
    rollup = config.budgets.rollup_subcategories

    spending = calculate_spending_by_category(
        store.load_transactions(month_start, month_end), categories, rollup=rollup
    )
    progress = calculate_budget_progress(store.load_budgets(), spending, categories)

    if not progress:
        console.print("[yellow]No active budgets[/yellow]")
    else:
        table = Table(title=f"Budgets {month_start.strftime('%B %Y')}")
        table.add_column("Budget")
        table.add_column("Spent", justify="right")
        table.add_column("Limit", justify="right")
        table.add_column("Remaining", justify="right")
        table.add_column("Used", justify="right")
        for p in progress:
            style = STATUS_STYLES[p.status]
            table.add_row(
                p.budget_name or p.category_name,
                _money(config, p.spent),
                _money(config, p.monthly_limit),
                _money(config, p.remaining),
                f"[{style}]{p.percentage:.0f}%[/{style}]",
            )
        console.print(table)

    if args.suggest:
        window_start, window_end = suggestion_window(month_start)
        history = calculate_spending_by_category(
            store.load_transactions(window_start, window_end), categories, rollup=rollup
        )
        suggestions = calculate_budget_suggestions(history)
        console.print(f"\n[bold]Suggested limits ({window_start} to {window_end})[/bold]")
        if not suggestions:
            console.print("  No spending in the previous three months")
        for category_id, amount in sorted(suggestions.items(), key=lambda kv: kv[1], reverse=True):
            category = categories.get(category_id)
            console.print(f"  {category.name if category else category_id}: {_money(config, amount)}")
    return 0


def _find(transactions: Sequence[Transaction], txn_id: str) -> Transaction:
    for txn in transactions:
        if txn.id == txn_id:
            return txn
    raise FinanceTrackerError(f"Transaction not found: {txn_id}")


def run_reimbursements(args: argparse.Namespace, config: Config) -> int:
    """List reimbursable expenses or apply a mark, clear or unmark action."""
    store = open_store(args, config)
    transactions = store.load_transactions()

    if args.mark:
        txn = mark_reimbursable(
            _find(transactions, args.mark), ReimbursementType(args.type), args.note
        )
        store.save_transactions(transactions)
        console.print(f"[green]Marked {txn.id} as {args.type} reimbursable[/green]")
        return 0

    if args.unmark:
        unmark_reimbursement(_find(transactions, args.unmark))
        store.save_transactions(transactions)
        console.print(f"[green]Removed reimbursement from {args.unmark}[/green]")
        return 0

    if args.clear:
        if not args.expenses:
            console.print("[red]Error: --clear requires --expenses[/red]")
            return 1
        income = _find(transactions, args.clear)
        expenses = [_find(transactions, txn_id) for txn_id in args.expenses]
        clear_reimbursements(income, expenses)
        store.save_transactions(transactions)
        console.print(f"[green]Cleared {len(expenses)} expense(s) against {income.id}[/green]")
        return 0

    pending, cleared = partition_reimbursements(transactions)
    summary = calculate_reimbursement_summary(pending, cleared)

    console.print("\n[bold]Reimbursements[/bold]")
    console.print(f"  Pending: {summary.pending_count} ({_money(config, summary.pending_total)})")
    console.print(f"    Work: {_money(config, summary.pending_work_total)}")
    console.print(f"    Personal: {_money(config, summary.pending_personal_total)}")
    console.print(f"  Cleared: {summary.cleared_count} ({_money(config, summary.cleared_total)})")

    if pending:
        table = Table(title="Pending")
        table.add_column("ID")
        table.add_column("Date")
        table.add_column("Description")
        table.add_column("Amount", justify="right")
        table.add_column("Type")
        for txn in pending:
            table.add_row(
                txn.id,
                txn.date.isoformat(),
                txn.description,
                _money(config, abs(txn.amount)),
                txn.reimbursement.type.value if txn.reimbursement else "",
            )
        console.print(table)
    return 0


def validate_config(args: argparse.Namespace) -> int:
    """Validate configuration and data files.

    Args:
        args: Parsed command-line arguments.

    Returns:
        0 if valid, 1 if errors found.
    """
    console.print("[bold]Validating configuration files...[/bold]\n")

    errors = []
    warnings = []

    config_dir = get_config_dir(args.config_dir)
    if not config_dir.exists():
        warnings.append(f"Config directory not found: {config_dir}")

    settings_path = args.config or (config_dir / "settings.yaml")
    if settings_path.exists():
        console.print(f"[green]✓[/green] Settings: {settings_path}")
    else:
        warnings.append(f"Settings file not found: {settings_path}")

    config: Optional[Config] = None
    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
        merchants = config.load_merchants()
        console.print(f"[green]✓[/green] Merchant table: {len(merchants)} patterns")
    except ConfigError as e:
        errors.append(f"Failed to load configuration: {e}")

    if config is not None:
        store = open_store(args, config)
        try:
            categories = store.load_categories()
            rules = store.load_rules()
            budgets = store.load_budgets()
            transactions = store.load_transactions()
            console.print(f"[green]✓[/green] Data: {store.path}")
            console.print(f"  - {len(categories)} categories")
            console.print(f"  - {len(rules)} rules")
            console.print(f"  - {len(budgets)} budgets")
            console.print(f"  - {len(transactions)} transactions")

            known = category_map(categories)
            for rule in rules:
                if rule.category_id not in known:
                    warnings.append(f"Rule {rule.id} points to unknown category {rule.category_id}")
            for budget in budgets:
                if budget.category_id not in known:
                    warnings.append(
                        f"Budget {budget.id} points to unknown category {budget.category_id}"
                    )
        except StoreError as e:
            errors.append(str(e))

    if warnings:
        console.print("\n[yellow]Warnings:[/yellow]")
        for w in warnings:
            console.print(f"  - {w}")

    if errors:
        console.print("\n[red]Errors:[/red]")
        for err in errors:
            console.print(f"  - {err}")
        return 1

    console.print("\n[green]Configuration is valid.[/green]")
    return 0


COMMANDS = {
    "categorize": run_categorize,
    "recategorize": run_recategorize,
    "dashboard": run_dashboard,
    "budgets": run_budgets,
    "reimbursements": run_reimbursements,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Arguments to parse (default: sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "validate":
        setup_logging(level=get_log_level(args.verbose), log_file="", console_output=args.verbose > 0)
        return validate_config(args)

    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("Run 'finance-tracker validate' to check configuration files.")
        return 1

    log_level = get_log_level(args.verbose) if args.verbose else config.logging.level
    setup_logging(
        level=log_level,
        log_file=config.logging.file,
        console_output=args.verbose > 0,
    )

    try:
        return COMMANDS[args.command](args, config)
    except (FinanceTrackerError, ConfigError) as e:
        logger.error(f"{args.command} failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
