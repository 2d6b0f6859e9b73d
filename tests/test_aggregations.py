"""Tests for dashboard, budget and reimbursement aggregations."""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from finance_tracker.errors import InvalidInputError
from finance_tracker.models.budget import Budget, BudgetStatus
from finance_tracker.models.category import Category
from finance_tracker.models.transaction import (
    Reimbursement,
    ReimbursementStatus,
    ReimbursementType,
    Split,
    Transaction,
)
from finance_tracker.processing.aggregations import (
    budget_status,
    calculate_budget_progress,
    calculate_budget_suggestions,
    calculate_category_spending,
    calculate_monthly_totals,
    calculate_reimbursement_summary,
    calculate_spending_by_category,
    calculate_summary,
    calculate_timeline,
    get_top_level_category_id,
    suggestion_window,
)


def create_transaction(
    amount: str,
    category_id: Optional[str] = None,
    trans_date: date = date(2024, 1, 15),
    reimbursement_status: Optional[ReimbursementStatus] = None,
    reimbursement_type: ReimbursementType = ReimbursementType.WORK,
    exclude_from_totals: bool = False,
) -> Transaction:
    """Helper to create a Transaction for testing."""
    reimbursement = None
    if reimbursement_status is not None:
        reimbursement = Reimbursement(status=reimbursement_status, type=reimbursement_type)
    return Transaction(
        date=trans_date,
        description="Test Transaction",
        amount=Decimal(amount),
        category_id=category_id,
        reimbursement=reimbursement,
        exclude_from_totals=exclude_from_totals,
    )


def create_categories() -> dict[str, Category]:
    """Create a category map with food and transfer subtrees."""
    categories = [
        Category(id="food", name="Food", color="#F59E0B", icon="🍔"),
        Category(id="groceries", name="Groceries", parent_id="food"),
        Category(id="restaurants", name="Restaurants", parent_id="food"),
        Category(id="transport", name="Transport", icon="🚆"),
        Category(id="transfer", name="Transfers"),
        Category(id="savings", name="Savings", parent_id="transfer"),
    ]
    return {cat.id: cat for cat in categories}


def create_budget(
    category_id: str = "food",
    limit: str = "200",
    threshold: str = "80",
    is_active: bool = True,
    budget_id: str = "b1",
) -> Budget:
    """Helper to create a Budget for testing."""
    return Budget(
        id=budget_id,
        category_id=category_id,
        monthly_limit=Decimal(limit),
        alert_threshold=Decimal(threshold),
        is_active=is_active,
        name=f"{category_id} budget",
    )


class TestTopLevelCategory:
    """Tests for get_top_level_category_id function."""

    def test_none_is_uncategorized(self) -> None:
        assert get_top_level_category_id(None, create_categories()) == "uncategorized"

    def test_child_maps_to_parent(self) -> None:
        assert get_top_level_category_id("groceries", create_categories()) == "food"

    def test_unknown_id_is_itself(self) -> None:
        assert get_top_level_category_id("mystery", create_categories()) == "mystery"


class TestCalculateSummary:
    """Tests for calculate_summary function."""

    def test_empty_transactions(self) -> None:
        """Test empty input gives a zeroed summary."""
        summary = calculate_summary([])

        assert summary.total_income == Decimal("0")
        assert summary.total_expenses == Decimal("0")
        assert summary.net_balance == Decimal("0")
        assert summary.pending_reimbursements == Decimal("0")
        assert summary.transaction_count == 0

    def test_income_and_expenses(self) -> None:
        """Test positive amounts are income and negative amounts are expenses."""
        summary = calculate_summary([
            create_transaction("1000.00"),
            create_transaction("-50.25", "groceries"),
            create_transaction("-30.00", "transport"),
        ])

        assert summary.total_income == Decimal("1000.00")
        assert summary.total_expenses == Decimal("80.25")
        assert summary.net_balance == Decimal("919.75")
        assert summary.transaction_count == 3

    def test_pending_reimbursement_reported_separately(self) -> None:
        """Test pending reimbursable expenses are not counted as expenses."""
        summary = calculate_summary([
            create_transaction("-50.00", "groceries"),
            create_transaction("-30.00", reimbursement_status=ReimbursementStatus.PENDING),
        ])

        assert summary.total_expenses == Decimal("50.00")
        assert summary.pending_reimbursements == Decimal("30.00")

    def test_cleared_reimbursement_is_expense(self) -> None:
        """Test cleared reimbursable expenses count as normal expenses."""
        summary = calculate_summary([
            create_transaction("-30.00", reimbursement_status=ReimbursementStatus.CLEARED),
        ])

        assert summary.total_expenses == Decimal("30.00")
        assert summary.pending_reimbursements == Decimal("0")

    def test_excluded_and_transfers_left_out(self) -> None:
        """Test lump-sum and transfer transactions do not affect totals."""
        summary = calculate_summary(
            [
                create_transaction("-50.00", "groceries"),
                create_transaction("-500.00", exclude_from_totals=True),
                create_transaction("-100.00", "savings"),
                create_transaction("100.00", "transfer"),
            ],
            create_categories(),
        )

        assert summary.total_expenses == Decimal("50.00")
        assert summary.total_income == Decimal("0")
        assert summary.transaction_count == 4


class TestCalculateCategorySpending:
    """Tests for calculate_category_spending function."""

    def test_empty_transactions(self) -> None:
        assert calculate_category_spending([], create_categories()) == []

    def test_groups_by_top_level(self) -> None:
        """Test subcategory spending is grouped under its top-level category."""
        result = calculate_category_spending(
            [
                create_transaction("-50.00", "groceries"),
                create_transaction("-30.00", "restaurants"),
                create_transaction("-20.00", "transport"),
                create_transaction("-10.00"),
                create_transaction("500.00", "food"),
            ],
            create_categories(),
        )

        assert [(e.category_id, e.amount) for e in result] == [
            ("food", Decimal("80.00")),
            ("transport", Decimal("20.00")),
            ("uncategorized", Decimal("10.00")),
        ]
        assert result[0].transaction_count == 2
        assert result[0].category_icon == "🍔"
        assert result[0].percentage == Decimal("80.00") / Decimal("110.00") * 100

    def test_uncategorized_display_defaults(self) -> None:
        """Test unknown categories get the default name, color and icon."""
        result = calculate_category_spending([create_transaction("-10.00")], create_categories())

        assert result[0].category_name == "Uncategorized"
        assert result[0].category_color == "#9CA3AF"
        assert result[0].category_icon == "📁"
        assert result[0].percentage == Decimal("100")

    def test_drill_down(self) -> None:
        """Test drill-down groups by subcategory within one parent."""
        result = calculate_category_spending(
            [
                create_transaction("-50.00", "groceries"),
                create_transaction("-30.00", "restaurants"),
                create_transaction("-5.00", "food"),
                create_transaction("-20.00", "transport"),
            ],
            create_categories(),
            parent_id="food",
        )

        assert {e.category_id: e.amount for e in result} == {
            "groceries": Decimal("50.00"),
            "restaurants": Decimal("30.00"),
            "food": Decimal("5.00"),
        }

    def test_splits_counted_per_category(self) -> None:
        """Test each positive split counts toward its own category."""
        txn = create_transaction("-100.00", "groceries")
        txn.is_split = True
        txn.splits = [Split(Decimal("60.00"), "groceries"), Split(Decimal("40.00"), "transport")]

        result = calculate_category_spending([txn], create_categories())

        assert {e.category_id: e.amount for e in result} == {
            "food": Decimal("60.00"),
            "transport": Decimal("40.00"),
        }

    def test_pending_reimbursement_excluded(self) -> None:
        """Test pending reimbursable expenses are not spending."""
        result = calculate_category_spending(
            [create_transaction("-30.00", "groceries", reimbursement_status=ReimbursementStatus.PENDING)],
            create_categories(),
        )
        assert result == []


class TestCalculateTimeline:
    """Tests for calculate_timeline function."""

    def test_zero_filled_days(self) -> None:
        """Test every day in the range is present, ascending."""
        timeline = calculate_timeline(
            [
                create_transaction("-10.00", trans_date=date(2024, 1, 2)),
                create_transaction("100.00", trans_date=date(2024, 1, 2)),
                create_transaction("-99.00", trans_date=date(2024, 1, 5)),
            ],
            date(2024, 1, 1),
            date(2024, 1, 3),
        )

        assert [d.date for d in timeline] == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        assert timeline[0].expenses == Decimal("0")
        assert timeline[1].expenses == Decimal("10.00")
        assert timeline[1].income == Decimal("100.00")
        assert timeline[0].label == "Jan 1"

    def test_day_count_inclusive(self) -> None:
        """Test the range includes both ends."""
        timeline = calculate_timeline([], date(2024, 2, 1), date(2024, 2, 29))
        assert len(timeline) == 29

    def test_single_day(self) -> None:
        assert len(calculate_timeline([], date(2024, 1, 1), date(2024, 1, 1))) == 1

    def test_pending_reimbursement_skipped(self) -> None:
        timeline = calculate_timeline(
            [create_transaction("-30.00", trans_date=date(2024, 1, 1),
                                reimbursement_status=ReimbursementStatus.PENDING)],
            date(2024, 1, 1),
            date(2024, 1, 1),
        )
        assert timeline[0].expenses == Decimal("0")

    def test_start_after_end(self) -> None:
        """Test an inverted range is rejected."""
        with pytest.raises(InvalidInputError):
            calculate_timeline([], date(2024, 1, 2), date(2024, 1, 1))


class TestCalculateSpendingByCategory:
    """Tests for calculate_spending_by_category function."""

    def test_rollup_to_parent(self) -> None:
        """Test subcategory spending is also added to the parent."""
        spending = calculate_spending_by_category(
            [
                create_transaction("-50.00", "groceries"),
                create_transaction("-25.00", "food"),
            ],
            create_categories(),
        )

        assert spending == {"groceries": Decimal("50.00"), "food": Decimal("75.00")}

    def test_without_rollup(self) -> None:
        """Test only directly tagged spending is counted without rollup."""
        spending = calculate_spending_by_category(
            [
                create_transaction("-50.00", "groceries"),
                create_transaction("-25.00", "food"),
            ],
            create_categories(),
            rollup=False,
        )

        assert spending == {"groceries": Decimal("50.00"), "food": Decimal("25.00")}

    def test_uncategorized_and_income_skipped(self) -> None:
        spending = calculate_spending_by_category(
            [create_transaction("-10.00"), create_transaction("20.00", "food")],
            create_categories(),
        )
        assert spending == {}


class TestCalculateBudgetProgress:
    """Tests for calculate_budget_progress function."""

    @pytest.mark.parametrize(
        "spent, expected_status",
        [
            ("160", BudgetStatus.WARNING),
            ("200", BudgetStatus.EXCEEDED),
            ("159.99", BudgetStatus.SAFE),
        ],
    )
    def test_status_boundaries(self, spent: str, expected_status: BudgetStatus) -> None:
        """Test warning at the threshold and exceeded at 100%."""
        progress = calculate_budget_progress([create_budget()], {"food": Decimal(spent)})

        assert progress[0].status is expected_status

    def test_percentage_and_remaining(self) -> None:
        """Test percentage and remaining are computed from the limit."""
        progress = calculate_budget_progress(
            [create_budget()], {"food": Decimal("250")}, create_categories()
        )[0]

        assert progress.percentage == Decimal("125")
        assert progress.remaining == Decimal("-50")
        assert progress.category_name == "Food"

    def test_zero_limit(self) -> None:
        """Test a zero limit gives zero percentage instead of dividing by zero."""
        progress = calculate_budget_progress([create_budget(limit="0")], {"food": Decimal("10")})

        assert progress[0].percentage == Decimal("0")
        assert progress[0].status is BudgetStatus.SAFE

    def test_inactive_budgets_skipped(self) -> None:
        progress = calculate_budget_progress([create_budget(is_active=False)], {})
        assert progress == []

    def test_no_spending(self) -> None:
        progress = calculate_budget_progress([create_budget()], {})
        assert progress[0].spent == Decimal("0")
        assert progress[0].category_name == "Unknown"

    def test_sorted_by_percentage(self) -> None:
        """Test the most-used budget comes first."""
        progress = calculate_budget_progress(
            [
                create_budget("food", budget_id="b1"),
                create_budget("transport", limit="100", budget_id="b2"),
            ],
            {"food": Decimal("20"), "transport": Decimal("90")},
        )

        assert [p.budget_id for p in progress] == ["b2", "b1"]

    def test_budget_status_function(self) -> None:
        assert budget_status(Decimal("100"), Decimal("80")) is BudgetStatus.EXCEEDED
        assert budget_status(Decimal("80"), Decimal("80")) is BudgetStatus.WARNING
        assert budget_status(Decimal("79.99"), Decimal("80")) is BudgetStatus.SAFE


class TestBudgetSuggestions:
    """Tests for budget suggestions."""

    def test_average_over_three_months(self) -> None:
        """Test suggestions are the three-month average rounded half-up."""
        suggestions = calculate_budget_suggestions({
            "food": Decimal("100"),
            "transport": Decimal("100.01"),
            "fees": Decimal("0.05"),
        })

        assert suggestions == {
            "food": Decimal("33.33"),
            "transport": Decimal("33.34"),
            "fees": Decimal("0.02"),
        }

    def test_empty(self) -> None:
        assert calculate_budget_suggestions({}) == {}

    def test_suggestion_window(self) -> None:
        """Test the window covers the previous three full months."""
        assert suggestion_window(date(2024, 3, 15)) == (date(2023, 12, 1), date(2024, 2, 29))


class TestReimbursementSummary:
    """Tests for calculate_reimbursement_summary function."""

    def test_pending_and_cleared_totals(self) -> None:
        """Test totals over pending and cleared reimbursable expenses."""
        pending = [
            create_transaction("-10", reimbursement_status=ReimbursementStatus.PENDING),
            create_transaction(
                "-5",
                reimbursement_status=ReimbursementStatus.PENDING,
                reimbursement_type=ReimbursementType.PERSONAL,
            ),
        ]
        cleared = [create_transaction("-20", reimbursement_status=ReimbursementStatus.CLEARED)]

        summary = calculate_reimbursement_summary(pending, cleared)

        assert summary.pending_total == Decimal("15")
        assert summary.cleared_total == Decimal("20")
        assert summary.pending_count == 2
        assert summary.cleared_count == 1
        assert summary.pending_work_total == Decimal("10")
        assert summary.pending_personal_total == Decimal("5")

    def test_empty(self) -> None:
        summary = calculate_reimbursement_summary([], [])
        assert summary.pending_total == Decimal("0")
        assert summary.cleared_count == 0


class TestMonthlyTotals:
    """Tests for calculate_monthly_totals function."""

    def create_history(self) -> list[Transaction]:
        return [
            create_transaction("-99.00", "food", trans_date=date(2023, 12, 31)),
            create_transaction("-10.00", "groceries", trans_date=date(2024, 1, 10)),
            create_transaction("-20.00", "transport", trans_date=date(2024, 3, 1)),
            create_transaction("-5.555", "groceries", trans_date=date(2024, 3, 31)),
            create_transaction("100.00", trans_date=date(2024, 3, 15)),
        ]

    def test_expenses_per_month(self) -> None:
        """Test zero-filled monthly expense totals, oldest first."""
        totals = calculate_monthly_totals(
            self.create_history(), date(2024, 3, 15), months=3, categories=create_categories()
        )

        assert [t.month_key for t in totals] == ["2024-01", "2024-02", "2024-03"]
        assert [t.amount for t in totals] == [Decimal("10.00"), Decimal("0"), Decimal("25.56")]
        assert totals[0].label == "Jan 2024"
        assert totals[2].transaction_count == 2

    def test_income_direction(self) -> None:
        totals = calculate_monthly_totals(
            self.create_history(), date(2024, 3, 15), months=3, direction="income"
        )
        assert totals[2].amount == Decimal("100.00")

    def test_category_filter(self) -> None:
        """Test filtering by top-level category includes subcategories."""
        totals = calculate_monthly_totals(
            self.create_history(),
            date(2024, 3, 15),
            months=3,
            categories=create_categories(),
            category_id="food",
        )
        assert [t.amount for t in totals] == [Decimal("10.00"), Decimal("0"), Decimal("5.56")]

    def test_invalid_direction(self) -> None:
        with pytest.raises(ValueError, match="direction"):
            calculate_monthly_totals([], date(2024, 3, 15), direction="sideways")
