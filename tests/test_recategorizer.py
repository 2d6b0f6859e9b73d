"""Tests for bulk recategorization."""

import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from finance_tracker.errors import StoreError
from finance_tracker.models.category import (
    CategorizationResult,
    Category,
    CategorySource,
    StoredRule,
)
from finance_tracker.models.transaction import Transaction
from finance_tracker.processing.categorizer import Categorizer
from finance_tracker.processing.merchant_database import MerchantDatabase
from finance_tracker.processing.recategorizer import recategorize_transactions
from finance_tracker.store import FileTransactionStore


def create_transaction(
    txn_id: str,
    description: str,
    category_id: str | None = None,
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        id=txn_id,
        date=date(2024, 1, 15),
        description=description,
        amount=Decimal("-10.00"),
        category_id=category_id,
    )


def create_store(transactions: list[Transaction]) -> MagicMock:
    """Mock store with one 'shop' rule pointing at groceries."""
    store = MagicMock()
    store.load_rules.return_value = [
        StoredRule(id="r1", pattern="shop", category_id="groceries")
    ]
    store.load_categories.return_value = [Category(id="groceries", name="Groceries")]
    store.load_recategorizable.return_value = transactions
    return store


class TestRecategorizeWithFileStore:
    """End-to-end recategorization against a JSON snapshot."""

    @pytest.fixture
    def data_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "finance.json"
        path.write_text(
            json.dumps({
                "categories": [
                    {"id": "groceries", "name": "Groceries"},
                    {"id": "fuel", "name": "Fuel"},
                ],
                "rules": [
                    {"id": "r1", "pattern": "albert heijn", "categoryId": "groceries", "priority": 5},
                    {"id": "r2", "pattern": "shell", "categoryId": "fuel"},
                ],
                "transactions": [
                    {"id": "t1", "date": "2024-01-02", "description": "ALBERT HEIJN 12",
                     "amount": -20.5},
                    {"id": "t2", "date": "2024-01-03", "description": "SHELL 99",
                     "amount": -40, "categoryId": "fuel", "categorySource": "rule",
                     "categoryConfidence": 1.0},
                    {"id": "t3", "date": "2024-01-04", "description": "ALBERT HEIJN 7",
                     "amount": -3, "categoryId": "fuel", "categorySource": "manual",
                     "categoryConfidence": 1.0},
                    {"id": "t4", "date": "2024-01-05", "description": "LOCAL BAKERY",
                     "amount": -2, "categoryId": "groceries", "categorySource": "rule"},
                ],
            }),
            encoding="utf-8",
        )
        return path

    def test_updates_changed_transactions(self, data_file: Path) -> None:
        """Test only non-manual transactions with a new category are written."""
        store = FileTransactionStore(data_file)
        categorizer = Categorizer(store, MerchantDatabase([]))

        result = recategorize_transactions(store, categorizer)

        assert result.processed == 3
        assert result.updated == 1
        assert result.skipped == 2
        assert result.errors == []
        assert result.batches_committed == 1

        saved = {t["id"]: t for t in json.loads(data_file.read_text())["transactions"]}
        assert saved["t1"]["categoryId"] == "groceries"
        assert saved["t1"]["categorySource"] == "rule"
        assert saved["t1"]["categoryConfidence"] == 1.0
        # Manual category untouched
        assert saved["t3"]["categoryId"] == "fuel"
        # No match never clears an existing category
        assert saved["t4"]["categoryId"] == "groceries"

    def test_second_run_is_noop(self, data_file: Path) -> None:
        """Test a repeated run finds nothing left to change."""
        store = FileTransactionStore(data_file)
        recategorize_transactions(store, Categorizer(store, MerchantDatabase([])))

        result = recategorize_transactions(store, Categorizer(store, MerchantDatabase([])))

        assert result.updated == 0
        assert result.batches_committed == 0


class TestRecategorizeBatches:
    """Tests for batching and failure handling."""

    def test_commits_per_batch(self) -> None:
        """Test every batch with updates is committed separately."""
        store = create_store([create_transaction(f"t{i}", f"SHOP {i}") for i in range(5)])
        categorizer = Categorizer(store, MerchantDatabase([]))

        result = recategorize_transactions(store, categorizer, batch_size=2)

        assert store.commit_updates.call_count == 3
        assert result.updated == 5
        assert result.batches_committed == 3
        first_batch = store.commit_updates.call_args_list[0].args[0]
        assert [u.transaction_id for u in first_batch] == ["t0", "t1"]
        assert first_batch[0].fields == {
            "categoryId": "groceries",
            "categorySource": "rule",
            "categoryConfidence": 1.0,
        }

    def test_batch_without_updates_not_committed(self) -> None:
        """Test batches with nothing to change do not touch the store."""
        store = create_store([
            create_transaction("t1", "SHOP 1", category_id="groceries"),
            create_transaction("t2", "BAKERY"),
        ])

        result = recategorize_transactions(store, Categorizer(store, MerchantDatabase([])))

        store.commit_updates.assert_not_called()
        assert result.skipped == 2
        assert result.updated == 0

    def test_commit_failure_propagates(self) -> None:
        """Test a failed commit aborts the run after earlier batches committed."""
        store = create_store([create_transaction(f"t{i}", f"SHOP {i}") for i in range(6)])
        store.commit_updates.side_effect = [None, StoreError("write failed"), None]

        with pytest.raises(StoreError, match="write failed"):
            recategorize_transactions(store, Categorizer(store, MerchantDatabase([])), batch_size=2)

        assert store.commit_updates.call_count == 2

    def test_per_transaction_errors_collected(self) -> None:
        """Test one failing transaction does not stop the batch."""
        store = create_store([
            create_transaction("t1", "BROKEN"),
            create_transaction("t2", "SHOP 2"),
        ])
        categorizer = MagicMock()
        categorizer.categorize.side_effect = [
            RuntimeError("bad text"),
            CategorizationResult("groceries", 1.0, CategorySource.RULE),
        ]

        result = recategorize_transactions(store, categorizer)

        categorizer.initialize.assert_called_once()
        assert result.processed == 2
        assert result.updated == 1
        assert len(result.errors) == 1
        assert "t1" in result.errors[0]
        assert "bad text" in result.errors[0]

    def test_time_limit_stops_new_batches(self) -> None:
        """Test no batch starts once the time limit has passed."""
        store = create_store([create_transaction("t1", "SHOP 1")])

        result = recategorize_transactions(
            store, Categorizer(store, MerchantDatabase([])), max_seconds=0
        )

        assert result.timed_out
        assert result.processed == 0
        store.commit_updates.assert_not_called()

    def test_empty_store(self) -> None:
        store = create_store([])

        result = recategorize_transactions(store, Categorizer(store, MerchantDatabase([])))

        assert result.to_dict() == {"processed": 0, "updated": 0, "skipped": 0, "errors": []}

    def test_invalid_batch_size(self) -> None:
        store = create_store([])

        with pytest.raises(ValueError, match="batch_size"):
            recategorize_transactions(store, Categorizer(store), batch_size=0)
