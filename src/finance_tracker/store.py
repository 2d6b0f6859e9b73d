"""Document store interface consumed by the categorization and aggregation core.

The production store is an external managed document database. The core
only needs the narrow read/commit surface described by TransactionStore;
FileTransactionStore implements it over a single JSON snapshot file for the
CLI and tests.
"""

import json
import os
import tempfile
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional, Protocol, Sequence

from finance_tracker.errors import StoreError
from finance_tracker.models.budget import DEFAULT_ALERT_THRESHOLD, Budget
from finance_tracker.models.category import Category, CategorySource, StoredRule
from finance_tracker.models.transaction import Transaction
from finance_tracker.utils.date_utils import is_date_in_range
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TransactionUpdate:
    """Field changes for one transaction within an atomic write batch."""

    transaction_id: str
    fields: dict[str, object] = field(default_factory=dict)


class TransactionStore(Protocol):
    """Read/commit surface of the document store for one user."""

    def load_rules(self) -> list[StoredRule]:
        """Return all rules ordered by descending priority."""
        ...

    def load_categories(self) -> list[Category]:
        """Return all categories ordered by display order."""
        ...

    def load_budgets(self) -> list[Budget]:
        """Return all budgets."""
        ...

    def load_transactions(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Transaction]:
        """Return transactions in [start, end], newest first."""
        ...

    def load_recategorizable(self) -> list[Transaction]:
        """Return every transaction not categorized manually."""
        ...

    def commit_updates(self, updates: Sequence[TransactionUpdate]) -> None:
        """Apply updates atomically: all of them or none."""
        ...


class FileTransactionStore:
    """TransactionStore over a JSON document snapshot.

    The file holds top-level ``categories``, ``rules``, ``budgets`` and
    ``transactions`` lists of camelCase documents. Each commit rewrites the
    whole file through a temporary file so that a failed write leaves the
    previous state intact.
    """

    def __init__(
        self,
        path: Path,
        default_alert_threshold: Decimal = DEFAULT_ALERT_THRESHOLD,
    ):
        """Initialize the store.

        Args:
            path: Path to the JSON snapshot.
            default_alert_threshold: Used for budgets without a threshold.
        """
        self.path = path
        self.default_alert_threshold = default_alert_threshold
        self._data: Optional[dict[str, list[dict[str, object]]]] = None

    def _load(self) -> dict[str, list[dict[str, object]]]:
        if self._data is None:
            if not self.path.exists():
                raise StoreError(f"Data file not found: {self.path}")
            try:
                with open(self.path, encoding="utf-8") as f:
                    raw = json.load(f)
            except json.JSONDecodeError as e:
                raise StoreError(f"Invalid JSON in {self.path}: {e}") from e
            if not isinstance(raw, dict):
                raise StoreError(f"Expected a JSON object in {self.path}")
            for key in ("categories", "rules", "budgets", "transactions"):
                value = raw.setdefault(key, [])
                if not isinstance(value, list):
                    raise StoreError(f"'{key}' must be a list in {self.path}")
            # Transactions are addressed by id when committing updates
            for doc in raw["transactions"]:
                if isinstance(doc, dict) and not doc.get("id"):
                    doc["id"] = str(uuid.uuid4())
            self._data = raw
            logger.debug(
                f"Loaded {len(raw['transactions'])} transactions and "
                f"{len(raw['categories'])} categories from {self.path}"
            )
        return self._data

    def load_rules(self) -> list[StoredRule]:
        try:
            rules = [StoredRule.from_dict(doc) for doc in self._load()["rules"]]
        except (KeyError, ValueError) as e:
            raise StoreError(f"Invalid rule document in {self.path}: {e}") from e
        # Stable sort keeps load order among equal priorities
        return sorted(rules, key=lambda r: r.priority, reverse=True)

    def load_categories(self) -> list[Category]:
        try:
            categories = [Category.from_dict(doc) for doc in self._load()["categories"]]
        except (KeyError, ValueError) as e:
            raise StoreError(f"Invalid category document in {self.path}: {e}") from e
        return sorted(categories, key=lambda c: c.order)

    def load_budgets(self) -> list[Budget]:
        try:
            return [
                Budget.from_dict(doc, self.default_alert_threshold)
                for doc in self._load()["budgets"]
            ]
        except (KeyError, ValueError) as e:
            raise StoreError(f"Invalid budget document in {self.path}: {e}") from e

    def _all_transactions(self) -> list[Transaction]:
        try:
            return [Transaction.from_dict(doc) for doc in self._load()["transactions"]]
        except (KeyError, ValueError) as e:
            raise StoreError(f"Invalid transaction document in {self.path}: {e}") from e

    def load_transactions(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Transaction]:
        transactions = [
            txn for txn in self._all_transactions() if is_date_in_range(txn.date, start, end)
        ]
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    def load_recategorizable(self) -> list[Transaction]:
        return [
            txn for txn in self._all_transactions()
            if txn.category_source is not CategorySource.MANUAL
        ]

    def save_transactions(self, transactions: Sequence[Transaction]) -> None:
        """Replace the stored transactions with the given list.

        Each transaction's fields are merged into its stored document, so
        document keys the model does not carry (import metadata and the
        like) are kept. Stored documents missing from the list are dropped.
        """
        data = self._load()
        docs_by_id = {str(doc.get("id")): doc for doc in data["transactions"]}

        new_data = dict(data)
        new_data["transactions"] = [
            {**docs_by_id.get(txn.id, {}), **txn.to_dict()} for txn in transactions
        ]
        self._write(new_data)

    def commit_updates(self, updates: Sequence[TransactionUpdate]) -> None:
        data = self._load()
        docs_by_id = {str(doc.get("id")): doc for doc in data["transactions"]}

        missing = [u.transaction_id for u in updates if u.transaction_id not in docs_by_id]
        if missing:
            raise StoreError(f"Cannot update unknown transactions: {', '.join(missing)}")

        # Apply to copies first so a failed write leaves the cache untouched
        updated_docs = {u.transaction_id: {**docs_by_id[u.transaction_id]} for u in updates}
        for update in updates:
            updated_docs[update.transaction_id].update(update.fields)

        new_data = dict(data)
        new_data["transactions"] = [
            updated_docs.get(str(doc.get("id")), doc) for doc in data["transactions"]
        ]
        self._write(new_data)
        logger.debug(f"Committed {len(updates)} transaction updates to {self.path}")

    def _write(self, data: dict[str, list[dict[str, object]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Failed to write {self.path}: {e}") from e
        self._data = data


def category_map(categories: Sequence[Category]) -> dict[str, Category]:
    """Index categories by id, keeping the given order."""
    return {cat.id: cat for cat in categories}
