"""Transaction data models for the finance tracker."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from finance_tracker.models.category import CategorizationResult, CategorySource
from finance_tracker.utils.date_utils import parse_date
from finance_tracker.utils.decimal_utils import to_decimal


class ReimbursementStatus(Enum):
    """Lifecycle state of a reimbursable expense."""

    PENDING = "pending"
    CLEARED = "cleared"


class ReimbursementType(Enum):
    """Who is expected to pay a reimbursable expense back."""

    WORK = "work"
    PERSONAL = "personal"


@dataclass
class Reimbursement:
    """Reimbursement tracking embedded on an expense transaction.

    Attributes:
        status: Pending until matched against incoming funds.
        type: Work or personal reimbursement.
        note: Free-text note.
        cleared_at: When the reimbursement was cleared.
        linked_transaction_id: Income transaction that cleared this expense.
    """

    status: ReimbursementStatus
    type: ReimbursementType
    note: Optional[str] = None
    cleared_at: Optional[datetime] = None
    linked_transaction_id: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status is ReimbursementStatus.PENDING

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Reimbursement":
        """Create from a stored sub-document.

        Raises:
            ValueError: If status or type is not a known value.
        """
        cleared_at = data.get("clearedAt")
        if isinstance(cleared_at, str):
            cleared_at = datetime.fromisoformat(cleared_at.replace("Z", "+00:00"))
        linked = data.get("linkedTransactionId")
        return cls(
            status=ReimbursementStatus(str(data["status"])),
            type=ReimbursementType(str(data["type"])),
            note=str(data["note"]) if data.get("note") is not None else None,
            cleared_at=cleared_at if isinstance(cleared_at, datetime) else None,
            linked_transaction_id=str(linked) if linked else None,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a stored sub-document."""
        return {
            "status": self.status.value,
            "type": self.type.value,
            "note": self.note,
            "clearedAt": self.cleared_at.isoformat() if self.cleared_at else None,
            "linkedTransactionId": self.linked_transaction_id,
        }


@dataclass
class Split:
    """One part of a split transaction.

    Split amounts are stored positive regardless of the parent's sign.
    """

    amount: Decimal
    category_id: str
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Split":
        return cls(
            amount=to_decimal(data["amount"], "split amount"),
            category_id=str(data.get("categoryId") or "uncategorized"),
            note=str(data["note"]) if data.get("note") is not None else None,
        )

    def to_dict(self) -> dict[str, object]:
        return {"amount": float(self.amount), "categoryId": self.category_id, "note": self.note}


@dataclass
class Transaction:
    """A single bank-ledger entry owned by one user.

    Attributes:
        date: Booking date.
        description: Bank description text.
        amount: Signed amount (negative=expense, positive=income).
        id: Unique identifier.
        counterparty: Counterparty name, if the bank supplied one.
        category_id: Assigned category ID (None if uncategorized).
        category_source: How the category was assigned.
        category_confidence: Confidence score from 0.0 to 1.0.
        is_split: Whether the amount is divided over several categories.
        splits: Split parts when is_split is set.
        reimbursement: Reimbursement tracking (expenses only).
        currency: ISO currency code.
        exclude_from_totals: Lump-sum entries (e.g., a credit-card statement
            debit that is broken down elsewhere) are left out of totals.
        external_id: Bank-side identifier.
        bank_account_id: Source bank account.
    """

    date: date
    description: str
    amount: Decimal
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    counterparty: Optional[str] = None

    # Categorization
    category_id: Optional[str] = None
    category_source: CategorySource = CategorySource.NONE
    category_confidence: float = 0.0

    # Splits and reimbursements
    is_split: bool = False
    splits: list[Split] = field(default_factory=list)
    reimbursement: Optional[Reimbursement] = None

    currency: str = "EUR"
    exclude_from_totals: bool = False
    external_id: Optional[str] = None
    bank_account_id: Optional[str] = None

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_pending_reimbursement(self) -> bool:
        """True for transactions whose reimbursement is still pending."""
        return self.reimbursement is not None and self.reimbursement.is_pending

    @property
    def is_manually_categorized(self) -> bool:
        return self.category_source is CategorySource.MANUAL

    def apply_categorization(self, result: CategorizationResult) -> bool:
        """Apply a cascade result to this transaction.

        Args:
            result: Result of the categorization cascade.

        Returns:
            True if any categorization field changed.
        """
        changed = (
            self.category_id != result.category_id
            or self.category_source is not result.source
            or self.category_confidence != result.confidence
        )
        self.category_id = result.category_id
        self.category_source = result.source
        self.category_confidence = result.confidence
        return changed

    def assign_manual_category(self, category_id: str) -> None:
        """Assign a category chosen by the user.

        Manual categories are never overwritten by the cascade.
        """
        self.category_id = category_id
        self.category_source = CategorySource.MANUAL
        self.category_confidence = 1.0

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Transaction":
        """Create a Transaction from a stored document.

        Args:
            data: Dictionary with camelCase document keys.

        Returns:
            A new Transaction instance.

        Raises:
            KeyError: If a required field (date, amount) is missing.
            ValueError: If a field has an invalid value.
        """
        reimbursement_data = data.get("reimbursement")
        splits_data = data.get("splits") or []
        counterparty = data.get("counterparty")
        category_id = data.get("categoryId")

        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            date=parse_date(data["date"]),
            description=str(data.get("description") or ""),
            amount=to_decimal(data["amount"]),
            counterparty=str(counterparty) if counterparty else None,
            category_id=str(category_id) if category_id else None,
            category_source=CategorySource(str(data.get("categorySource") or "none")),
            category_confidence=float(data.get("categoryConfidence") or 0.0),  # type: ignore[arg-type]
            is_split=bool(data.get("isSplit", False)),
            splits=[Split.from_dict(s) for s in splits_data],  # type: ignore[union-attr]
            reimbursement=(
                Reimbursement.from_dict(reimbursement_data)  # type: ignore[arg-type]
                if reimbursement_data
                else None
            ),
            currency=str(data.get("currency") or "EUR"),
            exclude_from_totals=bool(data.get("excludeFromTotals", False)),
            external_id=str(data["externalId"]) if data.get("externalId") else None,
            bank_account_id=str(data["bankAccountId"]) if data.get("bankAccountId") else None,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a stored document."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": float(self.amount),
            "counterparty": self.counterparty,
            "categoryId": self.category_id,
            "categorySource": self.category_source.value,
            "categoryConfidence": self.category_confidence,
            "isSplit": self.is_split,
            "splits": [s.to_dict() for s in self.splits] if self.splits else None,
            "reimbursement": self.reimbursement.to_dict() if self.reimbursement else None,
            "currency": self.currency,
            "excludeFromTotals": self.exclude_from_totals,
            "externalId": self.external_id,
            "bankAccountId": self.bank_account_id,
        }

    def __repr__(self) -> str:
        return (
            f"Transaction(date={self.date}, "
            f"description={self.description[:30]!r}, "
            f"amount={self.amount}, "
            f"category={self.category_id!r})"
        )
