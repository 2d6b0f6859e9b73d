"""Reimbursement tracking workflows for expense transactions.

An expense marked reimbursable stays pending until it is cleared against an
incoming transfer. Pending reimbursements are left out of spending totals.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from finance_tracker.errors import InvalidInputError
from finance_tracker.models.transaction import (
    Reimbursement,
    ReimbursementStatus,
    ReimbursementType,
    Transaction,
)
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)


def partition_reimbursements(
    transactions: Iterable[Transaction],
) -> tuple[list[Transaction], list[Transaction]]:
    """Split reimbursable expenses into pending and cleared lists.

    Only expenses carrying reimbursement info are considered; every such
    transaction lands in exactly one of the two lists.

    Args:
        transactions: Transactions to partition.

    Returns:
        Tuple of (pending, cleared), each in input order.
    """
    pending: list[Transaction] = []
    cleared: list[Transaction] = []

    for txn in transactions:
        if not txn.is_expense or txn.reimbursement is None:
            continue
        if txn.reimbursement.is_pending:
            pending.append(txn)
        else:
            cleared.append(txn)

    return pending, cleared


def mark_reimbursable(
    txn: Transaction,
    reimbursement_type: ReimbursementType,
    note: Optional[str] = None,
) -> Transaction:
    """Mark an expense as awaiting reimbursement.

    Args:
        txn: Expense transaction (modified in place).
        reimbursement_type: Work or personal.
        note: Optional note.

    Returns:
        The same transaction.

    Raises:
        InvalidInputError: If the transaction is not an expense.
    """
    if not txn.is_expense:
        raise InvalidInputError(
            f"Only expenses can be marked reimbursable (transaction {txn.id} "
            f"has amount {txn.amount})"
        )

    txn.reimbursement = Reimbursement(
        status=ReimbursementStatus.PENDING,
        type=reimbursement_type,
        note=note,
    )
    logger.debug(f"Marked transaction {txn.id} as {reimbursement_type.value} reimbursable")
    return txn


def clear_reimbursements(
    income_txn: Transaction,
    expense_txns: Sequence[Transaction],
    cleared_at: Optional[datetime] = None,
) -> list[Transaction]:
    """Clear pending reimbursements against an incoming payment.

    Each expense is set to cleared and linked to the income transaction. The
    income transaction gets a cleared reimbursement record linked to the first
    expense and noting how many expenses it clears, so it is not counted
    again as pending.

    Args:
        income_txn: Incoming payment (modified in place).
        expense_txns: Pending reimbursable expenses (modified in place).
        cleared_at: Clearing timestamp; now (UTC) when None.

    Returns:
        The cleared expense transactions.

    Raises:
        InvalidInputError: If income_txn is not income, no expenses are
            given, or an expense has no pending reimbursement.
    """
    if not income_txn.is_income:
        raise InvalidInputError(
            f"Reimbursements must be cleared against income (transaction "
            f"{income_txn.id} has amount {income_txn.amount})"
        )
    if not expense_txns:
        raise InvalidInputError("At least one expense is required to clear")

    for txn in expense_txns:
        if not txn.is_pending_reimbursement:
            raise InvalidInputError(
                f"Transaction {txn.id} has no pending reimbursement"
            )

    timestamp = cleared_at or datetime.now(timezone.utc)

    reimbursements = [txn.reimbursement for txn in expense_txns if txn.reimbursement]
    for reimbursement in reimbursements:
        reimbursement.status = ReimbursementStatus.CLEARED
        reimbursement.cleared_at = timestamp
        reimbursement.linked_transaction_id = income_txn.id

    # Type and link follow the first expense
    income_txn.reimbursement = Reimbursement(
        status=ReimbursementStatus.CLEARED,
        type=reimbursements[0].type,
        note=f"Clears {len(expense_txns)} expense(s)",
        cleared_at=timestamp,
        linked_transaction_id=expense_txns[0].id,
    )

    logger.info(
        f"Cleared {len(expense_txns)} reimbursable expenses against "
        f"transaction {income_txn.id}"
    )
    return list(expense_txns)


def unmark_reimbursement(txn: Transaction) -> Transaction:
    """Remove reimbursement tracking from a transaction.

    Args:
        txn: Transaction (modified in place).

    Returns:
        The same transaction.
    """
    if txn.reimbursement is not None:
        logger.debug(f"Removed reimbursement from transaction {txn.id}")
    txn.reimbursement = None
    return txn
