"""Bulk recategorization of stored transactions."""

from dataclasses import dataclass, field
from typing import Optional

from finance_tracker.processing.categorizer import Categorizer
from finance_tracker.store import TransactionStore, TransactionUpdate
from finance_tracker.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

BATCH_SIZE = 500


@dataclass
class RecategorizeResult:
    """Outcome of a bulk recategorization run.

    Attributes:
        processed: Transactions run through the cascade.
        updated: Transactions whose category changed and was committed.
        skipped: Transactions left unchanged (no match or same category).
        errors: One message per transaction that failed to categorize.
        batches_committed: Batches written to the store.
        timed_out: Whether remaining batches were abandoned on the time limit.
    """

    processed: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    batches_committed: int = 0
    timed_out: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


def recategorize_transactions(
    store: TransactionStore,
    categorizer: Categorizer,
    batch_size: int = BATCH_SIZE,
    max_seconds: Optional[float] = None,
) -> RecategorizeResult:
    """Re-run the categorization cascade over all non-manual transactions.

    Transactions are processed in batches of batch_size. A transaction is
    updated only when the cascade finds a category that differs from the
    stored one, so a transaction is never un-categorized. Each batch with
    updates is committed atomically; a commit failure propagates and leaves
    earlier batches committed.

    Args:
        store: Store to read from and commit to.
        categorizer: Categorizer for the same user (initialized if needed).
        batch_size: Transactions per committed batch.
        max_seconds: Stop starting new batches after this many seconds.

    Returns:
        RecategorizeResult with counts and per-transaction errors.

    Raises:
        ValueError: If batch_size is not positive.
        StoreError: If a batch commit fails.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    categorizer.initialize()
    transactions = store.load_recategorizable()
    result = RecategorizeResult()
    with LogContext(logger, "recategorize", transactions=len(transactions)) as log_ctx:
        for batch_start in range(0, len(transactions), batch_size):
            if max_seconds is not None and log_ctx.elapsed >= max_seconds:
                remaining = len(transactions) - batch_start
                logger.warning(
                    f"Time limit of {max_seconds}s reached, "
                    f"skipping {remaining} remaining transactions"
                )
                result.timed_out = True
                break

            batch = transactions[batch_start:batch_start + batch_size]
            updates: list[TransactionUpdate] = []

            for txn in batch:
                result.processed += 1
                try:
                    categorization = categorizer.categorize(txn.description, txn.counterparty)
                except Exception as e:
                    logger.warning(f"Failed to categorize transaction {txn.id}: {e}")
                    result.errors.append(f"Transaction {txn.id}: {e}")
                    continue

                if (
                    categorization.category_id is not None
                    and categorization.category_id != txn.category_id
                ):
                    updates.append(
                        TransactionUpdate(
                            transaction_id=txn.id,
                            fields={
                                "categoryId": categorization.category_id,
                                "categorySource": categorization.source.value,
                                "categoryConfidence": categorization.confidence,
                            },
                        )
                    )
                else:
                    result.skipped += 1

            if updates:
                store.commit_updates(updates)
                result.updated += len(updates)
                result.batches_committed += 1
                logger.info(
                    f"Committed batch {batch_start // batch_size + 1}: "
                    f"{len(updates)} of {len(batch)} transactions updated"
                )

    logger.info(
        f"Recategorization complete: {result.processed} processed, "
        f"{result.updated} updated, {result.skipped} skipped, "
        f"{len(result.errors)} errors"
    )
    return result
