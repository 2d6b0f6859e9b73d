"""Transaction categorizer applying the rule / merchant / learned cascade."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from finance_tracker.errors import CategorizerNotInitializedError
from finance_tracker.models.category import (
    CategorizationResult,
    Category,
    CategorySource,
    StoredRule,
)
from finance_tracker.models.transaction import Transaction
from finance_tracker.processing.merchant_database import DEFAULT_DATABASE, MerchantDatabase
from finance_tracker.processing.rule_engine import match_rules, sort_rules
from finance_tracker.processing.slug_resolver import SlugResolver
from finance_tracker.utils.logging_config import get_logger

if TYPE_CHECKING:
    from finance_tracker.store import TransactionStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class CategorizationSnapshot:
    """Immutable state needed to categorize transactions for one user.

    Built once per request by build_snapshot(); a snapshot is always fully
    initialized.

    Attributes:
        user_rules: Non-learned rules, highest priority first.
        learned_rules: Learned rules, highest priority first.
        categories: The user's categories.
        resolver: Slug resolver derived from the categories.
        merchants: Merchant table used for the second cascade step.
    """

    user_rules: tuple[StoredRule, ...]
    learned_rules: tuple[StoredRule, ...]
    categories: tuple[Category, ...]
    resolver: SlugResolver
    merchants: MerchantDatabase


def build_snapshot(
    rules: Iterable[StoredRule],
    categories: Iterable[Category],
    merchants: Optional[MerchantDatabase] = None,
) -> CategorizationSnapshot:
    """Build a categorization snapshot.

    Args:
        rules: All of the user's rules (any order; sorted here, stably).
        categories: All of the user's categories.
        merchants: Merchant table; the shipped table when None.

    Returns:
        CategorizationSnapshot ready for categorize().
    """
    sorted_rules = sort_rules(rules)
    category_tuple = tuple(categories)
    return CategorizationSnapshot(
        user_rules=tuple(r for r in sorted_rules if not r.is_learned),
        learned_rules=tuple(r for r in sorted_rules if r.is_learned),
        categories=category_tuple,
        resolver=SlugResolver.from_categories(category_tuple),
        merchants=merchants if merchants is not None else DEFAULT_DATABASE,
    )


def build_search_text(description: Optional[str], counterparty: Optional[str]) -> str:
    """Join description and counterparty, skipping empty parts."""
    return " ".join(part for part in (description, counterparty) if part)


def categorize(
    snapshot: CategorizationSnapshot,
    description: Optional[str],
    counterparty: Optional[str] = None,
) -> CategorizationResult:
    """Categorize one transaction's text.

    Applies (in order of priority):
    1. User-defined rules
    2. Merchant database (only if its slug resolves to a user category)
    3. Learned rules
    4. No match

    Args:
        snapshot: Categorization state for the user.
        description: Transaction description.
        counterparty: Counterparty name, if any.

    Returns:
        CategorizationResult; source NONE when nothing matched.
    """
    search_text = build_search_text(description, counterparty)

    user_match = match_rules(search_text, snapshot.user_rules, CategorySource.RULE)
    if user_match:
        return user_match

    merchant = snapshot.merchants.match(search_text)
    if merchant:
        category_id = snapshot.resolver.resolve(merchant.category_slug)
        if category_id:
            logger.debug(
                f"Merchant {merchant.pattern!r} matched {search_text[:40]!r}: "
                f"{merchant.category_slug} -> {category_id}"
            )
            return CategorizationResult(
                category_id=category_id,
                confidence=merchant.confidence,
                source=CategorySource.MERCHANT,
                matched_pattern=merchant.pattern,
            )
        logger.debug(
            f"Merchant {merchant.pattern!r} matched but slug "
            f"{merchant.category_slug!r} resolved to no category"
        )

    learned_match = match_rules(search_text, snapshot.learned_rules, CategorySource.LEARNED)
    if learned_match:
        return learned_match

    return CategorizationResult.no_match()


def categorize_transaction(snapshot: CategorizationSnapshot, txn: Transaction) -> bool:
    """Categorize a transaction in place, leaving manual categories alone.

    Args:
        snapshot: Categorization state for the user.
        txn: Transaction to categorize (modified in place).

    Returns:
        True if the transaction's categorization changed.
    """
    if txn.is_manually_categorized:
        return False
    result = categorize(snapshot, txn.description, txn.counterparty)
    return txn.apply_categorization(result)


class Categorizer:
    """Request-scoped categorizer loading its state from a store.

    initialize() must be called once before categorize(); it loads the
    user's rules and categories and builds the snapshot.
    """

    def __init__(
        self,
        store: "TransactionStore",
        merchants: Optional[MerchantDatabase] = None,
    ):
        """Initialize categorizer.

        Args:
            store: Store to load rules and categories from.
            merchants: Merchant table; the shipped table when None.
        """
        self.store = store
        self.merchants = merchants
        self._snapshot: Optional[CategorizationSnapshot] = None

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> CategorizationSnapshot:
        """The loaded snapshot.

        Raises:
            CategorizerNotInitializedError: If initialize() has not run.
        """
        if self._snapshot is None:
            raise CategorizerNotInitializedError(
                "Categorizer not initialized. Call initialize() first."
            )
        return self._snapshot

    def initialize(self) -> None:
        """Load rules and categories and build the slug map.

        A second call is a no-op.
        """
        if self._snapshot is not None:
            return

        rules = self.store.load_rules()
        categories = self.store.load_categories()
        self._snapshot = build_snapshot(rules, categories, self.merchants)

        logger.info(
            f"Categorizer initialized with {len(self._snapshot.user_rules)} user rules, "
            f"{len(self._snapshot.learned_rules)} learned rules, "
            f"{len(categories)} categories"
        )

    def categorize(
        self,
        description: Optional[str],
        counterparty: Optional[str] = None,
    ) -> CategorizationResult:
        """Categorize one transaction's text.

        Raises:
            CategorizerNotInitializedError: If initialize() has not run.
        """
        return categorize(self.snapshot, description, counterparty)

    def categorize_all(self, transactions: list[Transaction]) -> list[Transaction]:
        """Categorize a list of transactions in place.

        Manually categorized transactions are left untouched.

        Args:
            transactions: Transactions to categorize.

        Returns:
            Same list with categories assigned.
        """
        snapshot = self.snapshot
        categorized_count = 0
        uncategorized_count = 0

        for txn in transactions:
            categorize_transaction(snapshot, txn)
            if txn.category_id is None:
                uncategorized_count += 1
            else:
                categorized_count += 1

        logger.info(
            f"Categorized {categorized_count} transactions, "
            f"{uncategorized_count} uncategorized"
        )

        return transactions
