"""First-match rule engine over priority-sorted user rules."""

from typing import Iterable, Optional, Sequence

from finance_tracker.models.category import (
    CategorizationResult,
    CategorySource,
    StoredRule,
)
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

# Explicitly authored and learned rules are both binary matches
RULE_CONFIDENCE = 1.0


def sort_rules(rules: Iterable[StoredRule]) -> list[StoredRule]:
    """Sort rules by descending priority.

    The sort is stable, so rules with equal priority keep their load order.

    Args:
        rules: Rules in load order.

    Returns:
        New list, highest priority first.
    """
    return sorted(rules, key=lambda r: r.priority, reverse=True)


def match_rules(
    text: str,
    rules: Sequence[StoredRule],
    source: Optional[CategorySource] = None,
) -> Optional[CategorizationResult]:
    """Return the result for the first rule matching the text.

    Rules must already be sorted by descending priority; list order is the
    complete tie-break.

    Args:
        text: Search text (description and counterparty).
        rules: Rules sorted by descending priority.
        source: Source to report (RULE or LEARNED). Derived from each rule's
            is_learned flag when omitted.

    Returns:
        CategorizationResult for the first matching rule, or None.
    """
    for rule in rules:
        if rule.matches(text):
            rule_source = source
            if rule_source is None:
                rule_source = CategorySource.LEARNED if rule.is_learned else CategorySource.RULE
            logger.debug(
                f"Rule {rule.id} matched {text[:40]!r}: {rule.category_id} "
                f"(source: {rule_source.value})"
            )
            return CategorizationResult(
                category_id=rule.category_id,
                confidence=RULE_CONFIDENCE,
                source=rule_source,
                matched_pattern=rule.pattern,
                rule_id=rule.id,
            )

    return None
