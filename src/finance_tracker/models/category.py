"""Category, rule, and categorization result data models."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum pattern length to prevent overly complex patterns
MAX_PATTERN_LENGTH = 500

# Patterns that can cause catastrophic backtracking (ReDoS)
DANGEROUS_PATTERN_SIGNATURES = [
    r'(\w+)+',   # Nested quantifiers on word chars
    r'(.*)*',    # Nested quantifiers on any chars
    r'(.+)+',    # Nested quantifiers on one-or-more
    r'([^"]+)+', # Nested quantifiers on negated char class
    r'(\s+)+',   # Nested quantifiers on whitespace
]

# Group with an inner quantifier followed by an outer quantifier: (a+)+, (a+){2,}
_NESTED_QUANTIFIER_PATTERN = re.compile(
    r'\([^)]*[+*?][^)]*\)[+*?]|'
    r'\([^)]*[+*?][^)]*\)\{[0-9,]+\}'
)

DEFAULT_CATEGORY_COLOR = "#9CA3AF"
DEFAULT_CATEGORY_ICON = "📁"


def _is_safe_pattern(pattern: str) -> tuple[bool, str]:
    """Check if regex pattern is safe from ReDoS attacks.

    Args:
        pattern: Regex pattern string to validate.

    Returns:
        Tuple of (is_safe, reason if unsafe).
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        return False, f"Pattern exceeds {MAX_PATTERN_LENGTH} character limit"

    if _NESTED_QUANTIFIER_PATTERN.search(pattern):
        return False, "Pattern contains dangerous nested quantifier"

    for dangerous in DANGEROUS_PATTERN_SIGNATURES:
        if dangerous in pattern:
            return False, "Pattern contains known dangerous signature"

    return True, ""


class MatchType(Enum):
    """How a rule pattern is compared against transaction text."""

    CONTAINS = "contains"  # Case-insensitive substring
    EXACT = "exact"  # Case-insensitive full equality
    REGEX = "regex"  # Case-insensitive regex search


class CategorySource(Enum):
    """Which source assigned a transaction's category."""

    MANUAL = "manual"
    RULE = "rule"
    MERCHANT = "merchant"
    LEARNED = "learned"
    NONE = "none"


@dataclass
class Category:
    """Category node in a user's category tree.

    Attributes:
        id: Unique identifier for this category.
        name: Human-readable (user-editable) category name.
        parent_id: Parent category ID for subcategories, None for roots.
        color: Display color (e.g., "#4A6FA5").
        icon: Display icon (emoji).
        order: Sort order among siblings.
        is_system: Whether this category was created by the default set.
    """

    id: str
    name: str
    parent_id: Optional[str] = None
    color: str = DEFAULT_CATEGORY_COLOR
    icon: str = DEFAULT_CATEGORY_ICON
    order: int = 0
    is_system: bool = False

    @property
    def is_subcategory(self) -> bool:
        """Check if this is a subcategory."""
        return self.parent_id is not None

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Category":
        """Create a Category from a stored document.

        Args:
            data: Dictionary with camelCase document keys.

        Returns:
            A new Category instance.
        """
        parent_id = data.get("parentId")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            parent_id=str(parent_id) if parent_id else None,
            color=str(data.get("color") or DEFAULT_CATEGORY_COLOR),
            icon=str(data.get("icon") or DEFAULT_CATEGORY_ICON),
            order=int(data.get("order", 0)),  # type: ignore[arg-type]
            is_system=bool(data.get("isSystem", False)),
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a stored document."""
        return {
            "id": self.id,
            "name": self.name,
            "parentId": self.parent_id,
            "color": self.color,
            "icon": self.icon,
            "order": self.order,
            "isSystem": self.is_system,
        }

    def __repr__(self) -> str:
        return f"Category(id={self.id!r}, name={self.name!r}, parent={self.parent_id!r})"


@dataclass
class StoredRule:
    """User-owned categorization rule.

    Priority defines a total order among non-learned rules and, separately,
    among learned rules. Rules are matched against the concatenated
    description and counterparty text.

    Attributes:
        id: Unique identifier for this rule.
        pattern: Text (or regex) to look for.
        match_type: How the pattern is compared.
        category_id: Category assigned on match.
        priority: Higher priority is evaluated first.
        is_learned: Rule was inferred from a manual correction.
        is_system: Rule ships with the default rule set.
    """

    id: str
    pattern: str
    category_id: str
    match_type: MatchType = MatchType.CONTAINS
    priority: int = 0
    is_learned: bool = False
    is_system: bool = False

    # Compiled regex for REGEX rules (None when invalid or unsafe)
    _compiled: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Compile the regex pattern once for REGEX rules."""
        if self.match_type is not MatchType.REGEX:
            return

        is_safe, reason = _is_safe_pattern(self.pattern)
        if not is_safe:
            logger.warning(
                f"Rejecting unsafe regex pattern '{self.pattern}' in rule '{self.id}': {reason}"
            )
            return
        try:
            self._compiled = re.compile(self.pattern, re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Invalid regex pattern '{self.pattern}' in rule '{self.id}': {e}")

    def matches(self, text: str) -> bool:
        """Check whether this rule matches the given text.

        Args:
            text: Search text (description and counterparty).

        Returns:
            True on a case-insensitive match according to match_type.
        """
        if self.match_type is MatchType.CONTAINS:
            return self.pattern.casefold() in text.casefold()
        if self.match_type is MatchType.EXACT:
            return self.pattern.casefold() == text.casefold()
        if self.match_type is MatchType.REGEX:
            # Rejected or invalid patterns never match
            return self._compiled is not None and self._compiled.search(text) is not None
        raise ValueError(f"Unsupported match type: {self.match_type!r}")

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "StoredRule":
        """Create a StoredRule from a stored document.

        Args:
            data: Dictionary with camelCase document keys.

        Returns:
            A new StoredRule instance.

        Raises:
            ValueError: If matchType is not a known match type.
        """
        return cls(
            id=str(data["id"]),
            pattern=str(data["pattern"]),
            category_id=str(data["categoryId"]),
            match_type=MatchType(str(data.get("matchType", "contains"))),
            priority=int(data.get("priority", 0)),  # type: ignore[arg-type]
            is_learned=bool(data.get("isLearned", False)),
            is_system=bool(data.get("isSystem", False)),
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a stored document."""
        return {
            "id": self.id,
            "pattern": self.pattern,
            "matchType": self.match_type.value,
            "categoryId": self.category_id,
            "priority": self.priority,
            "isLearned": self.is_learned,
            "isSystem": self.is_system,
        }

    def __repr__(self) -> str:
        return (
            f"StoredRule(id={self.id!r}, pattern={self.pattern!r}, "
            f"category={self.category_id!r}, priority={self.priority})"
        )


@dataclass(frozen=True)
class MerchantMapping:
    """Well-known payee pattern mapped to a category slug.

    Attributes:
        pattern: Upper-case text to look for in the transaction text.
        category_slug: Human-typable category key (e.g., "transport.public").
        confidence: Fixed confidence below 1.0.
    """

    pattern: str
    category_slug: str
    confidence: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence < 1.0:
            raise ValueError(
                f"Merchant confidence must be in [0.0, 1.0), got {self.confidence} "
                f"for pattern {self.pattern!r}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "MerchantMapping":
        """Create a MerchantMapping from a YAML/dict entry."""
        return cls(
            pattern=str(data["pattern"]),
            category_slug=str(data.get("categorySlug", data.get("category_slug", ""))),
            confidence=float(data["confidence"]),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class CategorizationResult:
    """Outcome of running the categorization cascade on one transaction.

    Attributes:
        category_id: Assigned category, or None when nothing matched.
        confidence: Confidence from 0.0 to 1.0.
        source: Which cascade step produced the result.
        matched_pattern: The rule or merchant pattern that matched.
        rule_id: ID of the matching rule for RULE/LEARNED results.
    """

    category_id: Optional[str]
    confidence: float
    source: CategorySource
    matched_pattern: Optional[str] = None
    rule_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")
        if self.source is CategorySource.NONE and (
            self.category_id is not None or self.confidence != 0.0
        ):
            raise ValueError("A 'none' result must have no category and zero confidence")

    @property
    def is_match(self) -> bool:
        """True when a category was assigned."""
        return self.category_id is not None

    @classmethod
    def no_match(cls) -> "CategorizationResult":
        """The terminal result of the cascade when no source matched."""
        return cls(category_id=None, confidence=0.0, source=CategorySource.NONE)

    def to_dict(self) -> dict[str, object]:
        """Serialize for transport."""
        data: dict[str, object] = {
            "categoryId": self.category_id,
            "confidence": self.confidence,
            "source": self.source.value,
        }
        if self.matched_pattern is not None:
            data["matchedPattern"] = self.matched_pattern
        if self.rule_id is not None:
            data["ruleId"] = self.rule_id
        return data
