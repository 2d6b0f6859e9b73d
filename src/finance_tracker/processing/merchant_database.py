"""Static database of well-known Dutch payees mapped to category slugs.

Slugs are resolved to a user's actual category ids at categorization time
(see slug_resolver). The table is read-only data: it is loaded once and
passed by reference, so tests and deployments can inject their own table.
"""

from pathlib import Path
from typing import Iterable, Optional

import yaml

from finance_tracker.models.category import MerchantMapping
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)


DEFAULT_MERCHANTS: tuple[MerchantMapping, ...] = (
    # Groceries
    MerchantMapping("ALBERT HEIJN", "groceries", 0.95),
    MerchantMapping("JUMBO", "groceries", 0.95),
    MerchantMapping("LIDL", "groceries", 0.95),
    MerchantMapping("ALDI", "groceries", 0.95),
    MerchantMapping("PLUS", "groceries", 0.9),
    MerchantMapping("DIRK", "groceries", 0.95),
    MerchantMapping("COOP", "groceries", 0.9),

    # Transport - public
    MerchantMapping("NS ", "transport.public", 0.95),
    MerchantMapping("GVB", "transport.public", 0.95),
    MerchantMapping("RET", "transport.public", 0.95),
    MerchantMapping("HTM", "transport.public", 0.95),
    MerchantMapping("OV-CHIPKAART", "transport.public", 0.9),

    # Transport - fuel
    MerchantMapping("SHELL", "transport.fuel", 0.95),
    MerchantMapping("BP ", "transport.fuel", 0.95),
    MerchantMapping("ESSO", "transport.fuel", 0.95),
    MerchantMapping("TINQ", "transport.fuel", 0.95),
    MerchantMapping("TANGO", "transport.fuel", 0.95),

    # Shopping
    MerchantMapping("BOL.COM", "shopping.general", 0.95),
    MerchantMapping("HEMA", "shopping.general", 0.9),
    MerchantMapping("IKEA", "shopping.home", 0.95),
    MerchantMapping("ACTION", "shopping.general", 0.9),
    MerchantMapping("COOLBLUE", "shopping.electronics", 0.95),
    MerchantMapping("MEDIAMARKT", "shopping.electronics", 0.95),

    # Food & drink
    MerchantMapping("THUISBEZORGD", "food.restaurants", 0.95),
    MerchantMapping("UBER EATS", "food.restaurants", 0.95),
    MerchantMapping("DELIVEROO", "food.restaurants", 0.95),
    MerchantMapping("MCDONALDS", "food.restaurants", 0.9),
    MerchantMapping("STARBUCKS", "food.coffee", 0.95),

    # Health
    MerchantMapping("KRUIDVAT", "health.pharmacy", 0.95),
    MerchantMapping("ETOS", "health.pharmacy", 0.95),
    MerchantMapping("APOTHEEK", "health.pharmacy", 0.9),

    # Entertainment
    MerchantMapping("NETFLIX", "entertainment", 0.95),
    MerchantMapping("SPOTIFY", "entertainment", 0.95),
    MerchantMapping("PATHE", "entertainment", 0.95),

    # Utilities
    MerchantMapping("VATTENFALL", "housing.utilities", 0.95),
    MerchantMapping("ENECO", "housing.utilities", 0.95),
    MerchantMapping("ESSENT", "housing.utilities", 0.95),
    MerchantMapping("KPN", "housing.utilities", 0.9),
    MerchantMapping("VODAFONE", "housing.utilities", 0.9),
    MerchantMapping("T-MOBILE", "housing.utilities", 0.9),
    MerchantMapping("ZIGGO", "housing.utilities", 0.95),
)


class MerchantDatabase:
    """Read-only lookup table of payee patterns.

    Matching is contains-style and case-insensitive; the first mapping in
    table order that occurs in the text wins.
    """

    def __init__(self, mappings: Iterable[MerchantMapping] = DEFAULT_MERCHANTS):
        """Initialize with a fixed table.

        Args:
            mappings: Merchant mappings in match order.
        """
        self._mappings = tuple(mappings)
        # Upper-cased once; patterns are compared against upper-cased text
        self._patterns = tuple(m.pattern.upper() for m in self._mappings)

    @property
    def mappings(self) -> tuple[MerchantMapping, ...]:
        return self._mappings

    def __len__(self) -> int:
        return len(self._mappings)

    def match(self, text: str) -> Optional[MerchantMapping]:
        """Find the first merchant whose pattern occurs in the text.

        Args:
            text: Search text (description and counterparty).

        Returns:
            The matching MerchantMapping, or None.
        """
        upper_text = text.upper()
        for pattern, mapping in zip(self._patterns, self._mappings):
            if pattern in upper_text:
                return mapping
        return None


DEFAULT_DATABASE = MerchantDatabase()


def match_merchant(
    text: str,
    database: Optional[MerchantDatabase] = None,
) -> Optional[MerchantMapping]:
    """Match text against a merchant database (the shipped table by default).

    Args:
        text: Search text.
        database: Table to search; DEFAULT_DATABASE when None.

    Returns:
        First matching MerchantMapping, or None.
    """
    if database is None:
        database = DEFAULT_DATABASE
    return database.match(text)


def load_merchant_database(path: Path) -> MerchantDatabase:
    """Load a merchant table from a YAML file.

    The file holds a top-level ``merchants`` list of
    ``{pattern, categorySlug, confidence}`` entries.

    Args:
        path: Path to the YAML file.

    Returns:
        MerchantDatabase with the file's mappings in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file's structure or values are invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Merchant file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("merchants") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"'merchants' must be a list in {path}")

    try:
        mappings = [MerchantMapping.from_dict(entry) for entry in entries]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid merchant entry in {path}: {e}") from e

    logger.info(f"Loaded {len(mappings)} merchant patterns from {path}")
    return MerchantDatabase(mappings)
