"""Resolve merchant category slugs to a user's category ids.

Merchant slugs such as ``transport.public`` are written against the default
category names, while users rename and reorganize their categories. The
resolver registers several keys per category and falls back to a permissive
substring scan, so a slug resolves to *a* plausible category rather than
the best one.
"""

import re
from typing import Iterable, Mapping, Optional

from finance_tracker.models.category import Category
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NON_ALNUM_RUNS = re.compile(r"[^a-z0-9]+")
_NON_SLUG = re.compile(r"[^a-z.]")


def simple_name(name: str) -> str:
    """Lowercase a name and strip every non-alphanumeric character."""
    return _NON_ALNUM.sub("", name.lower())


def dotted_name(name: str) -> str:
    """Lowercase a name and collapse non-alphanumeric runs to a single dot."""
    return _NON_ALNUM_RUNS.sub(".", name.lower())


def normalize_slug(slug: str) -> str:
    """Lowercase a slug and keep only letters and dots."""
    return _NON_SLUG.sub("", slug.lower())


class SlugResolver:
    """Lookup from slugs (ids, names, dotted paths) to category ids.

    Keys keep their first insertion position; re-registering a key updates
    its value in place. The fallback scan walks keys in that order.
    """

    def __init__(self, slug_map: Mapping[str, str]):
        """Initialize from a prebuilt slug map.

        Args:
            slug_map: Mapping of lookup key to category id, in scan order.
        """
        self._slug_map: dict[str, str] = dict(slug_map)

    @classmethod
    def from_categories(cls, categories: Iterable[Category]) -> "SlugResolver":
        """Build the slug map from a category tree snapshot.

        For every category registers its id, its simple name, and its dotted
        name. Subcategories additionally register ``parent.child`` and the
        bare child name.

        Args:
            categories: All of the user's categories.

        Returns:
            A SlugResolver over the derived keys.
        """
        category_list = list(categories)
        by_id = {cat.id: cat for cat in category_list}
        slug_map: dict[str, str] = {}

        for cat in category_list:
            slug_map[cat.id] = cat.id

            child_simple = simple_name(cat.name)
            slug_map[child_simple] = cat.id
            slug_map[dotted_name(cat.name)] = cat.id

            if cat.parent_id:
                parent = by_id.get(cat.parent_id)
                if parent is not None:
                    slug_map[f"{simple_name(parent.name)}.{child_simple}"] = cat.id
                    # Lets a child name match without its parent prefix
                    slug_map[child_simple] = cat.id

        return cls(slug_map)

    @property
    def slug_map(self) -> dict[str, str]:
        """Copy of the underlying key -> category id map."""
        return dict(self._slug_map)

    def __len__(self) -> int:
        return len(self._slug_map)

    def resolve(self, slug: str) -> Optional[str]:
        """Resolve a slug to a category id.

        Tries an exact key first, then returns the first registered key that
        contains the normalized slug or is contained in it.

        Args:
            slug: Slug to resolve (e.g., "groceries", "food.groceries").

        Returns:
            Category id, or None when nothing plausible matches.
        """
        if slug in self._slug_map:
            return self._slug_map[slug]

        normalized = normalize_slug(slug)
        if not normalized:
            return None

        for key, category_id in self._slug_map.items():
            if key and (normalized in key or key in normalized):
                logger.debug(f"Slug {slug!r} resolved to {category_id!r} via key {key!r}")
                return category_id

        return None
