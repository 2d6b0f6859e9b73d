"""Tests for merchant slug resolution against user categories."""

from finance_tracker.models.category import Category
from finance_tracker.processing.slug_resolver import (
    SlugResolver,
    dotted_name,
    normalize_slug,
    simple_name,
)


def create_categories() -> list[Category]:
    """Create a small two-level category tree."""
    return [
        Category(id="cat-food", name="Food"),
        Category(id="cat-groc", name="Groceries", parent_id="cat-food"),
        Category(id="cat-transport", name="Transport"),
        Category(id="cat-public", name="Public Transport", parent_id="cat-transport"),
    ]


class TestNameHelpers:
    """Tests for slug normalization helpers."""

    def test_simple_name(self) -> None:
        assert simple_name("Food & Drink") == "fooddrink"

    def test_dotted_name(self) -> None:
        assert dotted_name("Food & Drink") == "food.drink"

    def test_normalize_slug(self) -> None:
        assert normalize_slug("Transport.Public-2") == "transport.public"


class TestSlugResolver:
    """Tests for SlugResolver."""

    def test_registers_expected_keys(self) -> None:
        """Test ids, names, dotted names and parent paths are registered."""
        slug_map = SlugResolver.from_categories(create_categories()).slug_map

        assert slug_map["cat-groc"] == "cat-groc"
        assert slug_map["groceries"] == "cat-groc"
        assert slug_map["food.groceries"] == "cat-groc"
        assert slug_map["public.transport"] == "cat-public"
        assert slug_map["transport.publictransport"] == "cat-public"

    def test_exact_key(self) -> None:
        """Test an exact key resolves directly."""
        resolver = SlugResolver.from_categories(create_categories())
        assert resolver.resolve("groceries") == "cat-groc"
        assert resolver.resolve("food.groceries") == "cat-groc"

    def test_normalized_fallback(self) -> None:
        """Test case differences are handled by the fallback scan."""
        resolver = SlugResolver.from_categories(create_categories())
        assert resolver.resolve("GROCERIES") == "cat-groc"

    def test_substring_fallback_is_permissive(self) -> None:
        """Test the first key contained in the slug wins."""
        resolver = SlugResolver.from_categories(create_categories())
        # "transport" is registered before any public-transport key
        assert resolver.resolve("transport.public") == "cat-transport"

    def test_unresolvable_slug(self) -> None:
        """Test a slug sharing no key returns None."""
        resolver = SlugResolver.from_categories(create_categories())
        assert resolver.resolve("entertainment") is None

    def test_empty_slug(self) -> None:
        """Test empty or fully stripped slugs never resolve."""
        resolver = SlugResolver.from_categories(create_categories())
        assert resolver.resolve("") is None
        assert resolver.resolve("123") is None

    def test_child_with_missing_parent(self) -> None:
        """Test a child whose parent is unknown still registers its own keys."""
        resolver = SlugResolver.from_categories(
            [Category(id="c1", name="Coffee", parent_id="gone")]
        )
        assert resolver.resolve("coffee") == "c1"
        assert "gone.coffee" not in resolver.slug_map

    def test_no_categories(self) -> None:
        """Test an empty category list resolves nothing."""
        resolver = SlugResolver.from_categories([])
        assert len(resolver) == 0
        assert resolver.resolve("groceries") is None
