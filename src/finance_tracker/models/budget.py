"""Budget data model."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from finance_tracker.utils.decimal_utils import to_decimal

DEFAULT_ALERT_THRESHOLD = Decimal("80")


class BudgetStatus(Enum):
    """Traffic-light state of a budget for the current period."""

    SAFE = "safe"
    WARNING = "warning"
    EXCEEDED = "exceeded"


@dataclass
class Budget:
    """Monthly spending limit for one category.

    One active budget per category is expected but not enforced here.

    Attributes:
        id: Unique identifier for this budget.
        category_id: Category whose spending counts against the limit.
        monthly_limit: Spending limit per month.
        alert_threshold: Percentage of the limit at which to warn.
        is_active: Inactive budgets are ignored by progress calculations.
        name: Display name.
    """

    id: str
    category_id: str
    monthly_limit: Decimal
    alert_threshold: Decimal = field(default_factory=lambda: DEFAULT_ALERT_THRESHOLD)
    is_active: bool = True
    name: str = ""

    @classmethod
    def from_dict(
        cls,
        data: dict[str, object],
        default_alert_threshold: Decimal = DEFAULT_ALERT_THRESHOLD,
    ) -> "Budget":
        """Create a Budget from a stored document.

        Args:
            data: Dictionary with camelCase document keys.
            default_alert_threshold: Threshold used when the document has none.

        Returns:
            A new Budget instance.
        """
        threshold = data.get("alertThreshold")
        return cls(
            id=str(data["id"]),
            category_id=str(data["categoryId"]),
            monthly_limit=to_decimal(data["monthlyLimit"], "monthlyLimit"),
            alert_threshold=(
                to_decimal(threshold, "alertThreshold")
                if threshold is not None
                else default_alert_threshold
            ),
            is_active=bool(data.get("isActive", True)),
            name=str(data.get("name") or ""),
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a stored document."""
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "monthlyLimit": float(self.monthly_limit),
            "alertThreshold": float(self.alert_threshold),
            "isActive": self.is_active,
            "name": self.name,
        }
