"""Transaction categorization and spending aggregation for a personal-finance tracker."""

__version__ = "0.1.0"
