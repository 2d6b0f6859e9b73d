"""Exception types raised by the finance tracker core."""


class FinanceTrackerError(Exception):
    """Base class for all finance tracker errors."""

    pass


class CategorizerNotInitializedError(FinanceTrackerError):
    """Raised when categorize() is called before initialize()."""

    pass


class InvalidInputError(FinanceTrackerError, ValueError):
    """Raised for malformed caller input (date ranges, required fields)."""

    pass


class StoreError(FinanceTrackerError):
    """Raised when the transaction store cannot be read or written."""

    pass
