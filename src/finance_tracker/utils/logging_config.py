"""Logging setup for the finance tracker CLI and library modules."""

import logging
import sys
import time
from pathlib import Path

DEFAULT_LOG_FILE = "finance_tracker.log"

# Every module logger hangs off this namespace
LOGGER_NAMESPACE = "finance_tracker"

# Context keys masked in LogContext output
SENSITIVE_FIELDS = {'user_id', 'iban', 'token', 'account_number', 'card_number', 'secret', 'api_key'}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        log_file: Log file path. None means DEFAULT_LOG_FILE, an empty
            string disables file logging.
        console_output: Whether to also log to stderr.

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(numeric_level)
    # main() may run more than once per process (tests)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []

    if log_file is None:
        log_file = DEFAULT_LOG_FILE
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the package namespace.

    Module names that already start with the namespace are used as-is.
    """
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


class LogContext:
    """Context manager that logs an operation's start, duration and failure.

    Context values are written as ``key=value`` pairs; keys that name
    account or credential data are masked. Exceptions are logged and
    re-raised.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        self.logger = logger
        self.operation = operation
        self.context = context
        self._started: float | None = None

    @property
    def elapsed(self) -> float:
        """Seconds since the context was entered, 0.0 before entry."""
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def describe(self) -> str:
        return ", ".join(
            f"{k}={'***' if k.lower() in SENSITIVE_FIELDS else v}"
            for k, v in self.context.items()
        )

    def __enter__(self) -> "LogContext":
        self._started = time.monotonic()
        self.logger.debug(f"Starting {self.operation}: {self.describe()}")
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        if exc_type is not None:
            self.logger.error(
                f"Error in {self.operation} after {self.elapsed:.2f}s: "
                f"{exc_type.__name__}: {exc_val}",
                exc_info=True,
            )
        else:
            self.logger.debug(f"Completed {self.operation} in {self.elapsed:.2f}s")
        return False
