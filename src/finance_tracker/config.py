"""Configuration loading and validation for the finance tracker."""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import yaml

from finance_tracker.models.budget import DEFAULT_ALERT_THRESHOLD
from finance_tracker.processing.merchant_database import (
    DEFAULT_DATABASE,
    MerchantDatabase,
    load_merchant_database,
)
from finance_tracker.processing.recategorizer import BATCH_SIZE
from finance_tracker.utils.logging_config import DEFAULT_LOG_FILE, get_logger

logger = get_logger(__name__)

CONFIG_DIR_ENV_VAR = "FINANCE_TRACKER_CONFIG_DIR"
DEFAULT_CONFIG_DIR = Path("config")
DEFAULT_DATA_FILE = "data/finance.json"
DEFAULT_TOP_CATEGORIES = 7

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


def _section(data: dict[str, object], name: str) -> dict[str, object]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _positive_int(data: dict[str, object], key: str, default: int) -> int:
    raw = data.get(key, default)
    try:
        value = int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigError(f"'{key}' must be positive, got {value}")
    return value


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file; empty string disables file logging.
    """

    level: str = "INFO"
    file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        level = str(data.get("level", "INFO")).upper()
        if level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level {level!r}; expected one of {', '.join(VALID_LOG_LEVELS)}"
            )
        log_file = data.get("file", DEFAULT_LOG_FILE)
        return cls(level=level, file=str(log_file) if log_file else "")


@dataclass
class CategorizationConfig:
    """Configuration for the categorization cascade.

    Attributes:
        merchants_file: YAML merchant table replacing the shipped one.
        batch_size: Transactions per committed recategorization batch.
    """

    merchants_file: Optional[str] = None
    batch_size: int = BATCH_SIZE

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "CategorizationConfig":
        """Create from dictionary."""
        merchants_file = data.get("merchants_file")
        return cls(
            merchants_file=str(merchants_file) if merchants_file else None,
            batch_size=_positive_int(data, "batch_size", BATCH_SIZE),
        )


@dataclass
class BudgetConfig:
    """Configuration for budget tracking.

    Attributes:
        default_alert_threshold: Warning percentage for budgets without one.
        rollup_subcategories: Count subcategory spending toward parent budgets.
    """

    default_alert_threshold: Decimal = DEFAULT_ALERT_THRESHOLD
    rollup_subcategories: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "BudgetConfig":
        """Create from dictionary."""
        raw = data.get("default_alert_threshold", DEFAULT_ALERT_THRESHOLD)
        try:
            threshold = Decimal(str(raw))
        except InvalidOperation as e:
            raise ConfigError(f"Invalid default_alert_threshold: {raw!r}") from e
        if not threshold.is_finite() or threshold < 0:
            raise ConfigError(f"default_alert_threshold must be >= 0, got {raw!r}")

        return cls(
            default_alert_threshold=threshold,
            rollup_subcategories=bool(data.get("rollup_subcategories", True)),
        )


@dataclass
class DashboardConfig:
    """Configuration for dashboard output.

    Attributes:
        top_categories: Categories shown before folding the rest into "Other".
        currency_symbol: Currency symbol for display.
    """

    top_categories: int = DEFAULT_TOP_CATEGORIES
    currency_symbol: str = "€"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "DashboardConfig":
        """Create from dictionary."""
        return cls(
            top_categories=_positive_int(data, "top_categories", DEFAULT_TOP_CATEGORIES),
            currency_symbol=str(data.get("currency_symbol", "€")),
        )


@dataclass
class Config:
    """Main configuration container.

    Attributes:
        data_file: JSON document snapshot used by the file store.
        logging: Logging configuration.
        categorization: Categorization configuration.
        budgets: Budget configuration.
        dashboard: Dashboard configuration.
        config_dir: Directory relative paths are resolved against.
    """

    data_file: str = DEFAULT_DATA_FILE
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    categorization: CategorizationConfig = field(default_factory=CategorizationConfig)
    budgets: BudgetConfig = field(default_factory=BudgetConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    config_dir: Path = DEFAULT_CONFIG_DIR

    def resolve_path(self, value: str) -> Path:
        """Resolve a configured path; relative paths are taken from config_dir."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self.config_dir / path

    def load_merchants(self) -> MerchantDatabase:
        """Return the configured merchant table, or the shipped one.

        Raises:
            ConfigError: If the configured merchant file is missing or invalid.
        """
        if not self.categorization.merchants_file:
            return DEFAULT_DATABASE
        path = self.resolve_path(self.categorization.merchants_file)
        try:
            return load_merchant_database(path)
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot load merchant table: {e}") from e


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If file is invalid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")
    return content


def load_settings(path: Path, config: Config) -> None:
    """Load settings.yaml into a Config.

    Args:
        path: Path to settings.yaml.
        config: Config to populate (modified in place).

    Raises:
        ConfigError: If a section is malformed.
    """
    data = load_yaml_file(path)

    if data.get("data_file"):
        config.data_file = str(data["data_file"])
    config.logging = LoggingConfig.from_dict(_section(data, "logging"))
    config.categorization = CategorizationConfig.from_dict(_section(data, "categorization"))
    config.budgets = BudgetConfig.from_dict(_section(data, "budgets"))
    config.dashboard = DashboardConfig.from_dict(_section(data, "dashboard"))


def get_config_dir(config_dir: Optional[Path] = None) -> Path:
    """Return the config directory: argument, then environment, then ./config."""
    if config_dir is not None:
        return config_dir
    env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser()
    return DEFAULT_CONFIG_DIR


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load configuration from settings.yaml.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        config_dir: Base config directory (default: $FINANCE_TRACKER_CONFIG_DIR
            or ./config).

    Returns:
        Complete Config object; defaults when the settings file is missing.

    Raises:
        ConfigError: If the settings file is malformed.
    """
    config_dir = get_config_dir(config_dir)
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    config = Config(config_dir=config_dir)

    if settings_path.exists():
        load_settings(settings_path, config)
        logger.info(f"Loaded settings from {settings_path}")
    else:
        logger.warning(f"Settings file not found: {settings_path}, using defaults")

    return config
