"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Stock ledger policies."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # "clamp" floors an over-decrement at zero and logs it, "reject" raises
    over_decrement_policy: Literal["clamp", "reject"] = "clamp"
    # "ignore" turns a non-positive quantity into a logged no-op, "reject" raises
    non_positive_policy: Literal["ignore", "reject"] = "ignore"

    # Expiration window used by the expiration monitor and batch classification
    expiring_soon_days: int = 7

    # Float tolerance for quantity comparisons
    quantity_epsilon: float = 1e-9

    # Reject transactions naming a location missing from the location catalog
    require_known_locations: bool = False


class PlanningSettings(BaseSettings):
    """Reorder and turnover planning configuration."""

    model_config = SettingsConfigDict(env_prefix="PLANNING_")

    usage_window_days: int = 30
    turnover_window_days: int = 90
    min_coverage_days: int = 7
    default_lead_time_days: int = 7
    safety_stock_factor: float = 0.5
    slow_mover_turnover: float = 1.0


class CountSettings(BaseSettings):
    """Physical count configuration."""

    model_config = SettingsConfigDict(env_prefix="COUNT_")

    # Variances above this percentage of the system quantity raise an event
    large_variance_pct: float = 10.0


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    journal_backend: Literal["memory", "sqlite"] = "memory"
    data_dir: Path = Path("data")
    db_name: str = "larder.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Larder Inventory Ledger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    planning: PlanningSettings = Field(default_factory=PlanningSettings)
    count: CountSettings = Field(default_factory=CountSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        if settings.journal_backend == "sqlite":
            settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
