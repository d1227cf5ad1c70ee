from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "HiBridge"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://hibridge:hibridge@db:5432/hibridge"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10
    # Create tables at startup instead of running migrations (local development).
    create_tables_on_startup: bool = False

    # Attempts per ledger write before a version conflict is surfaced.
    ledger_max_attempts: int = 3

    # Accrual configuration applied to balances created on first use.
    default_accrual_model: str = "ratio_based"
    default_office_to_remote_ratio: int = 3
    default_streak_bonus_threshold: int = 5
    default_streak_bonus_amount: int = 1

    # RTO requirement for teams created without an explicit policy.
    default_required_office_days: int = 3


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
