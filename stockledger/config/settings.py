"""
Ledger settings, read from environment variables and an optional ``.env``.

Each group has its own prefix: ``STORAGE_``, ``LEDGER_``, ``LOG_`` and
``API_``. ``ENVIRONMENT`` picks the default log format.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class StorageSettings(BaseSettings):
    """Where the ledger keeps its state."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["sqlite", "memory"] = "sqlite"
    data_dir: Path = Path("data")
    db_name: str = "stockledger.db"

    # One writer plus pool_size - 1 readers
    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0)  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    """Reservation and movement rules."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # Outcomes exceeding availability are rejected unless clamping is allowed
    allow_outcome_clamp: bool = False
    reconcile_on_open: bool = True
    default_category: str = "General"
    history_limit: int = 200


class LogSettings(BaseSettings):
    """
    Log output.

    ``levels`` overrides single loggers, e.g.
    ``LOG_LEVELS='{"stockledger.infrastructure.storage.sqlite": "DEBUG"}'``
    to trace SQL writes without raising the level everywhere else.
    """

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: LogLevel = "INFO"
    format: Literal["console", "json"] | None = None
    file: Path | None = None
    levels: dict[str, LogLevel] = Field(default_factory=dict)


class APISettings(BaseSettings):
    """HTTP server."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "stockledger"
    environment: Literal["development", "staging", "production"] = "development"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    api: APISettings = Field(default_factory=APISettings)

    @property
    def log_format(self) -> Literal["console", "json"]:
        if self.log.format is not None:
            return self.log.format
        return "console" if self.environment == "development" else "json"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Settings for this process, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the loaded settings so the next call rereads the environment."""
    global _settings
    _settings = None
