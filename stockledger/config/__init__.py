"""Configuration module."""

from stockledger.config.logging import configure_logging, get_logger
from stockledger.config.settings import (
    APISettings,
    LedgerSettings,
    LogSettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "StorageSettings",
    "LedgerSettings",
    "APISettings",
    "LogSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
]
