"""
Configuration module.

Exports:
    Settings: Immutable application settings
    configure_logging: structlog setup
"""

from config.settings import (
    Settings,
    DEFAULT_API_URL,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_TIMEOUT_SECONDS,
)
from config.logging import configure_logging

__all__ = [
    # Settings
    "Settings",
    "DEFAULT_API_URL",
    "DEFAULT_OUTPUT_PATH",
    "DEFAULT_TIMEOUT_SECONDS",

    # Logging
    "configure_logging",
]
