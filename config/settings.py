"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety. Values come from
CUSTOMS_* environment variables or a .env file; the CLI overrides them
with explicit flags. The resulting object is frozen and passed into the
import service.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Optional


DEFAULT_API_URL = "https://drotsolutions.com"
DEFAULT_OUTPUT_PATH = "result.xlsx"
DEFAULT_TIMEOUT_SECONDS = 120


class Settings(BaseSettings):
    """
    Customs import settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on construction.
    """

    model_config = SettingsConfigDict(
        env_prefix="CUSTOMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ===================
    # REMOTE SERVICE
    # ===================
    api_key: Optional[str] = Field(
        None,
        description="API key used for authentication and authorization"
    )
    api_url: str = Field(
        default=DEFAULT_API_URL,
        min_length=1,
        description="Base URL of the classification service"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request HTTP timeout"
    )

    # ===================
    # POLLING
    # ===================
    timeout_seconds: int = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        ge=1,
        description="How many status checks (one per interval) to wait for processing"
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay between status checks"
    )

    # ===================
    # WORKBOOK
    # ===================
    output_path: str = Field(
        default=DEFAULT_OUTPUT_PATH,
        min_length=1,
        description="Where the annotated workbook is written"
    )
    sheet_name: Optional[str] = Field(
        None,
        description="Worksheet to read (active sheet when unset)"
    )

    # ===================
    # LOGGING
    # ===================
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of console output"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def log_level_uppercase(cls, v):
        """Accept lower-case level names."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("api_url")
    @classmethod
    def api_url_no_trailing_slash(cls, v: str) -> str:
        """Locations are appended to the base URL."""
        return v.strip().rstrip("/")

    @property
    def has_api_key(self) -> bool:
        """Check if an API key is configured."""
        return bool(self.api_key and self.api_key.strip())

