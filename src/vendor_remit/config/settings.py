"""Configuration settings for vendor-remit."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Apps Script web app backing the vendor directory and remittance sheet
    apps_script_url: str = Field(default="", validation_alias="APPS_SCRIPT_URL")
    sheet_url: str = Field(default="", validation_alias="SHEET_URL")
    http_timeout: float = Field(default=30.0, validation_alias="HTTP_TIMEOUT")

    # Gemini free-text parsing (disabled when no key is set)
    google_api_key: SecretStr | None = Field(
        default=None, validation_alias=AliasChoices("GOOGLE_API_KEY", "API_KEY")
    )
    gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")

    # Local session and output
    session_dir: Path = Field(default=Path(".vendor_remit"), validation_alias="SESSION_DIR")
    download_dir: Path = Field(default=Path("."), validation_alias="DOWNLOAD_DIR")
    remittance_file_suffix: str = Field(
        default="農會匯款單.xlsx", validation_alias="REMITTANCE_FILE_SUFFIX"
    )

    # Delay after the last keystroke before a bank lookup fires (seconds)
    bank_search_debounce: float = Field(default=0.3, validation_alias="BANK_SEARCH_DEBOUNCE")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
