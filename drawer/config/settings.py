"""
Configuration Management for Drawer

Every tunable of Drawer is read here, from environment variables and an
optional .env file, through pydantic-settings.

DESIGN DECISION: Each external service has its own settings class with its
own env prefix. A missing Gemini key or Sheets credential therefore only
fails the component that needs it; the in-memory app still starts.
"""

from datetime import date
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Credentials and worksheet names for the Google Sheets backend."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file (JSON)"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Key of the spreadsheet holding the Drawer worksheets"
    )

    # One worksheet per entity
    documents_sheet_name: str = Field(
        default="Documents",
        description="Name of the sheet for documents"
    )
    notes_sheet_name: str = Field(
        default="Notes",
        description="Name of the sheet for notes and reminders"
    )
    chat_sheet_name: str = Field(
        default="ChatMessages",
        description="Name of the sheet for the conversation log"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing key file only warns; it may be mounted after startup."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Service account file {v} does not exist yet; "
                "the Google Sheets backend will fail to connect without it."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini model used for extraction and chat."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="API key for Google AI Studio"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Model used for both agents"
    )
    # Document transcriptions can be long, so extraction gets a bigger budget
    extraction_max_tokens: int = Field(
        default=16384,
        ge=256,
        le=65536,
        description="Maximum tokens in an extraction response"
    )
    chat_max_tokens: int = Field(
        default=8192,
        ge=256,
        le=65536,
        description="Maximum tokens in a chat response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sampling temperature; kept low so extraction is repeatable"
    )


class AppSettings(BaseSettings):
    """
    Application-wide settings without an env prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="development, staging or production"
    )
    debug_mode: bool = Field(
        default=False,
        description="Show tracebacks in the UI"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Storage
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Where documents, notes and messages are kept"
    )
    upload_dir: str = Field(
        default="uploads",
        description="Directory for uploaded files"
    )
    demo_data: bool = Field(
        default=False,
        description="Fill empty stores with sample documents and notes on start"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Largest accepted upload, in MB"
    )
    allowed_mime_types: str = Field(
        default="application/pdf,image/png,image/jpeg,image/jpg,image/webp",
        description="Comma-separated list of accepted MIME types"
    )

    # Calendar bounds used when a query omits them
    calendar_default_start: date = Field(
        default=date(2020, 1, 1),
        description="Start of the calendar range when none is given"
    )
    calendar_default_end: date = Field(
        default=date(2030, 12, 31),
        description="End of the calendar range when none is given"
    )

    @property
    def allowed_mime_types_list(self) -> list[str]:
        """Get allowed MIME types as a list."""
        return [
            mime.strip().lower()
            for mime in self.allowed_mime_types.split(",")
            if mime.strip()
        ]

    @property
    def max_upload_size_bytes(self) -> int:
        """Upload limit in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Entry point for all settings groups.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings object.

    Cached; tests that change the environment call get_settings.cache_clear().
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every settings group.

    Returns {group: loaded_ok} plus "{group}_error" messages for the
    groups that failed, for the Settings page.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
