"""Configuration settings for Barix Billing."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase (PostgREST)
    supabase_url: str = Field(..., validation_alias="SUPABASE_URL")
    supabase_service_role_key: SecretStr = Field(
        ..., validation_alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_timeout: float = Field(default=30.0, validation_alias="SUPABASE_TIMEOUT")
    supabase_max_retries: int = Field(default=3, validation_alias="SUPABASE_MAX_RETRIES")

    # Shared secret for the cron trigger and the reminder send endpoint
    cron_secret: SecretStr = Field(..., validation_alias="CRON_SECRET")

    # Resend email delivery
    resend_api_key: SecretStr = Field(..., validation_alias="RESEND_API_KEY")
    resend_api_url: str = Field(
        default="https://api.resend.com", validation_alias="RESEND_API_URL"
    )
    resend_from_email: str = Field(
        default="Barix Billing <onboarding@resend.dev>",
        validation_alias="RESEND_FROM_EMAIL",
    )

    # Public app URL used for pay/view links
    app_url: str = Field(default="http://localhost:3000", validation_alias="APP_URL")

    # Documents
    tax_rate: Decimal = Field(default=Decimal("0.06"), validation_alias="TAX_RATE")

    # Reminder defaults for contractors without a settings row
    reminders_enabled: bool = Field(default=True, validation_alias="REMINDERS_ENABLED")
    reminder_days_before_due: int = Field(
        default=3, ge=0, le=365, validation_alias="REMINDER_DAYS_BEFORE_DUE"
    )
    reminder_days_after_due: int = Field(
        default=1, ge=0, le=365, validation_alias="REMINDER_DAYS_AFTER_DUE"
    )
    reminder_send_timeout: float = Field(
        default=10.0, gt=0, validation_alias="REMINDER_SEND_TIMEOUT"
    )

    # Client import
    import_chunk_size: int = Field(default=200, ge=1, validation_alias="IMPORT_CHUNK_SIZE")

    # Logging
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
