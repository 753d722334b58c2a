"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TierBandConfig(BaseModel):
    """One overdue-days band as read from configuration."""

    tier: str
    min_days: int
    max_days: int | None = None  # None = open-ended


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "invoicekit.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class ReminderSettings(BaseSettings):
    """Overdue reminder configuration."""

    model_config = SettingsConfigDict(env_prefix="REMINDER_")

    # Empty means the built-in friendly/polite/firm/urgent table
    tier_bands: list[TierBandConfig] = []
    sweep_batch_size: int = 100
    default_payment_terms: str = "Net 30"


class EmailSettings(BaseSettings):
    """Email provider configuration."""

    model_config = SettingsConfigDict(env_prefix="EMAIL_")

    api_url: str = "https://api.resend.com"
    api_key: str = ""
    from_address: str = "Invoices <invoices@example.com>"
    timeout: int = 30

    # Retry settings
    max_retries: int = 3
    retry_delay: float = 1.0
    retry_multiplier: float = 2.0


class PaymentSettings(BaseSettings):
    """Payment provider configuration."""

    model_config = SettingsConfigDict(env_prefix="PAYMENT_")

    api_url: str = "https://api.payments.example.com"
    api_key: str = ""
    monthly_price: float = 9.99
    per_invoice_fee: float = 0.50  # charged once per sent invoice on pay_per_invoice
    currency: str = "USD"
    success_url: str = "http://localhost:8000/billing/success"
    cancel_url: str = "http://localhost:8000/billing/cancel"
    timeout: int = 30


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]

    # Bearer token required by the cron endpoints when set
    cron_secret: str = ""
    # Acting user when no X-User-Id header is sent
    default_user_id: int = 1


class PdfSettings(BaseSettings):
    """Invoice PDF rendering configuration."""

    model_config = SettingsConfigDict(env_prefix="PDF_")

    footer_text: str = "Thank you for your business."
    currency_symbol: str = "$"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "InvoiceKit"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # JSON lines even in development
    log_json: bool = False

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    reminders: ReminderSettings = Field(default_factory=ReminderSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    payment: PaymentSettings = Field(default_factory=PaymentSettings)
    api: APISettings = Field(default_factory=APISettings)
    pdf: PdfSettings = Field(default_factory=PdfSettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
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
