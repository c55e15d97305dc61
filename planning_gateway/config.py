"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./planning.db"

    # External Services
    ledger_webhook_url: str = "http://localhost:8002/mock-ledger"

    # Service
    service_name: str = "planning-gateway"
    log_level: str = "INFO"

    # Debt schedules
    max_schedule_months: int = 600  # Safety cap when no horizon is requested
    reminder_hour: int = 9  # Local hour reminders fire on the due date

    # HTTP Client
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = 5
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds


settings = Settings()
