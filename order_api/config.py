"""
order_api/config.py — Pydantic BaseSettings configuration
Loaded from the environment and an optional .env file. Invalid values are
fatal at startup.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_CUSTOMER_TOKEN = "customer_token"
PLACEHOLDER_ADMIN_TOKEN = "admin_token"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"
    server_port: int = 8080
    timezone: str = "UTC"

    # ── Database ──────────────────────────────────────────────────────────────
    # A full SQLAlchemy URL wins over the individual DB_* parts.
    database_url: Optional[str] = None
    db_username: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "orders"
    db_host: str = "localhost"
    db_port: int = 5432

    # ── Authentication (static shared secrets per role) ───────────────────────
    customer_token: str = PLACEHOLDER_CUSTOMER_TOKEN
    admin_token: str = PLACEHOLDER_ADMIN_TOKEN

    # ── Rate limiting — "<amount>/<granularity>" strings ──────────────────────
    request_rate_limit: str = "100/minute"
    reminder_rate_limit: str = "1/day"
    throttle_customer_orders: bool = False

    # ── Reminder job ──────────────────────────────────────────────────────────
    reminder_enabled: bool = True
    reminder_retry_seconds: int = 3600

    # ── CSV order report ──────────────────────────────────────────────────────
    report_path: Optional[str] = "order_report.csv"

    # ── SMTP ──────────────────────────────────────────────────────────────────
    smtp_server: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    sender_email: Optional[str] = None

    @field_validator("environment")
    @classmethod
    def validate_env(cls, v: str) -> str:
        allowed = {"development", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("reminder_retry_seconds")
    @classmethod
    def validate_retry(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("reminder_retry_seconds must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def smtp_sender(self) -> str:
        return self.sender_email or self.smtp_username


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
