"""OTP Auth — configuration loaded from environment."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Auth"
    debug: bool = True
    cors_origins: list[str] = ["*"]

    # ── OTP policy ────────────────────────────────────────
    otp_length: int = 6
    otp_ttl_seconds: int = 300  # 5 minutes
    otp_max_attempts: int = 3
    lockout_seconds: int = 600  # 10 minutes

    # 0 disables the background sweeper; expiry is always checked lazily
    sweep_interval_seconds: int = 0

    # ── Delivery ──────────────────────────────────────────
    notifier: Literal["log", "email", "whatsapp"] = "log"

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = "no-reply@example.com"

    whatsapp_api_token: str = ""
    whatsapp_phone_number_id: str = ""

    # ── Identity ──────────────────────────────────────────
    user_directory: Literal["demo", "database"] = "demo"
    demo_user_name: str = "Demo User"
    database_url: str = "sqlite+aiosqlite:///./otp_auth.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
