"""Shopify MCP Server — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Shopify Admin API ─────────────────────────────────
    shopify_access_token: str = ""
    myshopify_domain: str = ""
    shopify_api_version: str = "2023-07"

    # ── SMTP (OTP delivery) ───────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = "no-reply@example.com"

    # ── Auth ──────────────────────────────────────────────
    otp_ttl_seconds: int = 300
    session_ttl_seconds: int = 3600

    # ── App ───────────────────────────────────────────────
    app_name: str = "Shopify MCP Server"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Singleton settings instance
settings = Settings()
