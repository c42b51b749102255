from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Cookie Consent"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./consent.db"

    # Security settings (signs the session cookie that carries the audit session id)
    secret_key: str = "change-me"

    # Consent cookie storage
    consent_cookie_name: str = "masilia_consent"
    consent_cookie_lifetime: int = 365  # days
    consent_cookie_path: str = "/"
    consent_cookie_domain: str | None = None
    consent_cookie_secure: bool = True
    consent_cookie_http_only: bool = True
    consent_cookie_same_site: Literal["lax", "strict", "none"] = "lax"

    # Consent audit logging
    consent_log_enabled: bool = True
    consent_log_ip_address: bool = True
    consent_log_user_agent: bool = True
    consent_log_anonymize_ip: bool = False
    consent_log_retention_days: int = 1095

    # API settings
    api_base_path: str = "/api/consent"
    cors_enabled: bool = False
    cors_origins: list[str] = []

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
