from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "SentinelIQ"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str
    database_echo: bool = False

    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=15, ge=1, le=15)
    refresh_token_expire_days: int = Field(default=7, ge=1, le=7)
    encryption_salt: str

    # Session cookies
    access_token_cookie_name: str = "access_token"
    refresh_token_cookie_name: str = "refresh_token"
    cookie_secure: bool = False

    # Rate limiting
    rate_limit_enabled: bool = True
    login_rate_limit: str = "5/minute"

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = "http://localhost:3000"

    # Frontend
    frontend_dashboard_url: str = "http://localhost:3000/user_pages/protected/dashboard"

    # Gmail OAuth
    gmail_client_id: Optional[str] = None
    gmail_client_secret: Optional[str] = None
    gmail_redirect_uri: str = "http://localhost:8080/auth/gmail/callback"
    gmail_scopes: str = (
        "https://www.googleapis.com/auth/gmail.readonly "
        "https://www.googleapis.com/auth/userinfo.email"
    )
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_userinfo_url: str = "https://www.googleapis.com/oauth2/v2/userinfo"
    gmail_api_base_url: str = "https://gmail.googleapis.com/gmail/v1/users/me"
    provider_timeout_seconds: float = 30.0
    provider_token_refresh_margin_seconds: int = 60

    # Ingestion
    ingestion_page_size: int = Field(default=10, ge=1, le=500)
    default_trust_score: int = 100

    @model_validator(mode="after")
    def validate_gmail_config(self) -> "Settings":
        """Client id and secret must be configured together"""
        if bool(self.gmail_client_id) != bool(self.gmail_client_secret):
            raise ValueError(
                "gmail_client_id and gmail_client_secret must be set together. "
                "Set GMAIL_CLIENT_ID and GMAIL_CLIENT_SECRET or neither."
            )
        return self

    @property
    def gmail_configured(self) -> bool:
        return bool(self.gmail_client_id and self.gmail_client_secret)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
