"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Access and refresh tokens are signed with two independent secrets
(JWT_ACCESS_SECRET / JWT_REFRESH_SECRET) so that possession of one never
allows forging the other.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "atelier-admin"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the per-user lease is skipped
    redis_uri: Optional[str] = None
    lease_ttl_ms: int = 5000


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "atelier-admin"
    jwt_audience: str = "atelier-admin.api"
    jwt_algorithm: str = "HS256"

    jwt_access_secret: str = ""
    jwt_refresh_secret: str = ""

    access_token_ttl_seconds: int = 900  # 15 minutes
    refresh_token_ttl_seconds: int = 604800  # 7 days
    remember_refresh_token_ttl_seconds: int = 2592000  # 30 days

    cookie_secure: bool = True
    refresh_cookie_name: str = "refresh_token"
    refresh_cookie_path: str = "/auth/refresh"

    @model_validator(mode="after")
    def _secrets_must_differ(self) -> "JWTSettings":
        if (
            self.jwt_access_secret
            and self.jwt_access_secret == self.jwt_refresh_secret
        ):
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        return self


class VerificationSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    email_verification_ttl_seconds: int = 31536000  # 365 days, "until used"
    password_reset_ttl_seconds: int = 3600
    password_reset_cooldown_seconds: int = 300
    otp_ttl_seconds: int = 300
    otp_max_attempts: int = 5
    otp_min: int = 1000
    otp_max: int = 9999


class OAuthProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    google_oauth_client_id: str = ""
    google_oauth_client_secret: str = ""
    google_oauth_redirect_uri: str = ""


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    zepto_api_token: str = ""
    zepto_from_email: str = "noreply@atelier.example"
    zepto_from_name: str = "Atelier Admin"


class StorageSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    aws_region: str = ""
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_s3_bucket_name: str = ""
    # S3-compatible endpoint (MinIO, R2); empty means AWS
    aws_s3_endpoint_url: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(
            self.aws_region
            and self.aws_access_key_id
            and self.aws_secret_access_key
            and self.aws_s3_bucket_name
        )


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    secret_key: str = ""
    env: str = "development"
    app_name: str = "atelier-admin"
    # Base URL of this API; verification links point here
    app_url: str = "http://localhost:8000"
    # Base URL of the admin front-end; redirects and reset links point here
    client_url: str = "http://localhost:3000"

    cors_origins: list[str] = ["http://localhost:3000"]

    # Upload size limit per file (bytes); 10 MB default
    max_upload_size: int = 10_485_760

    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    jwt: Optional[JWTSettings] = None
    verification: Optional[VerificationSettings] = None
    oauth: Optional[OAuthProviderSettings] = None
    email: Optional[EmailSettings] = None
    storage: Optional[StorageSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.verification is None:
            self.verification = VerificationSettings()
        if self.oauth is None:
            self.oauth = OAuthProviderSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.storage is None:
            self.storage = StorageSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
