from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    APP_NAME: str = "DarulQuran API"
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    ORG_NAME: str = "DarulQuran"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth (tokens are issued elsewhere; this service only verifies them)
    JWT_SECRET: str = "test-jwt-secret"
    JWT_ALGORITHM: str = "HS256"

    # Public URLs
    BASE_URL: str = "http://localhost:5000"
    API_PREFIX: str = "/api/v1"
    FRONTEND_URL: str = "http://localhost:3000"

    # SSLCommerz
    SSLCOMMERZ_STORE_ID: str = ""
    SSLCOMMERZ_STORE_PASSWORD: str = ""
    SSLCOMMERZ_IS_LIVE: bool = False
    SSLCOMMERZ_SANDBOX_URL: str = "https://sandbox.sslcommerz.com"
    SSLCOMMERZ_LIVE_URL: str = "https://securepay.sslcommerz.com"
    SSLCOMMERZ_CURRENCY: str = "BDT"
    SSLCOMMERZ_TIMEOUT_SECONDS: float = 15.0
    # Cross-check success callbacks against the validation API before trusting them
    SSLCOMMERZ_VERIFY_CALLBACKS: bool = True

    # Member applications
    MEMBER_SESSION_TTL_HOURS: int = 24
    MEMBER_LIFETIME_MIN_AMOUNT: float = 100000
    MEMBER_DONOR_MIN_AMOUNT: float = 50000
    PAYMENT_AMOUNT_TOLERANCE: float = 1.0
    REQUIRE_PAYMENT_FOR_APPROVAL: bool = False

    # Email (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    DEFAULT_FROM_EMAIL: str = "no-reply@darulquran.org"
    DEFAULT_FROM_NAME: str = "DarulQuran"

    # Redis (arq worker) and rate limiting
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @property
    def sslcommerz_base_url(self) -> str:
        base = self.SSLCOMMERZ_LIVE_URL if self.SSLCOMMERZ_IS_LIVE else self.SSLCOMMERZ_SANDBOX_URL
        return base.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
