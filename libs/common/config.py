from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    BRAND_NAME: str = "SXO6LUXE"
    FRONTEND_URL: str = "http://localhost:5173"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase
    # Default placeholder values keep local/test runs from failing when Supabase
    # credentials are not required. Real deployments should override via env.
    SUPABASE_URL: str = "http://localhost"
    SUPABASE_ANON_KEY: str = "test-anon-key"
    SUPABASE_SERVICE_ROLE_KEY: str = "test-service-role-key"
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"
    SUPABASE_STORAGE_BUCKET: str = "product-images"
    SEND_EMAIL_FUNCTION_NAME: str = "send-email"

    # Paystack
    PAYSTACK_PUBLIC_KEY: str = ""
    PAYSTACK_SECRET_KEY: str = ""
    PAYSTACK_API_BASE_URL: str = "https://api.paystack.co"
    PAYMENT_COUNTRY: str = "Nigeria"

    # Exchange rate (USD -> NGN)
    EXCHANGE_RATE_API_URL: str = "https://api.exchangerate-api.com/v4/latest/USD"
    FALLBACK_EXCHANGE_RATE: Decimal = Decimal("1550")

    # Shipping
    FREE_SHIPPING_THRESHOLD_USD: Decimal = Decimal("200")
    FLAT_SHIPPING_USD: Decimal = Decimal("15")

    # Email (Resend)
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "SXO6LUXE <ac@sxo6luxe.com>"

    # Communications service (serves the send-email function locally)
    COMMUNICATIONS_SERVICE_URL: Optional[str] = None

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
    def functions_base_url(self) -> str:
        """Base URL that deployed functions are invoked under."""
        if self.COMMUNICATIONS_SERVICE_URL:
            return f"{self.COMMUNICATIONS_SERVICE_URL.rstrip('/')}/functions/v1"
        return f"{self.SUPABASE_URL.rstrip('/')}/functions/v1"


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
