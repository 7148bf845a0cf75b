"""
Application settings and configuration
"""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Basic app settings
    DEBUG: bool = Field(default=False)
    APP_NAME: str = Field(default="IntelliBook")

    # Server settings
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Database settings
    # sqlite:/// selects the embedded single-writer backend,
    # postgresql:// the networked one (advisory locks)
    DATABASE_URL: str = Field(default="sqlite:///./data/intellibook.db")
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)
    DB_ECHO: bool = Field(default=False)

    # Scheduling defaults
    DEFAULT_TIMEZONE: str = Field(default="America/Los_Angeles")
    DEFAULT_OPEN_TIME: str = Field(default="09:00")
    DEFAULT_CLOSE_TIME: str = Field(default="18:00")
    DEFAULT_APPOINTMENT_DURATION: int = Field(default=45)

    # Email settings
    EMAIL_HOST: str = Field(default="")
    EMAIL_PORT: int = Field(default=587)
    EMAIL_USE_TLS: bool = Field(default=True)
    EMAIL_USERNAME: str = Field(default="")
    EMAIL_PASSWORD: str = Field(default="")
    EMAIL_FROM_ADDRESS: str = Field(default="")
    EMAIL_FROM_NAME: str = Field(default="IntelliBook")
    RESEND_API_KEY: str = Field(default="")
    RESEND_API_URL: str = Field(default="https://api.resend.com/emails")
    EMAIL_TIMEOUT_SECONDS: float = Field(default=10.0)

    # Public storefront
    PUBLIC_RATE_LIMIT_PER_SECOND: int = Field(default=10)

    # Bootstrap
    BUSINESS_NAME: str = Field(default="IntelliBook")
    OWNER_EMAIL: Optional[str] = None
    SEED_DEFAULT_TYPES: bool = Field(default=False)

    # Monitoring settings
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
