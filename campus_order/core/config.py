"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Campus Order"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    APP_BASE_URL: str = "http://localhost:3000"

    # API
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
    ]

    # Database
    DATABASE_URL: str = "sqlite:///./campus_order.db"
    AUTO_CREATE_TABLES: bool = False

    # Session tokens
    SESSION_SECRET_KEY: str = "session-secret-key-change-in-production"
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "campus_session"
    SESSION_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # Ordering rules
    MAX_QUANTITY_PER_LINE: int = 20
    VAT_PERCENT: int = 7
    TIMEZONE: str = "Asia/Bangkok"
    DISPLAY_ID_PREFIX: str = "OR"
    ORDER_RETENTION_DAYS: int = 7
    ORDER_CLEANUP_BATCH: int = 300

    # Caching
    SHOP_STATUS_TTL_SECONDS: int = 60
    MENU_CACHE_TTL_SECONDS: int = 3600
    MENU_CACHE_CONTROL: str = "public, max-age=300, s-maxage=3600, stale-while-revalidate=86400"

    # Transactional email (Brevo)
    BREVO_API_KEY: str = ""
    BREVO_SENDER_EMAIL: str = ""
    BREVO_SENDER_NAME: str = "Campus Order"
    BREVO_BASE_URL: str = "https://api.brevo.com/v3"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
