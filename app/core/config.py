# app/core/config.py
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Application ===
    APP_NAME: str = "Workseed"
    APP_URL: str = "http://localhost:3000"

    # === Database ===
    DATABASE_URL: str
    DATABASE_ECHO: bool = False
    DB_AUTO_CREATE: bool = True  # create tables + notification defaults on startup

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and ("localhost" in v or v.startswith("sqlite")):
            raise ValueError("🚨 Production environment cannot use a local database!")
        return v

    # === Celery ===
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # === JWT / session cookie ===
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    AUTH_COOKIE_NAME: str = "auth-token"
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"   # 'lax' | 'strict' | 'none'
    COOKIE_DOMAIN: Optional[str] = None

    # === Security ===
    BCRYPT_ROUNDS: int = 12
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    PASSWORD_RESET_MAX_PER_HOUR: int = 3

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === SMTP (Email) ===
    MAIL_BACKEND: str = "smtp"  # 'smtp' | 'console'
    MAIL_SERVER: Optional[str] = None
    MAIL_PORT: int = 587
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: Optional[str] = None
    MAIL_FROM_NAME: Optional[str] = None
    MAIL_TLS: bool = True
    MAIL_SSL: bool = False
    MAIL_TIMEOUT_SECONDS: int = 30

    # === Email queue ===
    EMAIL_QUEUE_BATCH_SIZE: int = 50
    EMAIL_QUEUE_MAX_RETRIES: int = 3
    EMAIL_QUEUE_INTERVAL_SECONDS: float = 60.0

    # === System ===
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    TIMEZONE: str = "UTC"

    @field_validator("MAIL_BACKEND")
    @classmethod
    def validate_mail_backend(cls, v):
        if v not in ("smtp", "console"):
            raise ValueError("MAIL_BACKEND must be 'smtp' or 'console'")
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


# Create a global settings instance
settings = Settings()
