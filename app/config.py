import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict

from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class ResetPolicy:
    """
    Security-relevant knobs of the forgot-password flow.

    One profile per environment, chosen once at startup and injected into the
    reset workflow. Business code never branches on ENV directly.
    """
    name: str
    rate_limit_window: timedelta
    max_requests: int
    code_ttl: timedelta = timedelta(minutes=15)
    code_max_attempts: int = 3
    reset_token_ttl: timedelta = timedelta(minutes=30)
    expose_codes: bool = False              # echo the code in the API response
    swallow_delivery_errors: bool = False   # keep going when email/SMS fails
    allow_clear: bool = False               # enable the wipe endpoint


RESET_POLICY_PROFILES: Dict[str, ResetPolicy] = {
    "production": ResetPolicy(
        name="production",
        rate_limit_window=timedelta(minutes=15),
        max_requests=3,
    ),
    "development": ResetPolicy(
        name="development",
        rate_limit_window=timedelta(minutes=2),
        max_requests=10,
        expose_codes=True,
        swallow_delivery_errors=True,
        allow_clear=True,
    ),
    "test": ResetPolicy(
        name="test",
        rate_limit_window=timedelta(minutes=15),
        max_requests=3,
        expose_codes=True,
        swallow_delivery_errors=True,
        allow_clear=True,
    ),
}


class Settings(BaseSettings):
    ENV: str = os.getenv("ENV", "development")  # development, test, production
    DEBUG: bool = ENV in ["development", "test"]

    # Database settings
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "rentaladmin")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "rentalpass")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "car_rental_db")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    DATABASE_URL: str = os.getenv("DATABASE_URL", f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}")
    DB_AUTO_CREATE: bool = os.getenv("DB_AUTO_CREATE", "false").lower() == "true"

    # Database connection pool settings
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))
    DB_POOL_TIMEOUT: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "3600"))

    # Auth settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "supersecretkey")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    MIN_PASSWORD_LENGTH: int = 6

    # SMTP Email settings
    SMTP_SERVER: str = os.getenv("SMTP_SERVER", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    SMTP_USE_SSL: bool = os.getenv("SMTP_USE_SSL", "false").lower() == "true"
    SENDER_EMAIL: str = os.getenv("SENDER_EMAIL", "")
    SENDER_NAME: str = os.getenv("SENDER_NAME", "Car Rental Admin")
    SUPPORT_EMAIL: str = os.getenv("SUPPORT_EMAIL", "")
    EMAIL_ENABLED: bool = os.getenv("EMAIL_ENABLED", "true").lower() == "true"
    EMAIL_RETRY_ATTEMPTS: int = int(os.getenv("EMAIL_RETRY_ATTEMPTS", "3"))
    EMAIL_RETRY_DELAY: int = int(os.getenv("EMAIL_RETRY_DELAY", "5"))

    # Twilio SMS settings
    TWILIO_ENABLED: bool = os.getenv("TWILIO_ENABLED", "false").lower() == "true"
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    DEFAULT_COUNTRY_CODE: str = os.getenv("DEFAULT_COUNTRY_CODE", "+63")

    # Booking rules
    EXTENSION_PAYMENT_WINDOW_HOURS: int = int(os.getenv("EXTENSION_PAYMENT_WINDOW_HOURS", "24"))
    MAINTENANCE_DAYS_AFTER_BOOKING: int = int(os.getenv("MAINTENANCE_DAYS_AFTER_BOOKING", "1"))

    # API specific settings
    API_PREFIX: str = "/api/v1"
    APP_NAME: str = "Car Rental"
    APP_VERSION: str = "1.0.0"

    @property
    def reset_policy(self) -> ResetPolicy:
        """Forgot-password profile for the current ENV (unknown envs get production)."""
        return RESET_POLICY_PROFILES.get(self.ENV, RESET_POLICY_PROFILES["production"])

    class Config:
        case_sensitive = True
        env_file = None


settings = Settings()
