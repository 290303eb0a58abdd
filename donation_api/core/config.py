import os
from typing import Dict, List, Optional
from dotenv import load_dotenv

# grab env vars from .env file
load_dotenv()


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "https://reiwametta-foundation-frontend.vercel.app",
    "https://reiwametta-foundation.vercel.app",
]


def _split_csv(raw: Optional[str]) -> List[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def _as_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # app settings
    APP_ENV: str = os.getenv("APP_ENV", "dev")
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS allow-list, never a wildcard
    ALLOWED_ORIGINS: List[str] = _split_csv(os.getenv("ALLOWED_ORIGINS")) or list(DEFAULT_ALLOWED_ORIGINS)

    # database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql+psycopg://donations:@localhost:5432/donations")
    DB_CONNECTION_TIMEOUT: int = int(os.getenv("DB_CONNECTION_TIMEOUT", "5"))
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    DB_RETRY_INTERVAL_SECONDS: float = float(os.getenv("DB_RETRY_INTERVAL_SECONDS", "10"))
    DB_AUTO_CREATE: bool = _as_bool(os.getenv("DB_AUTO_CREATE"), True)

    # payment gateway
    PAYMENTS_PROVIDER: str = os.getenv("PAYMENTS_PROVIDER", "razorpay")
    RAZORPAY_KEY_ID: str | None = os.getenv("RAZORPAY_KEY_ID")
    RAZORPAY_KEY_SECRET: str | None = os.getenv("RAZORPAY_KEY_SECRET")
    RAZORPAY_PLAN_ID: str | None = os.getenv("RAZORPAY_PLAN_ID")
    RAZORPAY_SUBSCRIPTION_CYCLES: str | None = os.getenv("RAZORPAY_SUBSCRIPTION_CYCLES")
    RAZORPAY_API_URL: str = os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1")
    RAZORPAY_TIMEOUT_SECONDS: float = float(os.getenv("RAZORPAY_TIMEOUT_SECONDS", "10"))

    # donations are INR only; the multiplier converts rupees to the gateway unit
    CURRENCY: str = "INR"
    AMOUNT_SUBUNIT_MULTIPLIER: int = int(os.getenv("AMOUNT_SUBUNIT_MULTIPLIER", "10"))
    DEFAULT_SUBSCRIPTION_CYCLES: int = 12

    def __init__(self, **overrides):
        # explicit overrides win over the environment (tests, embedding)
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    def configuration_report(self) -> Dict[str, bool]:
        """which of the required variables are present, never their values."""
        return {
            "DATABASE_URL": bool(self.DATABASE_URL),
            "RAZORPAY_KEY_ID": bool(self.RAZORPAY_KEY_ID),
            "RAZORPAY_KEY_SECRET": bool(self.RAZORPAY_KEY_SECRET),
            "RAZORPAY_PLAN_ID": bool(self.RAZORPAY_PLAN_ID),
        }


settings = Settings()
