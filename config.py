"""
Application Settings

Values come from environment variables (optionally a .env file).
Import this module anywhere a setting is needed.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# Sessions
JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-secret-change-me-in-production")
JWT_ALGORITHM = "HS256"
REGISTER_TOKEN_TTL = _int("REGISTER_TOKEN_TTL", 60 * 60)
LOGIN_TOKEN_TTL = _int("LOGIN_TOKEN_TTL", 7 * 24 * 60 * 60)
COOKIE_NAME = "token"
COOKIE_SECURE = _flag("COOKIE_SECURE")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

# Payments
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd")

# Rate limiting (window in minutes)
RATE_LIMIT_WINDOW = _int("RATE_LIMIT_WINDOW", 15)
RATE_LIMIT_MAX = _int("RATE_LIMIT_MAX", 100)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

PORT = _int("PORT", 8000)
