from __future__ import annotations
import os
from pathlib import Path

# Absolute project dir
BASE_DIR = Path(__file__).resolve().parent
# Absolute instance dir (defaults to <project>/instance)
INSTANCE_DIR = Path(os.getenv("INSTANCE_DIR", BASE_DIR / "instance")).resolve()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    # Flask basics
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")  # override in prod!
    JSON_SORT_KEYS = False

    # Database (absolute sqlite path; forward slashes are fine on Windows)
    DEFAULT_SQLITE = f"sqlite:///{(INSTANCE_DIR / 'database.db').as_posix()}"
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", DEFAULT_SQLITE)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Uploads (bulk import files)
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 10 * 1024 * 1024))

    # Session tokens
    TOKEN_MAX_AGE_SECONDS = int(os.getenv("TOKEN_MAX_AGE_SECONDS", 7 * 24 * 60 * 60))
    TOKEN_SALT = os.getenv("TOKEN_SALT", "icollect-session")
    MIN_PASSWORD_LENGTH = int(os.getenv("MIN_PASSWORD_LENGTH", 6))

    # Card query surface
    CARDS_DEFAULT_PAGE_SIZE = int(os.getenv("CARDS_DEFAULT_PAGE_SIZE", 50))
    CARDS_MAX_PAGE_SIZE = int(os.getenv("CARDS_MAX_PAGE_SIZE", 100))
    SEARCH_MAX_RESULTS = int(os.getenv("SEARCH_MAX_RESULTS", 50))

    # Display-only currency conversion (not a live FX lookup)
    JPY_TO_USD_RATE = float(os.getenv("JPY_TO_USD_RATE", 0.0067))
    JPY_TO_EUR_RATE = float(os.getenv("JPY_TO_EUR_RATE", 0.0062))

    # Price feed used by `flask prices refresh`
    PRICE_FEED_URL = os.getenv("PRICE_FEED_URL")
    PRICE_FEED_TIMEOUT = int(os.getenv("PRICE_FEED_TIMEOUT", 20))
    PRICE_FEED_UA = os.getenv("PRICE_FEED_UA", "iCollect/1.0 (+https://icollect.local)")

    # Rate limiting
    RATELIMIT_ENABLED = _env_flag("RATELIMIT_ENABLED", "1")
    RATELIMIT_STORAGE_URI = os.getenv(
        "RATELIMIT_STORAGE_URI",
        os.getenv("REDIS_URL") or "memory://",
    )
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "200 per minute")
    RATELIMIT_AUTH = os.getenv("RATELIMIT_AUTH", "10 per minute")

    # Security headers
    ENABLE_TALISMAN = _env_flag("ENABLE_TALISMAN", "1")
    TALISMAN_FORCE_HTTPS = _env_flag("TALISMAN_FORCE_HTTPS", "1")
    CONTENT_SECURITY_POLICY = {
        "default-src": "'self'",
        "img-src": "'self' data: https:",
        "script-src": "'self'",
        "style-src": "'self' 'unsafe-inline'",
        "connect-src": "'self'",
    }


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    TEMPLATES_AUTO_RELOAD = True
    TALISMAN_FORCE_HTTPS = False


class ProductionConfig(BaseConfig):
    DEBUG = False


def _select_config():
    env = os.getenv("FLASK_ENV")
    if env == "development":
        return DevelopmentConfig
    secret = os.getenv("SECRET_KEY", "dev")
    if not secret or secret == "dev":
        raise RuntimeError("SECRET_KEY must be set to a non-default value in production.")
    return ProductionConfig


# Choose config
Config = _select_config()
