"""
Environment-aware configuration.

Values come from the process environment (a .env file is read if present).
validate_config() runs once in create_app() and refuses to start on bad
durations or weak/identical signing secrets.
"""
import logging
import os
from dotenv import load_dotenv

from utils.durations import parse_duration

load_dotenv()  # Read .env if present

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32

DEV_ACCESS_SECRET = "dev-access-secret-change-me-0123456789abcdef"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-me-0123456789abcdef"


class BaseConfig:
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///auth-session.db")
    DB_CONNECT_TIMEOUT = float(os.getenv("DB_CONNECT_TIMEOUT", "5"))
    DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT", "5000"))
    DB_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "5"))
    DB_ECHO = os.getenv("DB_ECHO", "false").lower() in ("1", "true", "yes")

    # JWT
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_EXPIRES_IN = os.getenv("JWT_ACCESS_EXPIRES_IN", "15m")
    JWT_REFRESH_EXPIRES_IN = os.getenv("JWT_REFRESH_EXPIRES_IN", "7d")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "auth-session-api")

    # Argon2id cost parameters (memory in KiB)
    ARGON2_TIME_COST = int(os.getenv("ARGON2_TIME_COST", "3"))
    ARGON2_MEMORY_COST = int(os.getenv("ARGON2_MEMORY_COST", "65536"))
    ARGON2_PARALLELISM = int(os.getenv("ARGON2_PARALLELISM", "1"))

    # Refresh cookie
    REFRESH_COOKIE_NAME = "refreshToken"
    REFRESH_COOKIE_SECURE = False


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    APP_ENV = "dev"


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    DATABASE_URL = "sqlite://"
    JWT_ACCESS_SECRET = DEV_ACCESS_SECRET
    JWT_REFRESH_SECRET = DEV_REFRESH_SECRET
    # Cheap hashing keeps the suite fast; the parameters are still Argon2id.
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 8192


class ProductionConfig(BaseConfig):
    DEBUG = False
    APP_ENV = "production"
    REFRESH_COOKIE_SECURE = True


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def validate_config(config) -> None:
    """Raise ValueError if the loaded configuration cannot run safely."""
    for key in ("JWT_ACCESS_EXPIRES_IN", "JWT_REFRESH_EXPIRES_IN"):
        try:
            parse_duration(config[key])
        except ValueError as exc:
            raise ValueError(f"{key}: {exc}") from exc

    access, refresh = config["JWT_ACCESS_SECRET"], config["JWT_REFRESH_SECRET"]
    if not access or not refresh:
        raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET are required")
    if access == refresh:
        raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")

    if config["APP_ENV"] in ("prod", "production"):
        for key in ("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET"):
            if len(config[key]) < MIN_SECRET_LENGTH:
                raise ValueError(f"{key} must be at least {MIN_SECRET_LENGTH} characters")
            if config[key] in (DEV_ACCESS_SECRET, DEV_REFRESH_SECRET):
                raise ValueError(f"{key} must be set in production")
    elif access == DEV_ACCESS_SECRET or refresh == DEV_REFRESH_SECRET:
        logger.warning("using built-in development JWT secrets; set JWT_*_SECRET outside dev")
