# cinesync/core/config.py
import os
from typing import List, Literal

from dotenv import load_dotenv


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """
    Setup environment variables.
        - SECRET_KEY signs session tokens
        - TMDB_API_KEY the key injected into proxied TMDB requests
        - PUB_SUB_SERVICE the fan-out backend: "memory" or "redis"
        - SENTRY_DSN optional error reporting

    Built once at start-up; collaborators receive it explicitly.
    """

    def __init__(self) -> None:
        # Load environment variables from the .env file
        load_dotenv()

        self.APP_NAME: str = os.getenv("APP_NAME", "CineSync")
        self.VERSION: str = "1.0.0"
        self.ENVIRONMENT: str = os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV") or "production"

        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
        self.JWT_ALGORITHM: str = "HS256"
        self.SESSION_MAX_AGE: int = int(os.getenv("SESSION_MAX_AGE", "86400"))
        self.COOKIE_SECURE: bool = _env_flag("COOKIE_SECURE")
        self.ADMIN_EMAILS: List[str] = [e.lower() for e in _env_list("ADMIN_EMAILS")]

        self.TMDB_API_KEY: str = os.getenv("TMDB_API_KEY") or os.getenv("NEXT_PUBLIC_TMDB_API_KEY") or ""
        self.TMDB_BASE_URL: str = (
            os.getenv("TMDB_BASE_URL")
            or os.getenv("NEXT_PUBLIC_TMDB_BASE_URL")
            or "https://api.themoviedb.org/3"
        ).rstrip("/")
        self.TMDB_TIMEOUT: float = float(os.getenv("TMDB_TIMEOUT", "10"))

        self.SITE_URL: str = os.getenv("SITE_URL", "http://localhost:3000").rstrip("/")
        self.CORS_ORIGINS: List[str] = _env_list("CORS_ORIGINS", "*")

        self.PUB_SUB_SERVICE: Literal["memory", "redis"] = os.getenv("PUB_SUB_SERVICE", "memory")
        self.REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
        self.REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
        self.REDIS_ACCESS_KEY: str = os.getenv("REDIS_ACCESS_KEY", "")
        self.REDIS_SSL: bool = _env_flag("REDIS_SSL")

        self.SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def tmdb_configured(self) -> bool:
        return bool(self.TMDB_API_KEY)


settings = Settings()
