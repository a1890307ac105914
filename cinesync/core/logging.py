# cinesync/core/logging.py

import logging
import sys

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from cinesync.core.config import Settings


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers that chatter on every proxied TMDB call or Redis message
QUIET_LOGGERS = ("httpx", "httpcore", "redis", "jose", "sentry_sdk.errors")


def setup_logging(settings: Settings) -> None:
    """
    Configure application-wide logging.

    - Root level from settings.LOG_LEVEL (INFO unless overridden)
    - Logs go to stdout so the container runtime picks them up
    - TMDB proxy, Redis and token-decoding noise is held at WARNING
    - Uvicorn keeps its request log at INFO
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Uvicorn (or a test runner) may already have installed handlers
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.INFO)


def setup_error_reporting(settings: Settings) -> bool:
    """
    Send errors to Sentry when SENTRY_DSN is set.

    INFO records become breadcrumbs and ERROR records become events, so the
    room and proxy failures logged across the app show up there without
    extra calls. Returns whether reporting was enabled.
    """
    if not settings.SENTRY_DSN:
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        release=f"{settings.APP_NAME.lower()}@{settings.VERSION}",
        integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
    )
    logging.getLogger(__name__).info("Error reporting enabled (environment=%s)", settings.ENVIRONMENT)
    return True


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Helper to get a logger with our app's configuration applied.

    Usage:
        from cinesync.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Room created")
    """
    return logging.getLogger(name)
