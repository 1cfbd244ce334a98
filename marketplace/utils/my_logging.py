# marketplace/utils/my_logging.py
"""Logging configuration shared by the API, the Celery worker and the seed script"""
import logging
import sys
from typing import Dict

from marketplace.config.settings import get_settings

# Kept at WARNING unless LOG_LEVEL is DEBUG. request_logging_middleware already
# logs every request, and email_tasks logs each send and retry itself.
QUIET_LOGGERS: Dict[str, int] = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "kombu": logging.WARNING,
    "amqp": logging.WARNING,
    "celery.worker.strategy": logging.WARNING,
    "celery.app.trace": logging.WARNING,
}

# Only errors from these when not verbose
NOISY_LOGGERS = (
    "sqlalchemy",
    "alembic",
    "celery",
    "redis",
    "uvicorn",
    "uvicorn.error",
)


def setup_logging(verbose=True) -> int:
    """Configure logging once per process and return the level in effect"""
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(process)d - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else max(level, quiet_level))

    if not verbose:
        for name in (*NOISY_LOGGERS, *QUIET_LOGGERS):
            logger = logging.getLogger(name)
            logger.setLevel(logging.ERROR)
            logger.propagate = False

    return level
