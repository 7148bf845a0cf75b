# intellibook/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from typing import Optional

from intellibook.config.settings import Settings, get_settings


def setup_logging(verbose=True, settings: Optional[Settings] = None):
    """Configure application logging"""
    settings = settings or get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if not settings.DB_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if not verbose:
        # Silence noisy loggers
        noisy_loggers = [
            "sqlalchemy",
            "sqlalchemy.pool",
            "alembic",
            "httpx",
            "uvicorn.access",
        ]
        for name in noisy_loggers:
            logging.getLogger(name).setLevel(logging.ERROR)
