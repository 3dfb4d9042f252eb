# autoshop/utils/my_logging.py
"""Logging configuration"""
import logging
import sys

from autoshop.config.settings import get_settings
from autoshop.core.middleware import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"


def setup_logging(verbose=True):
    """
    Configure application logging for the API and the Celery worker.

    Every record carries the request correlation id ("-" outside a request).
    With verbose=False only warnings are shown and library chatter is muted.
    """
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )

    # SQL echo is controlled by the engine, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if not verbose:
        for name in ("sqlalchemy", "alembic", "celery", "kombu", "uvicorn.access"):
            logging.getLogger(name).setLevel(logging.ERROR)
