"""Structured JSON logging configuration."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from app.core.config import settings
from app.middleware.request_id import RequestIdLogFilter

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s [%(request_id)s] %(message)s"


def setup_logging() -> None:
    """JSON to stdout in production, plain text elsewhere. Every record carries request_id."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdLogFilter())

    if settings.APP_ENV == "production":
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                LOG_FORMAT,
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.root.handlers = [handler]
    logging.root.setLevel(settings.LOG_LEVEL.upper())
