"""Logging setup: JSON lines outside local development, plain text otherwise.

Modules log through ``logging.getLogger(__name__)`` and pass ids such as
``student_id`` or ``correlation_id`` in ``extra``; the JSON formatter emits
them as top-level keys.
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

from app.config import settings, wallet_policy

HANDLER_NAME = "campus-wallet"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class WalletJsonFormatter(jsonlogger.JsonFormatter):
    """Stamps every record with service, environment and school timezone"""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = settings.APP_NAME
        log_record["environment"] = settings.ENVIRONMENT
        log_record.setdefault("timezone", wallet_policy.timezone)


def build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return WalletJsonFormatter("%(asctime)s %(level)s %(name)s %(message)s", datefmt=DATE_FORMAT)
    return logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s", datefmt=DATE_FORMAT)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Handler:
    """
    Install the stdout handler on the root logger and return it.

    Calling it again replaces the previous handler instead of stacking a
    second one, so re-importing app.main in tests does not duplicate lines.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(build_formatter(fmt or settings.LOG_FORMAT))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel((level or settings.LOG_LEVEL).upper())

    # Per-request access lines come from RequestTimingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return handler
