"""
Logging setup: an audit channel for operation start/finish lines and an
error channel for failures with stack traces
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from exam_backend.core.config import LOG_DIR, LOG_LEVEL

AUDIT_LOGGER_NAME = "exam_backend.audit"
ERROR_LOGGER_NAME = "exam_backend.errors"
HTTP_LOGGER_NAME = "exam_backend.http"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _file_handler(filename: str, level: int) -> logging.Handler:
    os.makedirs(LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(LOG_DIR, filename),
        maxBytes=20 * 1024 * 1024,
        backupCount=7,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure the application loggers once per process"""
    global _configured
    if _configured:
        return

    logging.basicConfig(level=level, format=LOG_FORMAT)

    if LOG_DIR:
        logging.getLogger(AUDIT_LOGGER_NAME).addHandler(_file_handler("audit.log", logging.INFO))
        logging.getLogger(ERROR_LOGGER_NAME).addHandler(_file_handler("errors.log", logging.ERROR))
        logging.getLogger(HTTP_LOGGER_NAME).addHandler(_file_handler("http.log", logging.INFO))

    _configured = True


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)


def get_error_logger() -> logging.Logger:
    return logging.getLogger(ERROR_LOGGER_NAME)


def get_http_logger() -> logging.Logger:
    return logging.getLogger(HTTP_LOGGER_NAME)
