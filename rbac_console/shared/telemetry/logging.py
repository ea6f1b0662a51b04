"""Logging configuration for the RBAC console"""
import logging
import sys

from rbac_console.infrastructure.config.settings import get_settings
from rbac_console.shared.utils.sanitization import sanitize_log_context

settings = get_settings()


class SensitiveDataFilter(logging.Filter):
    """
    Redact secrets from log records before they are emitted.

    Covers the message text, positional/mapping arguments and the structured
    ``context`` attribute passed through ``extra={"context": {...}}``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = sanitize_log_context(record.msg)

        if isinstance(record.args, dict):
            record.args = sanitize_log_context(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(sanitize_log_context(arg) for arg in record.args)

        context = getattr(record, "context", None)
        if context is not None:
            record.context = sanitize_log_context(context)

        return True


def setup_logging():
    """Configure application-wide logging"""
    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SensitiveDataFilter())

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[handler],
    )


def get_logger(name: str) -> logging.Logger:
    """Get logger for module"""
    return logging.getLogger(name)
