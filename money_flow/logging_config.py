"""Structured logging for the service process."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from money_flow.config import get_settings


class ServiceFilter(logging.Filter):
    """Stamp service and environment onto every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        settings = get_settings()
        record.service_name = "money-flow-ledger"
        record.environment = settings.ENVIRONMENT
        return True


def configure_logging() -> None:
    """Configure the root logger once per process."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ServiceFilter())
    if settings.LOG_JSON:
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(service_name)s "
            "%(environment)s %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.LOG_LEVEL)
