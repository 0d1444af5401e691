"""
Structured JSON logging and audit trail.
Every record carries the service name and, when available, the request Correlation ID.
"""
import logging
import sys
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from banking.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s %(service)s"


class CorrelationIdFilter(logging.Filter):
    """Injects correlation_id and service into every record, preserving values passed via `extra`."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = "N/A"
        record.service = self._service_name
        return True


def configure_logging(level: str = settings.LOG_LEVEL, service_name: str = settings.APP_NAME) -> logging.Logger:
    """Configures the package logger with a single JSON stream handler."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(LOG_FORMAT, rename_fields={"levelname": "level", "name": "logger"}))
    handler.addFilter(CorrelationIdFilter(service_name))

    root = logging.getLogger("banking")
    root.setLevel(level.upper())
    # Replace handlers to avoid duplicated records on reload
    root.handlers = [handler]
    root.propagate = False
    return root


logger = configure_logging()
audit_logger = logging.getLogger("banking.audit")


def get_logger_with_correlation(correlation_id: str) -> logging.LoggerAdapter:
    """Returns a logger adapter bound to a Correlation ID."""
    return logging.LoggerAdapter(logger, {"correlation_id": correlation_id})


def audit_log(action: str, user: str, resource: str, details: Optional[Dict[str, Any]] = None) -> None:
    """
    Emits an audit record for a bank operation.
    Callers are responsible for masking tax ids and keys in `details`.
    """
    details = details or {}
    audit_logger.info(
        f"AUDIT: {action}",
        extra={
            "action": action,
            "user": user,
            "resource": resource,
            "details": details,
            "correlation_id": details.get("correlation_id"),
        },
    )
