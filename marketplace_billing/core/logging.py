"""Structured logging for billing and quota events.

Every record is a JSON line tagged with the engine name and version, the
correlation id of the request that caused it and, when present, the
subscription context (subscriber, subscription, plan, module) lifted into
its own ``billing`` object so log queries can filter on it directly.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Keys promoted from ``extra`` into the ``billing`` object
BILLING_CONTEXT_KEYS = (
    "subscriber_id",
    "subscription_id",
    "plan_slug",
    "module_slug",
    "billing_cycle",
    "status",
)

_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "correlation_id"}


def get_correlation_id() -> str:
    """Current correlation id, generating one for this context if unset."""
    cid = correlation_id_var.get()
    if cid is None:
        cid = str(uuid.uuid4())
        correlation_id_var.set(cid)
    return cid


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    correlation_id_var.set(None)


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredFormatter(logging.Formatter):
    """Render log records as billing JSON lines.

    Args:
        service_name: Engine name stamped on every line
        service_version: Engine version stamped on every line
        include_stack_trace: Attach formatted tracebacks for exceptions
    """

    def __init__(
        self,
        service_name: str = "marketplace-billing",
        service_version: Optional[str] = None,
        include_stack_trace: bool = True,
    ):
        super().__init__()
        self.service_name = service_name
        self.service_version = service_version
        self.include_stack_trace = include_stack_trace

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": self.service_name,
            "version": self.service_version,
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None) or get_correlation_id(),
        }

        billing: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            target = billing if key in BILLING_CONTEXT_KEYS else extra
            target[key] = _jsonable(value)

        if billing:
            entry["billing"] = billing
        if extra:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            error: dict[str, Any] = {"type": exc_type.__name__, "message": str(exc_value)}
            if self.include_stack_trace and exc_tb is not None:
                error["stack_trace"] = traceback.format_exception(exc_type, exc_value, exc_tb)
            entry["error"] = error

        return json.dumps(entry, default=str)


class CorrelationIdFilter(logging.Filter):
    """Stamp the current correlation id on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = "marketplace-billing",
    service_version: Optional[str] = None,
) -> logging.Handler:
    """Install the engine's stdout handler on the root logger.

    Calling it again replaces the handler installed by the previous call and
    leaves handlers installed by the host application alone.

    Returns:
        The installed handler
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        if getattr(handler, "_billing_handler", False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler._billing_handler = True
    handler.setLevel(level.upper())
    handler.addFilter(CorrelationIdFilter())

    if json_format:
        handler.setFormatter(StructuredFormatter(service_name, service_version))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s"
        ))

    root_logger.addHandler(handler)
    return handler


def log_error(
    logger: logging.Logger,
    message: str,
    exception: Optional[Exception] = None,
    **extra: Any,
) -> None:
    """Log an error with correlation ID and optional exception."""
    extra["correlation_id"] = get_correlation_id()
    logger.error(message, exc_info=exception, extra=extra)


def log_warning(logger: logging.Logger, message: str, **extra: Any) -> None:
    extra["correlation_id"] = get_correlation_id()
    logger.warning(message, extra=extra)


def log_info(logger: logging.Logger, message: str, **extra: Any) -> None:
    extra["correlation_id"] = get_correlation_id()
    logger.info(message, extra=extra)


def log_debug(logger: logging.Logger, message: str, **extra: Any) -> None:
    extra["correlation_id"] = get_correlation_id()
    logger.debug(message, extra=extra)
