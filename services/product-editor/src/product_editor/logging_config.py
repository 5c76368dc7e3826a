"""
Structured logging configuration with correlation ID support.
Provides a JSON logging format for log aggregation and a plain format for local use.
"""

import functools
import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
product_id_var: ContextVar[str] = ContextVar("product_id", default="")


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set correlation ID for the current context."""
    cid = correlation_id or generate_correlation_id()
    correlation_id_var.set(cid)
    return cid


def get_correlation_id() -> str:
    """Get correlation ID for the current context."""
    return correlation_id_var.get()


def set_product_id(product_id) -> None:
    """Set the product being edited for the current context."""
    product_id_var.set("" if product_id is None else str(product_id))


def get_product_id() -> str:
    """Get the product being edited for the current context."""
    return product_id_var.get()


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs one JSON object per line, suitable for log aggregation.
    """

    def __init__(self, service_name: str = "product-editor"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "correlation_id": getattr(record, "correlation_id", None) or get_correlation_id(),
            "product_id": getattr(record, "product_id", None) or get_product_id(),
        }

        if record.funcName:
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        if hasattr(record, "category_id"):
            log_data["category_id"] = record.category_id
        if hasattr(record, "variant_index"):
            log_data["variant_index"] = record.variant_index
        if hasattr(record, "section"):
            log_data["section"] = record.section

        if hasattr(record, "extra_data") and isinstance(record.extra_data, dict):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        if hasattr(record, "duration_ms"):
            log_data["duration_ms"] = record.duration_ms
        if hasattr(record, "metrics"):
            log_data["metrics"] = record.metrics

        return json.dumps(log_data, default=str)


class ContextualLogger(logging.LoggerAdapter):
    """
    Logger adapter that stamps every record with the editing context.

    Bound fields (``category_id``, ``variant_index``, ``section``) come from
    ``bind``; the correlation and product ids are read from the context vars
    when the record is emitted. Values passed in ``extra`` take precedence.
    """

    def process(self, msg, kwargs):
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        extra.setdefault("correlation_id", get_correlation_id())
        extra.setdefault("product_id", get_product_id())
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **fields) -> "ContextualLogger":
        """Return a logger that adds ``fields`` to every record."""
        return ContextualLogger(self.logger, {**self.extra, **fields})


def get_logger(name: str, **fields) -> ContextualLogger:
    """Module-level logger for editor code, optionally pre-bound to fields."""
    return ContextualLogger(logging.getLogger(name), fields)


def configure_logging(
    level: str = "INFO",
    service_name: str = "product-editor",
    json_format: bool = False,
) -> None:
    """
    Configure logging for the editor process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        service_name: Name of the service for log identification
        json_format: Emit structured JSON lines instead of plain text
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if json_format:
        handler.setFormatter(StructuredJsonFormatter(service_name))
    else:
        handler.setFormatter(
            logging.Formatter(
                "[%(levelname)s] %(asctime)s - %(name)s - %(message)s"
            )
        )

    root_logger.addHandler(handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


class LogContext:
    """
    Context manager for scoping a correlation ID and product ID.

    Example:
        with LogContext(correlation_id="abc", product_id=12):
            logger.info("Saving product")
    """

    def __init__(self, **context):
        self.context = context
        self.previous_correlation_id = None
        self.previous_product_id = None

    def __enter__(self):
        if "correlation_id" in self.context:
            self.previous_correlation_id = get_correlation_id()
            set_correlation_id(self.context["correlation_id"])
        if "product_id" in self.context:
            self.previous_product_id = get_product_id()
            set_product_id(self.context["product_id"])
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_correlation_id is not None:
            correlation_id_var.set(self.previous_correlation_id)
        if self.previous_product_id is not None:
            product_id_var.set(self.previous_product_id)
        return False


def log_execution_time(logger: logging.Logger):
    """
    Decorator to log function execution time.

    Example:
        @log_execution_time(logger)
        def save(self):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.info(
                    f"{func.__name__} completed",
                    extra={"duration_ms": round(duration_ms, 2)},
                )
                return result
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"{func.__name__} failed after {duration_ms:.2f}ms: {e}",
                    extra={"duration_ms": round(duration_ms, 2)},
                    exc_info=True,
                )
                raise
        return wrapper
    return decorator
