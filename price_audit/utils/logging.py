"""
Structured logging for the price audit service.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional
from price_audit.config import get_config


config = get_config()


class StructuredFormatter(logging.Formatter):
    """Formats log records as structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra"):
            log_obj.update(record.extra)

        return json.dumps(log_obj, default=str)


def setup_logging(name: str = __name__) -> logging.Logger:
    """Setup and return a configured logger."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, config.LOG_LEVEL))

    # Module-level loggers are created once per import; don't stack handlers
    if logger.handlers:
        return logger

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, config.LOG_LEVEL))
    console_formatter = logging.Formatter(config.LOG_FORMAT)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler with structured JSON
    if config.LOG_FILE:
        file_handler = logging.FileHandler(config.LOG_FILE)
        file_handler.setLevel(getattr(logging, config.LOG_LEVEL))
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def log_audit_event(
    logger: logging.Logger,
    component: str,
    action: str,
    details: Optional[dict] = None,
    level: int = logging.INFO,
) -> None:
    """Log a reconciliation event with context."""
    extra = {
        "component": component,
        "action": action,
    }
    if details:
        extra.update(details)

    logger.log(
        level,
        f"[{component}] {action}",
        extra={"extra": extra}
    )


def log_variance(
    logger: logging.Logger,
    supplier_name: str,
    item_name: str,
    invoice_number: Optional[str],
    price_change: float,
    percent_change: float,
) -> None:
    """Log a material price variance."""
    extra = {
        "type": "variance",
        "supplier": supplier_name,
        "item": item_name,
        "invoice_number": invoice_number,
        "price_change": round(price_change, 4),
        "percent_change": round(percent_change, 2),
    }
    direction = "increase" if price_change > 0 else "decrease"
    logger.warning(
        f"Price {direction} on {supplier_name} / {item_name}: {price_change:+.2f} ({percent_change:+.1f}%)",
        extra={"extra": extra}
    )
