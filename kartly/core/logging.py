# kartly/core/logging.py
import logging
import sys
from datetime import datetime
from typing import Dict, Any
from pythonjsonlogger import jsonlogger

from kartly.core.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.utcnow().isoformat()

        if record.name:
            log_record["logger"] = record.name

        log_record["level"] = record.levelname

        # Tenant and request context, when the caller passed it via `extra`
        if hasattr(record, "vendor_id"):
            log_record["vendor_id"] = record.vendor_id

        if hasattr(record, "order_id"):
            log_record["order_id"] = record.order_id

        if hasattr(record, "request_id"):
            log_record["request_id"] = record.request_id


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure structured JSON logging"""
    logger = logging.getLogger("kartly")
    logger.setLevel(level)
    logger.propagate = False

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


# Initialize logger
logger = setup_logging(settings.LOG_LEVEL)
