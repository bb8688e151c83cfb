"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from checkout_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment_attempt(
    session_id: str,
    transaction_id: str,
    package_id: str,
    outcome: str,
    duration_ms: float,
) -> None:
    """Log structured checkout outcome for analysis"""
    logging.info(
        "Payment attempt completed",
        extra={
            "session_id": session_id,
            "transaction_id": transaction_id,
            "package_id": package_id,
            "step": "payment_attempt_complete",
            "outcome": outcome,
            "duration_ms": duration_ms,
        },
    )


def log_queue_event(step: str, entry_id: str, queue_length: int, **fields: Any) -> None:
    """Log a queue lifecycle event (enqueued, waiting, sending, done)"""
    logging.getLogger("checkout_gateway.queue").info(
        f"Payment queue {step}",
        extra={"step": f"queue_{step}", "entry_id": entry_id, "queue_length": queue_length, **fields},
    )
