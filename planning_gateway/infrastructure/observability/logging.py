"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from planning_gateway.config import settings


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


def log_schedule_generated(
    request_id: str,
    debt_account_id: str,
    entries_created: int,
    entries_replaced: int,
    balance_cents: int,
    duration_ms: float,
) -> None:
    """Log structured schedule generation outcome"""
    logging.info(
        "Debt schedule generated",
        extra={
            "request_id": request_id,
            "debt_account_id": debt_account_id,
            "step": "schedule_generated",
            "entries_created": entries_created,
            "entries_replaced": entries_replaced,
            "balance_cents": balance_cents,
            "duration_ms": duration_ms,
        },
    )


def log_payment_confirmed(
    request_id: str,
    schedule_id: str,
    debt_account_id: str,
    already_paid: bool,
    balance_cents: int,
) -> None:
    """Log structured payment confirmation outcome"""
    logging.info(
        "Debt payment confirmed",
        extra={
            "request_id": request_id,
            "schedule_id": schedule_id,
            "debt_account_id": debt_account_id,
            "step": "payment_confirmed",
            "outcome": "already_paid" if already_paid else "confirmed",
            "balance_cents": balance_cents,
        },
    )
