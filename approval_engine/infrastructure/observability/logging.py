"""Structured JSON logging for the approval console engine"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from approval_engine.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_fetch(kind: str, sequence: int, total: int, page: int, duration_ms: float) -> None:
    logging.info(
        "Page fetched",
        extra={
            "step": "fetch_complete",
            "kind": kind,
            "sequence": sequence,
            "total": total,
            "page": page,
            "duration_ms": duration_ms,
        },
    )


def log_transition(
    kind: str,
    application_id: str,
    action: str,
    success: bool,
    error: Optional[str] = None,
) -> None:
    """Log one status change attempt"""
    level = logging.INFO if success else logging.WARNING
    logging.log(
        level,
        "Status transition completed" if success else "Status transition failed",
        extra={
            "step": "transition",
            "kind": kind,
            "application_id": application_id,
            "action": action,
            "outcome": "success" if success else "failure",
            "error": error,
        },
    )


def log_bulk_outcome(kind: str, action: str, succeeded: int, failed: int, duration_ms: float) -> None:
    """Log aggregate result of a bulk run"""
    logging.info(
        "Bulk action completed",
        extra={
            "step": "bulk_complete",
            "kind": kind,
            "action": action,
            "succeeded": succeeded,
            "failed": failed,
            "duration_ms": duration_ms,
        },
    )
