"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from rental_lifecycle.domain.models import RunSummary


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str = "rental-lifecycle", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "rental-lifecycle") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_run_summary(run_id: str, summary: RunSummary, duration_ms: float) -> None:
    """Log structured run outcome for monitoring"""
    logging.getLogger("rental_lifecycle.run").info(
        "Lifecycle run completed" if summary.success else "Lifecycle run aborted",
        extra={
            "run_id": run_id,
            "step": "run_complete",
            "success": summary.success,
            "scanned": summary.scanned,
            "expired": summary.expired,
            "warnings_sent": summary.warnings_sent,
            "overdue_marked": summary.overdue_marked,
            "auto_processed": summary.auto_processed,
            "notifications_dispatched": summary.notifications_dispatched,
            "conflicts": summary.conflicts,
            "errors": summary.errors,
            "error_cause": summary.error,
            "duration_ms": duration_ms,
        },
    )
