"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str = "client-tracker", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "client-tracker") -> None:
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


def log_transition(
    operation: str,
    payment_id: int,
    client_id: int,
    previous_status: str,
    new_status: str,
    score_change: int,
    client_score: int,
    duration_ms: float,
    request_id: Optional[str] = None,
) -> None:
    """Log structured transition outcome for audit and analysis"""
    logging.info(
        "Payment transition committed",
        extra={
            "request_id": request_id,
            "step": "transition_committed",
            "operation": operation,
            "payment_id": payment_id,
            "client_id": client_id,
            "previous_status": previous_status,
            "new_status": new_status,
            "score_change": score_change,
            "client_score": client_score,
            "duration_ms": duration_ms,
        },
    )


def log_sweep(examined: int, marked: int, failed: int, duration_ms: float) -> None:
    """Log the outcome of one outstanding-payment sweep"""
    logging.info(
        "Outstanding sweep finished",
        extra={
            "step": "sweep_complete",
            "examined": examined,
            "marked": marked,
            "failed": failed,
            "duration_ms": duration_ms,
        },
    )


def log_request(request_id: str, method: str, path: str, status: int, duration_ms: float) -> None:
    """Access log line, one per HTTP request"""
    logging.info(
        f"{method} {path} {status}",
        extra={
            "request_id": request_id,
            "step": "http_request",
            "method": method,
            "path": path,
            "status": status,
            "duration_ms": duration_ms,
        },
    )
