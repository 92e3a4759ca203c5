"""Structured JSON logging for forecast and anomaly requests"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping every record with UTC time, level and service name"""

    def __init__(self, *args, service_name: str = "safespend-engine", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "safespend-engine") -> None:
    """Route all records through one stdout handler emitting JSON lines"""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service_name=service_name)
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def log_forecast(
    request_id: str,
    user_id: str,
    safe_to_spend_today: Decimal,
    hard_cap: Decimal,
    danger: bool,
    duration_ms: float,
) -> None:
    """Log structured safe-to-spend outcome for analysis"""
    logging.info(
        "Safe-to-spend computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "forecast_complete",
            "outcome": "danger" if danger else "safe",
            "safe_to_spend_today": str(safe_to_spend_today),
            "hard_cap": str(hard_cap),
            "duration_ms": duration_ms,
        },
    )


def log_anomalies(request_id: str, user_id: str, flagged: int, duration_ms: float) -> None:
    """Log how many transactions an anomaly pass flagged"""
    logging.info(
        "Anomaly detection completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "anomalies_complete",
            "flagged_count": flagged,
            "duration_ms": duration_ms,
        },
    )
