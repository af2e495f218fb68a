"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from dscr_gateway.domain.models import RateQuote


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "dscr-gateway", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "dscr-gateway") -> None:
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


def log_rate_calculation(
    request_id: str,
    quote: RateQuote,
    loan_amount: str,
    input_hash: str,
    duration_ms: float,
) -> None:
    """Log structured rate outcome for analysis"""
    logging.info(
        "Rate calculation completed",
        extra={
            "request_id": request_id,
            "step": "rate_complete",
            "rate_outcome": quote.outcome,
            "interest_rate": str(quote.interest_rate),
            "monthly_noi": str(quote.monthly_noi),
            "loan_amount": loan_amount,
            "meets_target": quote.meets_target,
            "transactions_used": quote.transactions_used,
            "outliers_removed": quote.outliers_removed,
            "input_hash": input_hash,
            "duration_ms": duration_ms,
        },
    )
