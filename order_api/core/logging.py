"""
order_api/core/logging.py — loguru structured JSON logging setup
Every event record carries timestamp, component and operation keys.
"""
from __future__ import annotations

import json
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger


def setup_logging(log_level: str = "INFO") -> None:
    """Configure loguru for structured JSON output to stdout."""
    logger.remove()

    logger.add(
        sys.stdout,
        level=log_level.upper(),
        format="{message}",
        serialize=True,
        backtrace=True,
        diagnose=False,  # Never dump local variables (tokens, passwords)
        colorize=False,
    )


def _build_log_record(
    component: str,
    operation: str,
    extra: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build a base structured log record."""
    record: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "component": component,
        "operation": operation,
    }
    if extra:
        record.update(extra)
    return record


# ──────────────────────────────────────────────────────────────────────────────
# Event helpers
# ──────────────────────────────────────────────────────────────────────────────

def log_order_placed(
    order_id: int,
    customer_id: int,
    product_count: int,
) -> None:
    record = _build_log_record("order_service", "place_order", {
        "order_id": order_id,
        "customer_id": customer_id,
        "product_count": product_count,
    })
    logger.info(json.dumps(record))


def log_report_export(
    order_id: int,
    path: str,
    success: bool,
    rows: int = 0,
    error: Optional[str] = None,
) -> None:
    record = _build_log_record("order_report", "export_csv", {
        "order_id": order_id,
        "path": path,
        "success": success,
        "rows": rows,
        "error": error,
    })
    if success:
        logger.info(json.dumps(record))
    else:
        logger.warning(json.dumps(record))


def log_email_send(
    to_address: str,
    order_id: int,
    success: bool,
    error: Optional[str] = None,
) -> None:
    """Every reminder dispatch is logged, successful or not."""
    record = _build_log_record("smtp_client", "email_send", {
        "to_address": to_address,
        "order_id": order_id,
        "success": success,
        "error": error,
    })
    if success:
        logger.info(json.dumps(record))
    else:
        logger.warning(json.dumps(record))


def log_reminder_sweep(
    pending_count: int,
    sent_count: int,
    failed_count: int,
) -> None:
    record = _build_log_record("reminder_scheduler", "sweep", {
        "pending_count": pending_count,
        "sent_count": sent_count,
        "failed_count": failed_count,
    })
    logger.info(json.dumps(record))


def log_error(
    component: str,
    operation: str,
    error: Exception,
    context: Optional[dict[str, Any]] = None,
) -> None:
    """Log an error with its type, message and a truncated stack trace."""
    tb = traceback.format_exc()
    record = _build_log_record(component, operation, {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "stack_trace": tb[:2000] if tb else "",
        "context": context or {},
    })
    logger.error(json.dumps(record))
