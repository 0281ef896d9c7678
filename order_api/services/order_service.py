"""
order_api/services/order_service.py — Order placement
Validate → insert header + product associations in one transaction → export
the CSV report. The report is best-effort; placement never fails because of it.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_api.core import logging as app_logging
from order_api.db.models import Order, OrderProduct
from order_api.models import OrderRequest, OrderStatus
from order_api.services.order_report import generate_order_report
from order_api.utils.timezone import utc_now


class OrderValidationError(ValueError):
    """The order request is malformed. Maps to a client error."""


# Ids and quantities are stored in 32-bit INTEGER columns
MAX_STORED_INT = 2**31 - 1


def _in_range(value: int) -> bool:
    return 0 < value <= MAX_STORED_INT


def validate_order_request(request: OrderRequest) -> None:
    """Raise OrderValidationError on the first problem found."""
    if not _in_range(request.customer_id):
        raise OrderValidationError(
            f"customer_id must be a positive integer no greater than {MAX_STORED_INT}"
        )
    if not request.products:
        raise OrderValidationError("products must not be empty")

    seen: set[int] = set()
    for line in request.products:
        if not _in_range(line.product_id):
            raise OrderValidationError(
                f"product_id must be a positive integer no greater than {MAX_STORED_INT}"
            )
        if not _in_range(line.quantity):
            raise OrderValidationError(
                f"quantity for product {line.product_id} must be between 1 and {MAX_STORED_INT}"
            )
        if line.product_id in seen:
            raise OrderValidationError(
                f"product {line.product_id} listed more than once"
            )
        seen.add(line.product_id)


def create_order(db: Session, request: OrderRequest) -> int:
    """
    Insert the order header and its product associations atomically.
    Any store failure rolls back both and is re-raised.
    """
    try:
        order = Order(
            customer_id=request.customer_id,
            date=utc_now().replace(tzinfo=None),
            status=OrderStatus.PENDING.value,
        )
        db.add(order)
        db.flush()  # assign PK
        order_id = int(order.id)

        db.add_all([
            OrderProduct(
                order_id=order_id,
                product_id=line.product_id,
                quantity=line.quantity,
            )
            for line in request.products
        ])
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return order_id


def place_order(
    db: Session,
    request: OrderRequest,
    report_path: Optional[Union[str, Path]] = None,
) -> int:
    """Validate, persist and (optionally) export a new order. Returns its id."""
    validate_order_request(request)
    order_id = create_order(db, request)
    app_logging.log_order_placed(order_id, request.customer_id, len(request.products))

    if report_path:
        try:
            generate_order_report(db, order_id, request.customer_id, report_path)
        except Exception as exc:
            app_logging.log_report_export(
                order_id, str(report_path), success=False, error=str(exc)
            )
            app_logging.log_error(
                "order_report", "export_csv", exc, {"order_id": order_id}
            )

    return order_id
