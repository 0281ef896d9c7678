"""
order_api/services/order_report.py — CSV export of a freshly placed order
One row per product line. The file is overwritten for each new order.
"""
from __future__ import annotations

import csv
import threading
from pathlib import Path
from typing import Union

from sqlalchemy.orm import Session

from order_api.core import logging as app_logging
from order_api.models import OrderWithProducts
from order_api.services.order_aggregator import get_order_details

REPORT_HEADER = [
    "Order ID",
    "Customer ID",
    "Date",
    "Status",
    "Product ID",
    "Product Name",
    "Price",
    "Quantity",
]

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Concurrent placements share one report file
_write_lock = threading.Lock()


class OrderNotFoundError(LookupError):
    pass


def report_rows(order: OrderWithProducts) -> list[list[str]]:
    return [
        [
            str(order.order_id),
            str(order.customer_id),
            order.date.strftime(DATE_FORMAT),
            order.status,
            str(product.product_id),
            product.product_name,
            f"{product.price:.2f}",
            str(product.quantity),
        ]
        for product in order.products
    ]


def write_order_report(order: OrderWithProducts, path: Union[str, Path]) -> int:
    """Write the report for `order` to `path`. Returns the number of product rows."""
    rows = report_rows(order)
    target = Path(path)
    with _write_lock:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(REPORT_HEADER)
            writer.writerows(rows)
    return len(rows)


def generate_order_report(
    db: Session,
    order_id: int,
    customer_id: int,
    path: Union[str, Path],
) -> int:
    """Load the order's full detail and export it. Raises on any failure."""
    order = get_order_details(db, order_id, customer_id)
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found for customer {customer_id}")
    written = write_order_report(order, path)
    app_logging.log_report_export(order_id, str(path), success=True, rows=written)
    return written
