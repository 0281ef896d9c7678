"""
tests/test_order_service.py — Validation, atomic persistence and CSV export
"""
from __future__ import annotations

import csv
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from order_api.db.models import Order, OrderProduct
from order_api.models import OrderLine, OrderRequest
from order_api.services import order_service
from order_api.services.order_service import (
    MAX_STORED_INT,
    OrderValidationError,
    place_order,
    validate_order_request,
)


def _request(customer_id=7, lines=((3, 2), (5, 1))) -> OrderRequest:
    return OrderRequest(
        customer_id=customer_id,
        products=[OrderLine(product_id=p, quantity=q) for p, q in lines],
    )


def _count(db, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


# ── Validation ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "request_obj",
    [
        _request(customer_id=0),
        _request(customer_id=-4),
        _request(lines=()),
        _request(lines=((3, 0),)),
        _request(lines=((3, 2), (5, -1))),
        _request(lines=((0, 1),)),
        _request(lines=((3, 1), (3, 2))),
        _request(customer_id=2**31),
        _request(lines=((2**31, 1),)),
        _request(lines=((3, 2**64),)),
    ],
)
def test_invalid_requests_rejected_without_persistence(db, request_obj):
    with pytest.raises(OrderValidationError):
        place_order(db, request_obj)
    assert _count(db, Order) == 0
    assert _count(db, OrderProduct) == 0


def test_missing_fields_fail_validation():
    with pytest.raises(OrderValidationError, match="customer_id"):
        validate_order_request(OrderRequest())


def test_valid_request_passes_validation():
    validate_order_request(_request())


def test_largest_stored_quantity_passes_validation():
    validate_order_request(_request(lines=((3, MAX_STORED_INT),)))


# ── Persistence ──────────────────────────────────────────────────────────────

def test_place_order_persists_exact_lines(db):
    order_id = place_order(db, _request())

    order = db.get(Order, order_id)
    assert order.customer_id == 7
    assert order.status == "Pending"
    assert order.date is not None

    lines = db.execute(
        select(OrderProduct.product_id, OrderProduct.quantity)
        .where(OrderProduct.order_id == order_id)
    ).all()
    assert sorted(lines) == [(3, 2), (5, 1)]


def test_failed_association_rolls_back_header(db):
    # Product 404 does not exist: the association insert violates its FK
    with pytest.raises(IntegrityError):
        place_order(db, _request(lines=((3, 1), (404, 1))))
    assert _count(db, Order) == 0
    assert _count(db, OrderProduct) == 0


def test_unknown_customer_is_store_error(db):
    with pytest.raises(IntegrityError):
        place_order(db, _request(customer_id=999))
    assert _count(db, Order) == 0


# ── Report side effect ───────────────────────────────────────────────────────

def test_report_written_after_placement(db, tmp_path):
    path = tmp_path / "reports" / "order_report.csv"
    order_id = place_order(db, _request(), report_path=path)

    with path.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))

    assert rows[0] == [
        "Order ID", "Customer ID", "Date", "Status",
        "Product ID", "Product Name", "Price", "Quantity",
    ]
    body = sorted(rows[1:], key=lambda r: r[4])
    assert [r[0] for r in body] == [str(order_id)] * 2
    assert body[0][4:] == ["3", "Keyboard", "49.90", "2"]
    assert body[1][4:] == ["5", "Mouse", "19.99", "1"]
    assert body[0][3] == "Pending"


def test_report_failure_does_not_fail_placement(db, tmp_path):
    with patch.object(
        order_service, "generate_order_report", side_effect=OSError("disk full")
    ) as mock_report:
        order_id = place_order(db, _request(), report_path=tmp_path / "r.csv")

    mock_report.assert_called_once()
    assert db.get(Order, order_id) is not None


def test_no_report_without_path(db):
    with patch.object(order_service, "generate_order_report") as mock_report:
        place_order(db, _request(), report_path=None)
    mock_report.assert_not_called()
