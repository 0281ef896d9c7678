"""
order_api/services/order_aggregator.py — Nested order views from flat join rows
All three reads share one inner join (orders ⋈ order_products ⋈ products) and
one grouping pass. Because the join is inner, an order with no associated
products yields no row and never appears in any result.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from order_api.db.models import Order, OrderProduct, Product
from order_api.models import OrderWithProducts, ProductEntry


def _order_products_query() -> Select:
    """One row per (order, product) pair."""
    return (
        select(
            Order.id.label("order_id"),
            Order.customer_id,
            Order.date,
            Order.status,
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            Product.price,
            Product.description,
            Product.image_url,
            OrderProduct.quantity,
        )
        .select_from(Order)
        .join(OrderProduct, OrderProduct.order_id == Order.id)
        .join(Product, Product.id == OrderProduct.product_id)
    )


def _product_entry(row: Mapping[str, Any]) -> ProductEntry:
    return ProductEntry(
        product_id=row["product_id"],
        product_name=row["product_name"],
        price=float(row["price"]),
        description=row["description"],
        image_url=row["image_url"],
        quantity=row["quantity"],
    )


def group_order_rows(rows: Iterable[Mapping[str, Any]]) -> list[OrderWithProducts]:
    """
    Fold flat join rows into one OrderWithProducts per order id.
    First sight of an order creates it with a single product; later rows
    append. Product order follows row arrival order.
    """
    orders: dict[int, OrderWithProducts] = {}
    for row in rows:
        product = _product_entry(row)
        order = orders.get(row["order_id"])
        if order is None:
            orders[row["order_id"]] = OrderWithProducts(
                order_id=row["order_id"],
                customer_id=row["customer_id"],
                date=row["date"],
                status=row["status"],
                products=[product],
            )
        else:
            order.products.append(product)
    return list(orders.values())


def _fetch(db: Session, stmt: Select) -> list[OrderWithProducts]:
    # All rows are fetched before grouping; a failed fetch returns nothing
    rows = db.execute(stmt).mappings().all()
    return group_order_rows(rows)


def get_order_details(
    db: Session,
    order_id: int,
    customer_id: int,
) -> Optional[OrderWithProducts]:
    """
    Fetch one order scoped to its owner.
    Returns None when the order does not exist or belongs to another customer.
    """
    stmt = _order_products_query().where(
        Order.id == order_id,
        Order.customer_id == customer_id,
    )
    orders = _fetch(db, stmt)
    return orders[0] if orders else None


def get_customer_orders(db: Session, customer_id: int) -> list[OrderWithProducts]:
    """Fetch every order owned by `customer_id`, grouped with its products."""
    stmt = _order_products_query().where(Order.customer_id == customer_id)
    return _fetch(db, stmt)


def get_all_orders(db: Session) -> list[OrderWithProducts]:
    """Fetch every order in the system, grouped with its products."""
    return _fetch(db, _order_products_query())
