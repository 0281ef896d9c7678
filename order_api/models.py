"""
order_api/models.py — Pydantic request/response schemas
OrderWithProducts is a read-time composition of orders, order_products and
products rows. It is never stored.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    """Status assigned on placement. The column itself accepts any string."""
    PENDING = "Pending"


# ──────────────────────────────────────────────────────────────────────────────
# Requests
# ──────────────────────────────────────────────────────────────────────────────

class OrderLine(BaseModel):
    # No coercion: "7", true and 2.0 are not integers
    model_config = ConfigDict(strict=True)

    product_id: int
    quantity: int


class OrderRequest(BaseModel):
    model_config = ConfigDict(strict=True)

    # Missing fields fall through to business validation, not a parse error
    customer_id: int = 0
    products: list[OrderLine] = Field(default_factory=list)


# ──────────────────────────────────────────────────────────────────────────────
# Responses
# ──────────────────────────────────────────────────────────────────────────────

class ProductEntry(BaseModel):
    product_id: int
    product_name: str
    price: float = Field(ge=0)
    description: Optional[str] = ""
    image_url: Optional[str] = ""
    quantity: int


class OrderWithProducts(BaseModel):
    order_id: int
    customer_id: int
    date: datetime
    status: str
    products: list[ProductEntry]


class PendingReminder(BaseModel):
    order_id: int
    customer_email: str
