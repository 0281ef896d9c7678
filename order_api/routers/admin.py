"""
order_api/routers/admin.py — Admin endpoints
GET /admin/orders: every order in the system, with its owner and products.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from order_api.core.auth import Role, require_role
from order_api.core.logging import log_error
from order_api.core.rate_limiter import enforce_rate_limit
from order_api.db.session import get_db
from order_api.models import OrderWithProducts
from order_api.services import order_aggregator

router = APIRouter()


@router.get(
    "/admin/orders",
    response_model=list[OrderWithProducts],
    dependencies=[Depends(enforce_rate_limit), Depends(require_role(Role.ADMIN))],
)
def admin_orders(db: Session = Depends(get_db)) -> list[OrderWithProducts]:
    try:
        return order_aggregator.get_all_orders(db)
    except Exception as exc:
        log_error("admin_router", "admin_orders", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )
