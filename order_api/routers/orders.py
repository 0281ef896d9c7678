"""
order_api/routers/orders.py — Customer endpoints
POST /place-order, GET /customer/orders. Both require the customer secret.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.orm import Session

from order_api.core.auth import Role, require_role
from order_api.core.logging import log_error
from order_api.core.rate_limiter import enforce_rate_limit
from order_api.db.session import get_db
from order_api.models import OrderRequest, OrderWithProducts
from order_api.services import order_aggregator, order_service

router = APIRouter()


async def parse_order_request(request: Request) -> OrderRequest:
    """
    Parse the JSON body by hand so the rate limit and auth dependencies run
    before any body error is reported.
    """
    body = await request.body()
    try:
        return OrderRequest.model_validate_json(body)
    except ValidationError as exc:
        logger.info(f"Rejected order body: {exc.error_count()} error(s)")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON format",
        )


async def throttle_customer_orders(request: Request) -> None:
    if request.app.state.settings.throttle_customer_orders:
        await enforce_rate_limit(request)


def customer_id_from_header(
    x_customer_id: str | None = Header(None, alias="X-Customer-ID"),
) -> int:
    """Missing or non-numeric header reads as customer 0, which owns nothing."""
    try:
        return int(x_customer_id or "")
    except ValueError:
        return 0


# ──────────────────────────────────────────────────────────────────────────────
# POST /place-order
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/place-order",
    status_code=status.HTTP_201_CREATED,
    response_class=PlainTextResponse,
    dependencies=[Depends(enforce_rate_limit), Depends(require_role(Role.CUSTOMER))],
)
def place_order(
    request: Request,
    body: OrderRequest = Depends(parse_order_request),
    db: Session = Depends(get_db),
) -> str:
    try:
        order_service.place_order(
            db, body, report_path=request.app.state.settings.report_path
        )
    except order_service.OrderValidationError as exc:
        logger.info(f"Order validation error: {exc}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Validation error: {exc}",
        )
    except Exception as exc:
        log_error("orders_router", "place_order", exc, {"customer_id": body.customer_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )
    return "Order placed successfully"


# ──────────────────────────────────────────────────────────────────────────────
# GET /customer/orders
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/customer/orders",
    response_model=list[OrderWithProducts],
    dependencies=[Depends(throttle_customer_orders), Depends(require_role(Role.CUSTOMER))],
)
def customer_orders(
    customer_id: int = Depends(customer_id_from_header),
    db: Session = Depends(get_db),
) -> list[OrderWithProducts]:
    try:
        return order_aggregator.get_customer_orders(db, customer_id)
    except Exception as exc:
        log_error("orders_router", "customer_orders", exc, {"customer_id": customer_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )
