"""Order endpoints."""

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Header, Query, Response, status
from sqlalchemy.orm import Session

from storefront.auth import get_actor
from storefront.db.session import get_db
from storefront.schemas.common import PagedResponse, paged_response
from storefront.schemas.order import (
    OrderCancel,
    OrderCountResponse,
    OrderCreate,
    OrderProcessingResult,
    OrderResponse,
    OrderStatusUpdate,
    OrderTotalResponse,
    TotalSalesResponse,
)
from storefront.services.order_service import (
    calculate_order_total,
    cancel_order,
    count_orders_by_status,
    create_order,
    list_orders,
    require_order,
    total_sales,
    update_order_status,
)
from storefront.services.order_totals import OrderLine

router: APIRouter = APIRouter()


@router.get("", response_model=PagedResponse[OrderResponse])
def get_orders(
    customer_id: int | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    min_amount: Decimal | None = Query(default=None, ge=0),
    page_number: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> PagedResponse[OrderResponse]:
    """Return orders newest first, filtered by customer, status, dates or amount."""
    page = list_orders(
        db,
        customer_id=customer_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        min_total=min_amount,
        page_number=page_number,
        page_size=page_size,
    )
    return paged_response(page, OrderResponse)


@router.get("/count-by-status", response_model=OrderCountResponse)
def get_order_count_by_status(
    status_value: str = Query(alias="status", min_length=1),
    db: Session = Depends(get_db),
) -> OrderCountResponse:
    count = count_orders_by_status(db, status_value)
    return OrderCountResponse(status=status_value, count=count)


@router.get("/total-sales", response_model=TotalSalesResponse)
def get_total_sales(
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
) -> TotalSalesResponse:
    """Sum delivered order totals within an optional date range."""
    return TotalSalesResponse(
        start_date=start_date,
        end_date=end_date,
        total_sales=total_sales(db, start_date=start_date, end_date=end_date),
    )


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)) -> OrderResponse:
    return OrderResponse.model_validate(require_order(db, order_id))


@router.post("", response_model=OrderProcessingResult, status_code=status.HTTP_201_CREATED)
def post_order(
    payload: OrderCreate,
    response: Response,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key", max_length=64),
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> OrderProcessingResult:
    """Create an order; a repeated Idempotency-Key returns the original order with 200."""
    lines = [
        OrderLine(product_id=item.product_id, quantity=item.quantity, unit_price=item.unit_price)
        for item in payload.items
    ]
    result = create_order(
        db,
        payload.customer_id,
        lines,
        shipping_address=payload.shipping_address,
        idempotency_key=idempotency_key,
        actor=actor,
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return OrderProcessingResult.model_validate(result)


@router.patch("/{order_id}/status", response_model=OrderResponse)
def patch_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> OrderResponse:
    order = update_order_status(db, order_id, payload.status, actor=actor, reason=payload.reason)
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/cancel", response_model=OrderResponse)
def patch_order_cancel(
    order_id: int,
    payload: OrderCancel | None = None,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> OrderResponse:
    reason: str = payload.reason if payload is not None else OrderCancel().reason
    return OrderResponse.model_validate(cancel_order(db, order_id, reason, actor=actor))


@router.get("/{order_id}/calculate-total", response_model=OrderTotalResponse)
def get_order_calculated_total(order_id: int, db: Session = Depends(get_db)) -> OrderTotalResponse:
    """Recompute the total from stored order lines."""
    return OrderTotalResponse(order_id=order_id, total_amount=calculate_order_total(db, order_id))
