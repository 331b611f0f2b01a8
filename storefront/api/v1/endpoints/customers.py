"""Customer endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.auth import get_actor
from storefront.db.session import get_db
from storefront.schemas.common import PagedResponse, paged_response
from storefront.schemas.customer import CustomerCreate, CustomerOrderSummaryResponse, CustomerResponse, CustomerUpdate
from storefront.schemas.order import OrderResponse
from storefront.services.customer_service import (
    create_customer,
    customer_order_summary,
    get_customer_by_email,
    require_customer,
    search_customers,
    set_customer_active,
    update_customer,
)
from storefront.services.errors import NotFoundError
from storefront.services.order_service import get_customer_order_history

router: APIRouter = APIRouter()


@router.get("", response_model=PagedResponse[CustomerResponse])
def get_customers(
    search_term: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    page_number: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> PagedResponse[CustomerResponse]:
    page = search_customers(
        db,
        search_term=search_term,
        is_active=is_active,
        page_number=page_number,
        page_size=page_size,
    )
    return paged_response(page, CustomerResponse)


@router.get("/by-email/{email}", response_model=CustomerResponse)
def get_customer_with_email(email: str, db: Session = Depends(get_db)) -> CustomerResponse:
    customer = get_customer_by_email(db, email)
    if customer is None:
        raise NotFoundError("Customer", email)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)) -> CustomerResponse:
    return CustomerResponse.model_validate(require_customer(db, customer_id))


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def post_customer(
    payload: CustomerCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> CustomerResponse:
    customer = create_customer(
        db,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        phone=payload.phone,
        actor=actor,
    )
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
def put_customer(
    customer_id: int,
    payload: CustomerUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> CustomerResponse:
    customer = update_customer(
        db,
        customer_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        phone=payload.phone,
        is_active=payload.is_active,
        actor=actor,
    )
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> None:
    set_customer_active(db, customer_id, False, actor=actor)


@router.patch("/{customer_id}/reactivate", response_model=CustomerResponse)
def reactivate_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> CustomerResponse:
    return CustomerResponse.model_validate(set_customer_active(db, customer_id, True, actor=actor))


@router.get("/{customer_id}/orders", response_model=list[OrderResponse])
def get_customer_orders(
    customer_id: int,
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[OrderResponse]:
    """Return a customer's order history, newest first."""
    orders = get_customer_order_history(db, customer_id, start_date=start_date, end_date=end_date)
    return [OrderResponse.model_validate(order) for order in orders]


@router.get("/{customer_id}/order-summary", response_model=CustomerOrderSummaryResponse)
def get_customer_order_summary(
    customer_id: int,
    months_back: int = Query(default=12, ge=1),
    db: Session = Depends(get_db),
) -> CustomerOrderSummaryResponse:
    return CustomerOrderSummaryResponse.model_validate(customer_order_summary(db, customer_id, months_back))
