"""Customer API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CustomerCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=6, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str | None = Field(default=None, max_length=20)


class CustomerUpdate(CustomerCreate):
    is_active: bool = True


class CustomerResponse(BaseModel):
    """Serialized customer."""

    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str | None
    is_active: bool
    created_at: datetime
    modified_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class CustomerOrderSummaryResponse(BaseModel):
    """Order totals for one customer over a recent window."""

    customer_id: int
    customer_name: str
    email: str
    total_orders: int
    total_spent: Decimal
    average_order_value: Decimal
    first_order_date: datetime | None
    last_order_date: datetime | None
    customer_lifespan_days: int
    days_since_last_order: int | None

    model_config = ConfigDict(from_attributes=True)
