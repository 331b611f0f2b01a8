"""Order API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class OrderItemPayload(BaseModel):
    """Single requested order line."""

    product_id: int
    quantity: int
    unit_price: Decimal


class OrderCreate(BaseModel):
    """Create a new order for a customer."""

    customer_id: int
    shipping_address: str | None = Field(default=None, max_length=500)
    items: list[OrderItemPayload]


class OrderStatusUpdate(BaseModel):
    status: str
    reason: str | None = Field(default=None, max_length=500)


class OrderCancel(BaseModel):
    reason: str = Field(default="Cancelled by user", max_length=500)


class OrderProcessingResult(BaseModel):
    """Outcome of order creation."""

    order_id: int
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    order_date: datetime
    status: str
    created: bool

    model_config = ConfigDict(from_attributes=True)


class OrderItemResponse(BaseModel):
    """Serialized order item with derived line total."""

    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Serialized order with its items."""

    id: int
    customer_id: int
    order_date: datetime
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: str
    shipping_address: str | None
    created_at: datetime
    modified_at: datetime | None
    items: list[OrderItemResponse]

    model_config = ConfigDict(from_attributes=True)


class OrderTotalResponse(BaseModel):
    order_id: int
    total_amount: Decimal


class OrderCountResponse(BaseModel):
    status: str
    count: int


class TotalSalesResponse(BaseModel):
    start_date: datetime | None
    end_date: datetime | None
    total_sales: Decimal
