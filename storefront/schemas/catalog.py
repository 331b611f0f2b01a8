"""Category and product API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    parent_category_id: int | None = None
    display_order: int = Field(default=0, ge=0)


class CategoryResponse(BaseModel):
    """Serialized category."""

    id: int
    name: str
    parent_category_id: int | None
    display_order: int
    is_active: bool
    created_at: datetime
    modified_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(gt=0, le=Decimal("999999.99"), decimal_places=2)
    category_id: int


class ProductUpdate(ProductCreate):
    is_active: bool = True


class ProductResponse(BaseModel):
    """Serialized product with derived price category."""

    id: int
    name: str
    description: str | None
    price: Decimal
    category_id: int
    category_name: str
    price_category: str
    is_active: bool
    created_at: datetime
    modified_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class TopSellingProductResponse(ProductResponse):
    """Product with the quantity sold in the ranking window."""

    quantity_sold: int


class CategoryStatisticsResponse(BaseModel):
    category_id: int
    category_name: str
    product_count: int
    average_price: Decimal
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
