"""Schema exports."""

from storefront.schemas.audit import AuditRecordResponse
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryResponse,
    CategoryStatisticsResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    TopSellingProductResponse,
)
from storefront.schemas.common import PagedResponse, paged_response
from storefront.schemas.customer import (
    CustomerCreate,
    CustomerOrderSummaryResponse,
    CustomerResponse,
    CustomerUpdate,
)
from storefront.schemas.order import (
    OrderCancel,
    OrderCountResponse,
    OrderCreate,
    OrderItemPayload,
    OrderItemResponse,
    OrderProcessingResult,
    OrderResponse,
    OrderStatusUpdate,
    OrderTotalResponse,
    TotalSalesResponse,
)

__all__ = [
    "AuditRecordResponse",
    "CategoryCreate",
    "CategoryResponse",
    "CategoryStatisticsResponse",
    "ProductCreate",
    "ProductResponse",
    "ProductUpdate",
    "TopSellingProductResponse",
    "PagedResponse",
    "paged_response",
    "CustomerCreate",
    "CustomerOrderSummaryResponse",
    "CustomerResponse",
    "CustomerUpdate",
    "OrderCancel",
    "OrderCountResponse",
    "OrderCreate",
    "OrderItemPayload",
    "OrderItemResponse",
    "OrderProcessingResult",
    "OrderResponse",
    "OrderStatusUpdate",
    "OrderTotalResponse",
    "TotalSalesResponse",
]
