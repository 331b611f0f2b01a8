"""Application models package."""

from storefront.models.audit_log import AUDIT_ACTIONS, AuditRecord
from storefront.models.catalog import Category, Product
from storefront.models.customer import Customer
from storefront.models.order import ORDER_STATUSES, Order, OrderItem

__all__ = [
    "AUDIT_ACTIONS", "AuditRecord", "Category", "Product", "Customer", "ORDER_STATUSES", "Order", "OrderItem",
]
