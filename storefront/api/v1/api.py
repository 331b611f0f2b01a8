"""API v1 router composition."""

from fastapi import APIRouter

from storefront.api.v1.endpoints import audit, categories, customers, orders, products

api_router: APIRouter = APIRouter()
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(audit.router, prefix="/audit", tags=["audit"])
