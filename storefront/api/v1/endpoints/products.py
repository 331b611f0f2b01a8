"""Product endpoints."""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.auth import get_actor
from storefront.db.session import get_db
from storefront.schemas.catalog import ProductCreate, ProductResponse, ProductUpdate, TopSellingProductResponse
from storefront.schemas.common import PagedResponse, paged_response
from storefront.services.catalog_service import (
    create_product,
    deactivate_product,
    require_product,
    search_products,
    top_selling_products,
    update_product,
)

router: APIRouter = APIRouter()


@router.get("", response_model=PagedResponse[ProductResponse])
def get_products(
    search_term: str | None = Query(default=None),
    category_id: int | None = Query(default=None),
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    sort_by: str = Query(default="name"),
    sort_direction: str = Query(default="asc"),
    page_number: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> PagedResponse[ProductResponse]:
    """Search active products with filters, sorting and paging."""
    page = search_products(
        db,
        search_term=search_term,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_direction=sort_direction,
        page_number=page_number,
        page_size=page_size,
    )
    return paged_response(page, ProductResponse)


@router.get("/top-selling", response_model=list[TopSellingProductResponse])
def get_top_selling_products(
    count: int = Query(default=10, ge=1, le=100),
    days_back: int = Query(default=30, ge=1),
    db: Session = Depends(get_db),
) -> list[TopSellingProductResponse]:
    """Rank active products by quantity sold in delivered orders."""
    return [
        TopSellingProductResponse(
            **ProductResponse.model_validate(entry.product).model_dump(),
            quantity_sold=entry.quantity_sold,
        )
        for entry in top_selling_products(db, count=count, days_back=days_back)
    ]

@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)) -> ProductResponse:
    return ProductResponse.model_validate(require_product(db, product_id))


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def post_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> ProductResponse:
    product = create_product(
        db,
        name=payload.name,
        description=payload.description,
        price=payload.price,
        category_id=payload.category_id,
        actor=actor,
    )
    return ProductResponse.model_validate(product)


@router.put("/{product_id}", response_model=ProductResponse)
def put_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> ProductResponse:
    product = update_product(
        db,
        product_id,
        name=payload.name,
        description=payload.description,
        price=payload.price,
        category_id=payload.category_id,
        is_active=payload.is_active,
        actor=actor,
    )
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> None:
    """Deactivate a product; rows are never physically removed."""
    deactivate_product(db, product_id, actor=actor)
