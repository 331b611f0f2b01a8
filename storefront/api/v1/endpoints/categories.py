"""Category endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.auth import get_actor
from storefront.db.session import get_db
from storefront.schemas.catalog import CategoryCreate, CategoryResponse, CategoryStatisticsResponse, ProductResponse
from storefront.schemas.common import PagedResponse, paged_response
from storefront.services.catalog_service import (
    category_statistics,
    create_category,
    list_categories,
    require_category,
    search_products,
)

router: APIRouter = APIRouter()


@router.get("", response_model=list[CategoryResponse])
def get_categories(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[CategoryResponse]:
    return [CategoryResponse.model_validate(category) for category in list_categories(db, include_inactive)]


@router.get("/statistics", response_model=list[CategoryStatisticsResponse])
def get_all_category_statistics(db: Session = Depends(get_db)) -> list[CategoryStatisticsResponse]:
    return [CategoryStatisticsResponse.model_validate(stats) for stats in category_statistics(db)]

@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, db: Session = Depends(get_db)) -> CategoryResponse:
    return CategoryResponse.model_validate(require_category(db, category_id))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def post_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
) -> CategoryResponse:
    category = create_category(
        db,
        name=payload.name,
        parent_category_id=payload.parent_category_id,
        display_order=payload.display_order,
        actor=actor,
    )
    return CategoryResponse.model_validate(category)


@router.get("/{category_id}/products", response_model=PagedResponse[ProductResponse])
def get_category_products(
    category_id: int,
    page_number: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> PagedResponse[ProductResponse]:
    """Return active products of one category, paged."""
    require_category(db, category_id)
    page = search_products(db, category_id=category_id, page_number=page_number, page_size=page_size)
    return paged_response(page, ProductResponse)


@router.get("/{category_id}/statistics", response_model=CategoryStatisticsResponse)
def get_category_statistics(category_id: int, db: Session = Depends(get_db)) -> CategoryStatisticsResponse:
    """Active product count and average price for one category."""
    return CategoryStatisticsResponse.model_validate(category_statistics(db, category_id)[0])
