"""Shared response envelopes."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PagedResponse(BaseModel, Generic[T]):
    """One page of results plus paging metadata."""

    items: list[T]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool


def paged_response(page: Any, schema: type[BaseModel]) -> PagedResponse[Any]:
    """Convert a service-layer page of ORM rows into a response envelope."""
    return PagedResponse[schema](  # type: ignore[valid-type]
        items=[schema.model_validate(item) for item in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
        has_previous_page=page.has_previous_page,
        has_next_page=page.has_next_page,
    )
