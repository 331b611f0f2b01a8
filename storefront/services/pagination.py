"""Offset pagination over SQLAlchemy select statements."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from storefront.core.config import settings

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total_count: int
    page_number: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages


def clamp_page(page_number: int, page_size: int | None) -> tuple[int, int]:
    """Normalise page inputs to 1-based page and configured size bounds."""
    size: int = page_size or settings.default_page_size
    return max(page_number, 1), min(max(size, 1), settings.max_page_size)


def paginate(db: Session, stmt: Select[Any], page_number: int = 1, page_size: int | None = None) -> Page[Any]:
    number, size = clamp_page(page_number, page_size)
    total: int = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    items = list(db.scalars(stmt.offset((number - 1) * size).limit(size)).all())
    return Page(items=items, total_count=total, page_number=number, page_size=size)
