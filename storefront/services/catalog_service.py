"""Category and product operations with audit trail."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from storefront.models import Category, Order, OrderItem, Product
from storefront.services.audit_service import record_audit, snapshot
from storefront.services.errors import NotFoundError, ValidationError
from storefront.services.order_status import DELIVERED
from storefront.services.order_totals import round_money
from storefront.services.pagination import Page, paginate
from storefront.utils.time import utcnow

logger = logging.getLogger(__name__)

CATEGORY_FIELDS: tuple[str, ...] = ("name", "parent_category_id", "display_order", "is_active")
PRODUCT_FIELDS: tuple[str, ...] = ("name", "description", "price", "category_id", "is_active")

PRODUCT_SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "created": Product.created_at,
}


def get_category(db: Session, category_id: int) -> Category | None:
    return db.get(Category, category_id)


def get_product(db: Session, product_id: int) -> Product | None:
    return db.get(Product, product_id)


def require_category(db: Session, category_id: int) -> Category:
    category = get_category(db, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def require_product(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def list_categories(db: Session, include_inactive: bool = False) -> list[Category]:
    stmt = select(Category)
    if not include_inactive:
        stmt = stmt.where(Category.is_active.is_(True))
    stmt = stmt.order_by(Category.display_order.asc(), Category.name.asc())
    return list(db.scalars(stmt).all())


def create_category(
    db: Session,
    *,
    name: str,
    parent_category_id: int | None = None,
    display_order: int = 0,
    actor: str | None = None,
) -> Category:
    if not name.strip():
        raise ValidationError.single("name", "Category name must not be empty")
    if display_order < 0:
        raise ValidationError.single("display_order", "Display order must not be negative")
    if parent_category_id is not None:
        require_category(db, parent_category_id)

    category = Category(name=name.strip(), parent_category_id=parent_category_id, display_order=display_order)
    db.add(category)
    db.flush()
    record_audit(
        db,
        table_name="Categories",
        action="INSERT",
        record_id=category.id,
        actor=actor,
        new_values=snapshot(category, CATEGORY_FIELDS),
    )
    db.commit()
    db.refresh(category)
    logger.info("Created category %s (%s)", category.id, category.name)
    return category


def search_products(
    db: Session,
    *,
    search_term: str | None = None,
    category_id: int | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    active_only: bool = True,
    sort_by: str = "name",
    sort_direction: str = "asc",
    page_number: int = 1,
    page_size: int | None = None,
) -> Page[Product]:
    """Filter, sort and page products; search matches name or description."""
    stmt = select(Product).options(selectinload(Product.category))
    if active_only:
        stmt = stmt.where(Product.is_active.is_(True))
    if search_term:
        pattern = f"%{search_term.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(func.coalesce(Product.description, "")).like(pattern),
            )
        )
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    if min_price is not None:
        stmt = stmt.where(Product.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Product.price <= max_price)

    column = PRODUCT_SORT_COLUMNS.get(sort_by.lower())
    if column is None:
        raise ValidationError.single("sort_by", f"Cannot sort products by '{sort_by}'")
    ordering = column.desc() if sort_direction.lower() == "desc" else column.asc()
    stmt = stmt.order_by(ordering, Product.id.asc())
    return paginate(db, stmt, page_number, page_size)


def _validate_product_fields(db: Session, name: str, price: Decimal, category_id: int) -> None:
    if not name.strip():
        raise ValidationError.single("name", "Product name must not be empty")
    if price <= 0 or price > Decimal("999999.99"):
        raise ValidationError.single("price", "Price must be greater than 0 and at most 999999.99")
    category = require_category(db, category_id)
    if not category.is_active:
        raise ValidationError.single("category_id", f"Category with ID {category_id} is not active", category_id)


def create_product(
    db: Session,
    *,
    name: str,
    price: Decimal,
    category_id: int,
    description: str | None = None,
    actor: str | None = None,
) -> Product:
    _validate_product_fields(db, name, price, category_id)
    product = Product(name=name.strip(), description=description, price=price, category_id=category_id)
    db.add(product)
    db.flush()
    record_audit(
        db,
        table_name="Products",
        action="INSERT",
        record_id=product.id,
        actor=actor,
        new_values=snapshot(product, PRODUCT_FIELDS),
    )
    db.commit()
    db.refresh(product)
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


def update_product(
    db: Session,
    product_id: int,
    *,
    name: str,
    price: Decimal,
    category_id: int,
    description: str | None = None,
    is_active: bool = True,
    actor: str | None = None,
) -> Product:
    product = require_product(db, product_id)
    _validate_product_fields(db, name, price, category_id)

    before = snapshot(product, PRODUCT_FIELDS)
    product.name = name.strip()
    product.description = description
    product.price = price
    product.category_id = category_id
    product.is_active = is_active
    product.modified_at = utcnow()
    record_audit(
        db,
        table_name="Products",
        action="UPDATE",
        record_id=product.id,
        actor=actor,
        old_values=before,
        new_values=snapshot(product, PRODUCT_FIELDS),
    )
    db.commit()
    db.refresh(product)
    return product


def deactivate_product(db: Session, product_id: int, actor: str | None = None) -> Product:
    """Soft-delete a product; existing order lines keep referencing it."""
    product = require_product(db, product_id)
    if not product.is_active:
        return product

    before = snapshot(product, PRODUCT_FIELDS)
    product.is_active = False
    product.modified_at = utcnow()
    record_audit(
        db,
        table_name="Products",
        action="DELETE",
        record_id=product.id,
        actor=actor,
        old_values=before,
        new_values=snapshot(product, PRODUCT_FIELDS),
    )
    db.commit()
    db.refresh(product)
    logger.info("Deactivated product %s", product.id)
    return product


@dataclass(frozen=True)
class ProductSales:
    product: Product
    quantity_sold: int


@dataclass(frozen=True)
class CategoryStatistics:
    category_id: int
    category_name: str
    product_count: int
    average_price: Decimal
    is_active: bool
    created_at: datetime


def top_selling_products(db: Session, count: int = 10, days_back: int = 30) -> list[ProductSales]:
    """Rank active products by quantity sold in delivered orders of the last ``days_back`` days.

    Products without sales in the window rank last with a quantity of zero.
    """
    cutoff = utcnow() - timedelta(days=days_back)
    sold = (
        select(OrderItem.product_id, func.sum(OrderItem.quantity).label("quantity_sold"))
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.status == DELIVERED, Order.order_date >= cutoff)
        .group_by(OrderItem.product_id)
        .subquery()
    )
    quantity_sold = func.coalesce(sold.c.quantity_sold, 0)
    stmt = (
        select(Product, quantity_sold)
        .options(selectinload(Product.category))
        .outerjoin(sold, sold.c.product_id == Product.id)
        .where(Product.is_active.is_(True))
        .order_by(quantity_sold.desc(), Product.id.asc())
        .limit(count)
    )
    return [ProductSales(product=product, quantity_sold=int(quantity)) for product, quantity in db.execute(stmt).all()]


def category_statistics(db: Session, category_id: int | None = None) -> list[CategoryStatistics]:
    """Active product count and average active product price per category."""
    if category_id is not None:
        require_category(db, category_id)

    product_count = func.count(Product.id)
    average_price = func.avg(Product.price)
    stmt = (
        select(Category, product_count, average_price)
        .outerjoin(Product, (Product.category_id == Category.id) & Product.is_active.is_(True))
        .group_by(Category.id)
        .order_by(Category.display_order.asc(), Category.name.asc())
    )
    if category_id is not None:
        stmt = stmt.where(Category.id == category_id)

    return [
        CategoryStatistics(
            category_id=category.id,
            category_name=category.name,
            product_count=count,
            average_price=round_money(Decimal(str(average))) if average is not None else Decimal("0.00"),
            is_active=category.is_active,
            created_at=category.created_at,
        )
        for category, count, average in db.execute(stmt).all()
    ]
