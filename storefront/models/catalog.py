"""Category and product ORM models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base
from storefront.utils.time import utcnow

PRICE_CATEGORY_BOUNDS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("50.00"), "Budget"),
    (Decimal("200.00"), "Standard"),
    (Decimal("500.00"), "Premium"),
)


def price_category_for(price: Decimal) -> str:
    """Bucket a price into Budget/Standard/Premium/Luxury."""
    for upper_bound, label in PRICE_CATEGORY_BOUNDS:
        if price < upper_bound:
            return label
    return "Luxury"


class Category(Base):
    """Hierarchical product category."""

    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="ck_categories_name_not_empty"),
        CheckConstraint("display_order >= 0", name="ck_categories_display_order_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent_category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    parent_category: Mapped["Category | None"] = relationship(remote_side=[id], back_populates="sub_categories")
    sub_categories: Mapped[list["Category"]] = relationship(back_populates="parent_category")
    products: Mapped[list["Product"]] = relationship(back_populates="category")


class Product(Base):
    """Sellable product; search text and price category are derived on read."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="ck_products_name_not_empty"),
        CheckConstraint("price > 0", name="ck_products_price_positive"),
        CheckConstraint("price <= 999999.99", name="ck_products_price_reasonable"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    category: Mapped[Category] = relationship(back_populates="products")

    @property
    def price_category(self) -> str:
        return price_category_for(self.price)

    @property
    def category_name(self) -> str:
        return self.category.name if self.category is not None else ""
