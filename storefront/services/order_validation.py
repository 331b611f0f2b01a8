"""Order validation against the catalog; reads only, never writes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.models import Customer, Product
from storefront.services.errors import ValidationError, Violation
from storefront.services.order_totals import OrderLine


@dataclass(frozen=True)
class ValidatedOrder:
    customer: Customer
    lines: list[OrderLine]


def _check_line(index: int, line: OrderLine, product: Product | None) -> list[Violation]:
    violations: list[Violation] = []
    field_prefix = f"items[{index}]"
    if product is None:
        violations.append(
            Violation(f"{field_prefix}.product_id", f"Product with ID {line.product_id} not found", line.product_id)
        )
    elif not product.is_active:
        violations.append(
            Violation(f"{field_prefix}.product_id", f"Product with ID {line.product_id} is not active", line.product_id)
        )

    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
        violations.append(
            Violation(
                f"{field_prefix}.quantity",
                f"Quantity must be a positive integer for product {line.product_id}",
                line.product_id,
            )
        )

    if not isinstance(line.unit_price, Decimal) or not line.unit_price.is_finite() or line.unit_price <= 0:
        violations.append(
            Violation(
                f"{field_prefix}.unit_price",
                f"Unit price must be greater than 0 for product {line.product_id}",
                line.product_id,
            )
        )
    elif line.unit_price.as_tuple().exponent < -2:
        violations.append(
            Violation(
                f"{field_prefix}.unit_price",
                f"Unit price must have at most 2 decimal places for product {line.product_id}",
                line.product_id,
            )
        )
    return violations


def validate_order(db: Session, customer_id: int, lines: Sequence[OrderLine]) -> ValidatedOrder:
    """Check customer, products, quantities and prices, collecting every violation."""
    violations: list[Violation] = []

    customer: Customer | None = db.get(Customer, customer_id)
    if customer is None:
        violations.append(Violation("customer_id", f"Customer with ID {customer_id} not found", customer_id))
    elif not customer.is_active:
        violations.append(Violation("customer_id", f"Customer with ID {customer_id} is not active", customer_id))

    if not lines:
        violations.append(Violation("items", "Order must contain at least one item"))
        raise ValidationError(violations)

    product_ids: set[int] = {line.product_id for line in lines}
    products: dict[int, Product] = {
        product.id: product for product in db.scalars(select(Product).where(Product.id.in_(product_ids))).all()
    }

    seen: set[int] = set()
    for index, line in enumerate(lines):
        violations.extend(_check_line(index, line, products.get(line.product_id)))
        if line.product_id in seen:
            violations.append(
                Violation(
                    f"items[{index}].product_id",
                    f"Product {line.product_id} appears more than once; combine the quantities",
                    line.product_id,
                )
            )
        seen.add(line.product_id)

    if violations or customer is None:
        raise ValidationError(violations)
    return ValidatedOrder(customer=customer, lines=list(lines))
