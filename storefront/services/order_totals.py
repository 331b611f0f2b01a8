"""Order total calculation: subtotal, tax and grand total."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from storefront.core.config import settings

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class OrderLine:
    """Requested order line: product, quantity and unit price."""

    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return Decimal(quantity) * unit_price


def calculate_totals(lines: Iterable[OrderLine], tax_rate: Decimal | None = None) -> OrderTotals:
    """Compute subtotal, tax and total for already validated lines.

    Tax is rounded once on the subtotal rather than per line, so line counts
    never introduce rounding drift.
    """
    rate: Decimal = settings.order_tax_rate if tax_rate is None else Decimal(tax_rate)
    if rate < 0:
        raise ValueError("tax rate must not be negative")

    subtotal: Decimal = sum((line_total(line.quantity, line.unit_price) for line in lines), Decimal("0"))
    subtotal = round_money(subtotal)
    tax_amount: Decimal = round_money(subtotal * rate)
    return OrderTotals(subtotal=subtotal, tax_amount=tax_amount, total_amount=subtotal + tax_amount)
