"""Order processing: creation, status transitions, cancellation and totals."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from storefront.models import Order, OrderItem
from storefront.services.audit_service import record_audit
from storefront.services.customer_service import require_customer
from storefront.services.errors import (
    ConcurrencyConflictError,
    DuplicateError,
    NotCancellableError,
    NotFoundError,
    PersistenceError,
)
from storefront.services.order_status import (
    CANCELLED,
    DELIVERED,
    INITIAL_STATUS,
    ensure_transition,
    is_cancellable,
    parse_status,
)
from storefront.services.order_totals import OrderLine, OrderTotals, calculate_totals, round_money
from storefront.services.order_validation import validate_order
from storefront.services.pagination import Page, paginate
from storefront.utils.time import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderResult:
    """Outcome of create_order; ``created`` is False for an idempotent replay."""

    order_id: int
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    order_date: datetime
    status: str
    created: bool = True


def _result_for(order: Order, created: bool) -> OrderResult:
    return OrderResult(
        order_id=order.id,
        subtotal=order.subtotal,
        tax_amount=order.tax_amount,
        total_amount=order.total_amount,
        order_date=order.order_date,
        status=order.status,
        created=created,
    )


def request_fingerprint(lines: Sequence[OrderLine], shipping_address: str | None) -> str:
    """Stable hash of an order request, used to detect idempotency key reuse."""
    payload = {
        "items": sorted([line.product_id, line.quantity, str(line.unit_price)] for line in lines),
        "shipping_address": shipping_address,
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


def get_order(db: Session, order_id: int) -> Order | None:
    stmt = (
        select(Order)
        .options(selectinload(Order.items).selectinload(OrderItem.product), selectinload(Order.customer))
        .where(Order.id == order_id)
    )
    return db.scalar(stmt)


def require_order(db: Session, order_id: int) -> Order:
    order = get_order(db, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


def find_order_by_idempotency_key(db: Session, customer_id: int, idempotency_key: str) -> Order | None:
    return db.scalar(
        select(Order).where(Order.customer_id == customer_id, Order.idempotency_key == idempotency_key).limit(1)
    )


def _order_snapshot(order: Order, lines: Sequence[OrderLine]) -> dict[str, object]:
    return {
        "customer_id": order.customer_id,
        "status": order.status,
        "subtotal": order.subtotal,
        "tax_amount": order.tax_amount,
        "total_amount": order.total_amount,
        "shipping_address": order.shipping_address,
        "items": [
            {"product_id": line.product_id, "quantity": line.quantity, "unit_price": line.unit_price}
            for line in lines
        ],
    }


def persist_order(
    db: Session,
    *,
    customer_id: int,
    lines: Sequence[OrderLine],
    totals: OrderTotals,
    shipping_address: str | None = None,
    idempotency_key: str | None = None,
    fingerprint: str | None = None,
    actor: str | None = None,
) -> Order:
    """Write the order header, every line and the audit record in one transaction.

    Any storage failure rolls the whole transaction back before PersistenceError
    is raised, so either all rows exist afterwards or none do.
    """
    order = Order(
        customer_id=customer_id,
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total_amount=totals.total_amount,
        status=INITIAL_STATUS,
        shipping_address=shipping_address,
        idempotency_key=idempotency_key,
        request_fingerprint=fingerprint,
    )
    try:
        db.add(order)
        db.flush()
        for line in lines:
            db.add(OrderItem(order_id=order.id, product_id=line.product_id, quantity=line.quantity, unit_price=line.unit_price))
        db.flush()
        record_audit(
            db,
            table_name="Orders",
            action="INSERT",
            record_id=order.id,
            actor=actor,
            new_values=_order_snapshot(order, lines),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Persisting order for customer %s failed; transaction rolled back",
            customer_id,
            extra={"customer_id": customer_id},
        )
        raise PersistenceError(
            f"Order for customer {customer_id} could not be saved",
            field="order",
            identifier=customer_id,
        ) from exc

    db.refresh(order)
    return order


def _replay(existing: Order, fingerprint: str, idempotency_key: str) -> OrderResult:
    if existing.request_fingerprint is not None and existing.request_fingerprint != fingerprint:
        raise DuplicateError(
            f"Idempotency key '{idempotency_key}' was already used for a different order",
            field="idempotency_key",
            identifier=existing.id,
        )
    logger.info("Idempotent replay of order %s for key %s", existing.id, idempotency_key, extra={"order_id": existing.id})
    return _result_for(existing, created=False)


def create_order(
    db: Session,
    customer_id: int,
    lines: Sequence[OrderLine],
    shipping_address: str | None = None,
    idempotency_key: str | None = None,
    actor: str | None = None,
    tax_rate: Decimal | None = None,
) -> OrderResult:
    """Validate, price and persist a new order.

    With an idempotency key, repeating the same request for the same customer
    returns the original order instead of creating a duplicate.
    """
    fingerprint = request_fingerprint(lines, shipping_address)
    if idempotency_key is not None:
        existing = find_order_by_idempotency_key(db, customer_id, idempotency_key)
        if existing is not None:
            return _replay(existing, fingerprint, idempotency_key)

    validated = validate_order(db, customer_id, lines)
    totals = calculate_totals(validated.lines, tax_rate)
    try:
        order = persist_order(
            db,
            customer_id=customer_id,
            lines=validated.lines,
            totals=totals,
            shipping_address=shipping_address,
            idempotency_key=idempotency_key,
            fingerprint=fingerprint,
            actor=actor,
        )
    except PersistenceError as exc:
        if idempotency_key is None or not isinstance(exc.__cause__, IntegrityError):
            raise
        existing = find_order_by_idempotency_key(db, customer_id, idempotency_key)
        if existing is None:
            raise
        return _replay(existing, fingerprint, idempotency_key)

    logger.info(
        "Created order %s for customer %s with total %s",
        order.id,
        customer_id,
        order.total_amount,
        extra={"order_id": order.id, "customer_id": customer_id, "actor": actor},
    )
    return _result_for(order, created=True)


def _apply_transition(
    db: Session,
    order: Order,
    new_status: str,
    *,
    action: str,
    actor: str | None,
    reason: str | None,
) -> Order:
    order_id: int = order.id
    previous_status: str = order.status
    order.status = new_status
    order.modified_at = utcnow()

    new_values: dict[str, str] = {"status": new_status}
    if reason:
        new_values["reason"] = reason
    record_audit(
        db,
        table_name="Orders",
        action=action,
        record_id=order_id,
        actor=actor,
        old_values={"status": previous_status},
        new_values=new_values,
    )
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.warning(
            "Order %s changed concurrently; %s -> %s rejected",
            order_id,
            previous_status,
            new_status,
            extra={"order_id": order_id, "actor": actor},
        )
        raise ConcurrencyConflictError(order_id) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Status change for order %s failed; transaction rolled back", order_id, extra={"order_id": order_id})
        raise PersistenceError(f"Order {order_id} status could not be saved", field="order", identifier=order_id) from exc

    logger.info(
        "Order %s status %s -> %s", order_id, previous_status, new_status, extra={"order_id": order_id, "actor": actor}
    )
    return require_order(db, order_id)


def update_order_status(
    db: Session,
    order_id: int,
    new_status: str,
    actor: str | None = None,
    reason: str | None = None,
) -> Order:
    """Move an order along the state machine and audit the change."""
    target: str = parse_status(new_status)
    order = require_order(db, order_id)
    ensure_transition(order_id, order.status, target)
    return _apply_transition(db, order, target, action="STATUS_CHANGE", actor=actor, reason=reason)


def cancel_order(db: Session, order_id: int, reason: str, actor: str | None = None) -> Order:
    """Cancel a pending, processing or shipped order; the row is kept."""
    order = require_order(db, order_id)
    if not is_cancellable(order.status):
        logger.warning("Order %s cannot be cancelled from %s", order_id, order.status, extra={"order_id": order_id})
        raise NotCancellableError(order_id, order.status)
    cancelled = _apply_transition(db, order, CANCELLED, action="CANCELLED", actor=actor, reason=reason)
    logger.info("Cancelled order %s: %s", order_id, reason, extra={"order_id": order_id, "actor": actor})
    return cancelled


def calculate_order_total(db: Session, order_id: int, tax_rate: Decimal | None = None) -> Decimal:
    """Recompute an order's grand total from its stored lines."""
    order = require_order(db, order_id)
    lines = [OrderLine(product_id=item.product_id, quantity=item.quantity, unit_price=item.unit_price) for item in order.items]
    return calculate_totals(lines, tax_rate).total_amount


def list_orders(
    db: Session,
    *,
    customer_id: int | None = None,
    status: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    min_total: Decimal | None = None,
    page_number: int = 1,
    page_size: int | None = None,
) -> Page[Order]:
    stmt = select(Order).options(selectinload(Order.items).selectinload(OrderItem.product), selectinload(Order.customer))
    if customer_id is not None:
        stmt = stmt.where(Order.customer_id == customer_id)
    if status is not None:
        stmt = stmt.where(Order.status == parse_status(status))
    if start_date is not None:
        stmt = stmt.where(Order.order_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Order.order_date <= end_date)
    if min_total is not None:
        stmt = stmt.where(Order.total_amount >= min_total)
    stmt = stmt.order_by(Order.order_date.desc(), Order.id.desc())
    return paginate(db, stmt, page_number, page_size)


def count_orders_by_status(db: Session, status: str) -> int:
    target = parse_status(status)
    return db.scalar(select(func.count(Order.id)).where(Order.status == target)) or 0


def get_customer_order_history(
    db: Session,
    customer_id: int,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[Order]:
    require_customer(db, customer_id)
    stmt = select(Order).options(selectinload(Order.items).selectinload(OrderItem.product)).where(
        Order.customer_id == customer_id
    )
    if start_date is not None:
        stmt = stmt.where(Order.order_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Order.order_date <= end_date)
    return list(db.scalars(stmt.order_by(Order.order_date.desc(), Order.id.desc())).all())


def total_sales(db: Session, start_date: datetime | None = None, end_date: datetime | None = None) -> Decimal:
    """Sum of delivered order totals, optionally bounded by order date."""
    stmt = select(func.sum(Order.total_amount)).where(Order.status == DELIVERED)
    if start_date is not None:
        stmt = stmt.where(Order.order_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Order.order_date <= end_date)
    total = db.scalar(stmt)
    return round_money(Decimal(total)) if total is not None else Decimal("0.00")
