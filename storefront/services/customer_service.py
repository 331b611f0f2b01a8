"""Customer operations with audit trail."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.models import Customer, Order
from storefront.services.audit_service import record_audit, snapshot
from storefront.services.errors import DuplicateError, NotFoundError, ValidationError
from storefront.services.order_status import CANCELLED, REFUNDED
from storefront.services.order_totals import round_money
from storefront.services.pagination import Page, paginate
from storefront.utils.time import utcnow

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CUSTOMER_FIELDS: tuple[str, ...] = ("first_name", "last_name", "email", "phone", "is_active")


def get_customer(db: Session, customer_id: int) -> Customer | None:
    return db.get(Customer, customer_id)


def require_customer(db: Session, customer_id: int) -> Customer:
    customer = get_customer(db, customer_id)
    if customer is None:
        raise NotFoundError("Customer", customer_id)
    return customer


def get_customer_by_email(db: Session, email: str) -> Customer | None:
    return db.scalar(select(Customer).where(func.lower(Customer.email) == email.strip().lower()).limit(1))


def search_customers(
    db: Session,
    *,
    search_term: str | None = None,
    is_active: bool | None = None,
    page_number: int = 1,
    page_size: int | None = None,
) -> Page[Customer]:
    stmt = select(Customer)
    if search_term:
        pattern = f"%{search_term.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Customer.first_name).like(pattern),
                func.lower(Customer.last_name).like(pattern),
                func.lower(Customer.email).like(pattern),
            )
        )
    if is_active is not None:
        stmt = stmt.where(Customer.is_active.is_(is_active))
    stmt = stmt.order_by(Customer.last_name.asc(), Customer.first_name.asc(), Customer.id.asc())
    return paginate(db, stmt, page_number, page_size)


def _validate_customer_fields(db: Session, first_name: str, last_name: str, email: str, exclude_id: int | None) -> str:
    if not first_name.strip():
        raise ValidationError.single("first_name", "First name must not be empty")
    if not last_name.strip():
        raise ValidationError.single("last_name", "Last name must not be empty")
    normalized_email = email.strip().lower()
    if len(normalized_email) <= 5 or not EMAIL_PATTERN.match(normalized_email):
        raise ValidationError.single("email", f"Email {email!r} is not a valid address")
    existing = get_customer_by_email(db, normalized_email)
    if existing is not None and existing.id != exclude_id:
        raise DuplicateError(f"Email {normalized_email} is already registered", field="email", identifier=existing.id)
    return normalized_email


def _email_conflict(db: Session, email: str) -> DuplicateError:
    """Roll back a write that lost the unique email race to a concurrent request."""
    db.rollback()
    logger.warning("Email %s was registered concurrently", email)
    return DuplicateError(f"Email {email} is already registered", field="email")


def create_customer(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    phone: str | None = None,
    actor: str | None = None,
) -> Customer:
    normalized_email = _validate_customer_fields(db, first_name, last_name, email, exclude_id=None)
    customer = Customer(first_name=first_name.strip(), last_name=last_name.strip(), email=normalized_email, phone=phone)
    try:
        db.add(customer)
        db.flush()
        record_audit(
            db,
            table_name="Customers",
            action="INSERT",
            record_id=customer.id,
            actor=actor,
            new_values=snapshot(customer, CUSTOMER_FIELDS),
        )
        db.commit()
    except IntegrityError as exc:
        raise _email_conflict(db, normalized_email) from exc
    db.refresh(customer)
    logger.info("Created customer %s", customer.id)
    return customer


def update_customer(
    db: Session,
    customer_id: int,
    *,
    first_name: str,
    last_name: str,
    email: str,
    phone: str | None = None,
    is_active: bool = True,
    actor: str | None = None,
) -> Customer:
    customer = require_customer(db, customer_id)
    normalized_email = _validate_customer_fields(db, first_name, last_name, email, exclude_id=customer.id)

    before = snapshot(customer, CUSTOMER_FIELDS)
    customer.first_name = first_name.strip()
    customer.last_name = last_name.strip()
    customer.email = normalized_email
    customer.phone = phone
    customer.is_active = is_active
    customer.modified_at = utcnow()
    record_audit(
        db,
        table_name="Customers",
        action="UPDATE",
        record_id=customer.id,
        actor=actor,
        old_values=before,
        new_values=snapshot(customer, CUSTOMER_FIELDS),
    )
    try:
        db.commit()
    except IntegrityError as exc:
        raise _email_conflict(db, normalized_email) from exc
    db.refresh(customer)
    return customer


def set_customer_active(db: Session, customer_id: int, is_active: bool, actor: str | None = None) -> Customer:
    """Deactivate or reactivate a customer; a no-op when already in that state."""
    customer = require_customer(db, customer_id)
    if customer.is_active == is_active:
        return customer

    before = snapshot(customer, CUSTOMER_FIELDS)
    customer.is_active = is_active
    customer.modified_at = utcnow()
    record_audit(
        db,
        table_name="Customers",
        action="UPDATE",
        record_id=customer.id,
        actor=actor,
        old_values=before,
        new_values=snapshot(customer, CUSTOMER_FIELDS),
    )
    db.commit()
    db.refresh(customer)
    logger.info("Customer %s is_active=%s", customer.id, is_active)
    return customer


@dataclass(frozen=True)
class CustomerOrderSummary:
    """Order statistics for one customer; cancelled and refunded orders are left out."""

    customer_id: int
    customer_name: str
    email: str
    total_orders: int
    total_spent: Decimal
    average_order_value: Decimal
    first_order_date: datetime | None
    last_order_date: datetime | None
    customer_lifespan_days: int
    days_since_last_order: int | None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def customer_order_summary(db: Session, customer_id: int, months_back: int = 12) -> CustomerOrderSummary:
    customer = require_customer(db, customer_id)
    now = utcnow()
    cutoff = now - timedelta(days=30 * months_back)

    stmt = select(
        func.count(Order.id),
        func.sum(Order.total_amount),
        func.min(Order.order_date),
        func.max(Order.order_date),
    ).where(
        Order.customer_id == customer_id,
        Order.order_date >= cutoff,
        Order.status.not_in((CANCELLED, REFUNDED)),
    )
    total_orders, total_spent, first_order, last_order = db.execute(stmt).one()

    spent = round_money(Decimal(str(total_spent))) if total_spent is not None else Decimal("0.00")
    average = round_money(spent / total_orders) if total_orders else Decimal("0.00")
    if first_order is not None and last_order is not None:
        first_order, last_order = _as_utc(first_order), _as_utc(last_order)
        lifespan_days = (last_order - first_order).days
        days_since_last: int | None = (now - last_order).days
    else:
        lifespan_days, days_since_last = 0, None

    return CustomerOrderSummary(
        customer_id=customer.id,
        customer_name=customer.full_name,
        email=customer.email,
        total_orders=total_orders,
        total_spent=spent,
        average_order_value=average,
        first_order_date=first_order,
        last_order_date=last_order,
        customer_lifespan_days=lifespan_days,
        days_since_last_order=days_since_last,
    )
