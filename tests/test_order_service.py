"""Order processing service tests."""

import logging
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.db.base import Base
from storefront.db.session import build_engine
from storefront.models import AuditRecord, Category, Customer, Order, OrderItem, Product
from storefront.services.errors import (
    ConcurrencyConflictError,
    DuplicateError,
    InvalidTransitionError,
    NotCancellableError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from storefront.services.order_service import (
    calculate_order_total,
    cancel_order,
    count_orders_by_status,
    create_order,
    get_customer_order_history,
    list_orders,
    persist_order,
    require_order,
    total_sales,
    update_order_status,
)
from storefront.services.order_totals import OrderLine, calculate_totals
from storefront.utils.time import utcnow

TAX_RATE = Decimal("0.0825")


def _build_test_engine(db_file: Path) -> Engine:
    return build_engine(f"sqlite:///{db_file}")


def _seed_catalog(testing_session_local: sessionmaker) -> None:
    session: Session = testing_session_local()
    try:
        category = Category(name="Electronics")
        session.add(category)
        session.flush()
        session.add_all(
            [
                Product(id=1, name="Cable", price=Decimal("19.99"), category_id=category.id),
                Product(id=2, name="Mouse", price=Decimal("29.99"), category_id=category.id),
                Customer(id=1, first_name="Ada", last_name="Lovelace", email="ada@example.com"),
                Customer(id=2, first_name="Alan", last_name="Turing", email="alan@example.com"),
            ]
        )
        session.commit()
    finally:
        session.close()


@pytest.fixture
def session_factory(tmp_path: Path) -> sessionmaker:
    engine = _build_test_engine(tmp_path / "orders.db")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    _seed_catalog(testing_session_local)
    return testing_session_local


@pytest.fixture
def session(session_factory: sessionmaker):
    with session_factory() as db:
        yield db


def _standard_lines() -> list[OrderLine]:
    return [OrderLine(1, 2, Decimal("19.99")), OrderLine(2, 1, Decimal("29.99"))]


def _count(session: Session, model: type) -> int:
    return session.scalar(select(func.count()).select_from(model)) or 0


def _order_audit(session: Session, order_id: int) -> list[AuditRecord]:
    return list(
        session.scalars(
            select(AuditRecord)
            .where(AuditRecord.table_name == "Orders", AuditRecord.record_id == order_id)
            .order_by(AuditRecord.id)
        ).all()
    )


def test_create_order_persists_header_lines_and_audit(session: Session) -> None:
    result = create_order(session, 1, _standard_lines(), shipping_address="1 Main St", actor="clerk-7", tax_rate=TAX_RATE)

    assert result.created is True
    assert result.status == "Pending"
    assert result.subtotal == Decimal("69.97")
    assert result.tax_amount == Decimal("5.77")
    assert result.total_amount == Decimal("75.74")

    order = require_order(session, result.order_id)
    assert order.customer_id == 1
    assert order.shipping_address == "1 Main St"
    assert [(item.product_id, item.quantity, item.unit_price) for item in order.items] == [
        (1, 2, Decimal("19.99")),
        (2, 1, Decimal("29.99")),
    ]

    records = _order_audit(session, result.order_id)
    assert len(records) == 1
    assert records[0].action == "INSERT"
    assert records[0].user_id == "clerk-7"
    assert records[0].new_values["total_amount"] == "75.74"
    assert len(records[0].new_values["items"]) == 2


def test_create_order_uses_default_actor(session: Session) -> None:
    result = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE)

    assert _order_audit(session, result.order_id)[0].user_id == "system"


def test_invalid_order_writes_nothing(session: Session) -> None:
    with pytest.raises(ValidationError):
        create_order(session, 1, [OrderLine(1, 0, Decimal("19.99"))], tax_rate=TAX_RATE)

    assert _count(session, Order) == 0
    assert _count(session, OrderItem) == 0
    assert _count(session, AuditRecord) == 0


@pytest.mark.parametrize(
    "failing_line",
    [OrderLine(404, 1, Decimal("1.00")), OrderLine(1, 1, Decimal("19.99"))],
    ids=["missing-product", "duplicate-product"],
)
def test_persist_order_failure_rolls_back_everything(session: Session, failing_line: OrderLine) -> None:
    """A storage failure on the last line must leave no header, line or audit row."""
    lines = [OrderLine(1, 2, Decimal("19.99")), failing_line]

    with pytest.raises(PersistenceError):
        persist_order(
            session,
            customer_id=1,
            lines=lines,
            totals=calculate_totals(lines, TAX_RATE),
        )

    assert _count(session, Order) == 0
    assert _count(session, OrderItem) == 0
    assert _count(session, AuditRecord) == 0


def test_status_progression_is_audited(session: Session) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id

    update_order_status(session, order_id, "Processing", actor="ops")
    update_order_status(session, order_id, "shipped", actor="ops")
    order = update_order_status(session, order_id, "Delivered", actor="ops")

    assert order.status == "Delivered"
    assert order.modified_at is not None
    changes = [
        (record.old_values["status"], record.new_values["status"])
        for record in _order_audit(session, order_id)
        if record.action == "STATUS_CHANGE"
    ]
    assert changes == [("Pending", "Processing"), ("Processing", "Shipped"), ("Shipped", "Delivered")]


def test_backwards_transition_is_rejected_without_changes(session: Session) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id
    update_order_status(session, order_id, "Processing")
    update_order_status(session, order_id, "Shipped")
    audit_count = _count(session, AuditRecord)

    with pytest.raises(InvalidTransitionError) as exc_info:
        update_order_status(session, order_id, "Pending")

    assert exc_info.value.current_status == "Shipped"
    assert require_order(session, order_id).status == "Shipped"
    assert _count(session, AuditRecord) == audit_count


def test_unknown_status_is_a_validation_error(session: Session) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id

    with pytest.raises(ValidationError):
        update_order_status(session, order_id, "Teleported")


def test_delivered_order_can_be_refunded_but_not_cancelled(session: Session) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id
    for status in ("Processing", "Shipped", "Delivered"):
        update_order_status(session, order_id, status)

    with pytest.raises(InvalidTransitionError):
        update_order_status(session, order_id, "Cancelled")
    with pytest.raises(NotCancellableError):
        cancel_order(session, order_id, "Too late")

    assert update_order_status(session, order_id, "Refunded").status == "Refunded"


def test_cancel_processing_order_records_reason(session: Session) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id
    update_order_status(session, order_id, "Processing")

    order = cancel_order(session, order_id, "Customer changed mind", actor="support")

    assert order.status == "Cancelled"
    assert _count(session, Order) == 1
    record = _order_audit(session, order_id)[-1]
    assert record.action == "CANCELLED"
    assert record.user_id == "support"
    assert record.old_values == {"status": "Processing"}
    assert record.new_values == {"status": "Cancelled", "reason": "Customer changed mind"}


def test_cancelled_order_is_terminal(session: Session) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id
    cancel_order(session, order_id, "Duplicate order")

    for status in ("Pending", "Processing", "Shipped", "Delivered", "Refunded"):
        with pytest.raises(InvalidTransitionError):
            update_order_status(session, order_id, status)
    with pytest.raises(NotCancellableError) as exc_info:
        cancel_order(session, order_id, "Again")

    assert exc_info.value.kind == "not_cancellable"


def test_operations_on_unknown_order_raise_not_found(session: Session) -> None:
    with pytest.raises(NotFoundError):
        update_order_status(session, 999, "Processing")
    with pytest.raises(NotFoundError):
        cancel_order(session, 999, "Missing")
    with pytest.raises(NotFoundError):
        calculate_order_total(session, 999)


def test_calculate_order_total_recomputes_from_stored_lines(session: Session) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id

    assert calculate_order_total(session, order_id, TAX_RATE) == Decimal("75.74")
    assert calculate_order_total(session, order_id, Decimal("0")) == Decimal("69.97")


def test_stale_status_change_raises_conflict(session_factory: sessionmaker) -> None:
    """A second writer holding an outdated copy of the order must not overwrite the first."""
    with session_factory() as first:
        order_id = create_order(first, 1, _standard_lines(), tax_rate=TAX_RATE).order_id

    with session_factory() as stale, session_factory() as fresh:
        assert require_order(stale, order_id).status == "Pending"

        update_order_status(fresh, order_id, "Processing")

        with pytest.raises(ConcurrencyConflictError):
            cancel_order(stale, order_id, "Late cancel")

    with session_factory() as check:
        assert require_order(check, order_id).status == "Processing"
        assert [record.action for record in _order_audit(check, order_id)] == ["INSERT", "STATUS_CHANGE"]


def test_idempotency_key_replays_original_order(session: Session) -> None:
    first = create_order(session, 1, _standard_lines(), idempotency_key="abc-123", tax_rate=TAX_RATE)
    second = create_order(session, 1, _standard_lines(), idempotency_key="abc-123", tax_rate=TAX_RATE)

    assert first.created is True
    assert second.created is False
    assert second.order_id == first.order_id
    assert second.total_amount == first.total_amount
    assert _count(session, Order) == 1


def test_idempotency_key_is_scoped_per_customer(session: Session) -> None:
    first = create_order(session, 1, _standard_lines(), idempotency_key="shared", tax_rate=TAX_RATE)
    second = create_order(session, 2, _standard_lines(), idempotency_key="shared", tax_rate=TAX_RATE)

    assert second.created is True
    assert second.order_id != first.order_id


def test_idempotency_key_reuse_with_different_payload_is_rejected(session: Session) -> None:
    create_order(session, 1, _standard_lines(), idempotency_key="abc-123", tax_rate=TAX_RATE)

    with pytest.raises(DuplicateError) as exc_info:
        create_order(session, 1, [OrderLine(1, 5, Decimal("19.99"))], idempotency_key="abc-123", tax_rate=TAX_RATE)

    assert exc_info.value.field == "idempotency_key"
    assert _count(session, Order) == 1


def test_without_idempotency_key_identical_requests_create_two_orders(session: Session) -> None:
    create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE)
    create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE)

    assert _count(session, Order) == 2


def test_order_queries(session: Session) -> None:
    first = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id
    second = create_order(session, 1, [OrderLine(1, 1, Decimal("19.99"))], tax_rate=TAX_RATE).order_id
    create_order(session, 2, [OrderLine(2, 1, Decimal("29.99"))], tax_rate=TAX_RATE)
    update_order_status(session, first, "Processing")

    assert count_orders_by_status(session, "pending") == 2
    assert count_orders_by_status(session, "Processing") == 1

    page = list_orders(session, customer_id=1, page_size=1)
    assert page.total_count == 2
    assert page.total_pages == 2
    assert page.has_next_page is True
    assert [order.id for order in page.items] == [second]

    expensive = list_orders(session, min_total=Decimal("50"))
    assert [order.id for order in expensive.items] == [first]

    history = get_customer_order_history(session, 1)
    assert [order.id for order in history] == [second, first]

    with pytest.raises(NotFoundError):
        get_customer_order_history(session, 404)


def _deliver(session: Session, order_id: int, days_ago: int = 0) -> None:
    for status in ("Processing", "Shipped", "Delivered"):
        update_order_status(session, order_id, status)
    if days_ago:
        order = require_order(session, order_id)
        order.order_date = utcnow() - timedelta(days=days_ago)
        session.commit()


def test_total_sales_sums_delivered_orders_in_range(session: Session) -> None:
    recent = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id
    older = create_order(session, 2, [OrderLine(2, 1, Decimal("29.99"))], tax_rate=TAX_RATE).order_id
    create_order(session, 1, [OrderLine(1, 1, Decimal("19.99"))], tax_rate=TAX_RATE)
    cancelled = create_order(session, 2, [OrderLine(1, 3, Decimal("19.99"))], tax_rate=TAX_RATE).order_id
    _deliver(session, recent)
    _deliver(session, older, days_ago=40)
    cancel_order(session, cancelled, "Changed mind")

    assert total_sales(session) == Decimal("75.74") + Decimal("32.46")
    assert total_sales(session, start_date=utcnow() - timedelta(days=7)) == Decimal("75.74")
    assert total_sales(session, end_date=utcnow() - timedelta(days=30)) == Decimal("32.46")
    assert total_sales(session, start_date=utcnow() + timedelta(days=1)) == Decimal("0.00")


def test_rejected_transition_is_logged_with_order_context(session: Session, caplog) -> None:
    order_id = create_order(session, 1, _standard_lines(), tax_rate=TAX_RATE).order_id

    with caplog.at_level(logging.WARNING, logger="storefront.services.order_status"):
        with pytest.raises(InvalidTransitionError):
            update_order_status(session, order_id, "Delivered")

    records = [record for record in caplog.records if record.name == "storefront.services.order_status"]
    assert len(records) == 1
    assert records[0].order_id == order_id
    assert "Pending -> Delivered" in records[0].getMessage()
