"""Order validation tests."""

from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.db.base import Base
from storefront.db.session import build_engine
from storefront.models import AuditRecord, Category, Customer, Order, Product
from storefront.services.errors import ValidationError
from storefront.services.order_totals import OrderLine
from storefront.services.order_validation import validate_order


def _build_test_engine(db_file: Path) -> Engine:
    return build_engine(f"sqlite:///{db_file}")


@pytest.fixture
def session(tmp_path: Path):
    engine = _build_test_engine(tmp_path / "validation.db")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    with testing_session_local() as db:
        category = Category(name="Electronics")
        db.add(category)
        db.flush()
        db.add_all(
            [
                Product(id=1, name="Cable", price=Decimal("19.99"), category_id=category.id),
                Product(id=2, name="Mouse", price=Decimal("29.99"), category_id=category.id),
                Product(id=3, name="Retired", price=Decimal("5.00"), category_id=category.id, is_active=False),
                Customer(id=1, first_name="Ada", last_name="Lovelace", email="ada@example.com"),
                Customer(id=2, first_name="Gone", last_name="Away", email="gone@example.com", is_active=False),
            ]
        )
        db.commit()
        yield db


def _fields(exc: ValidationError) -> list[str]:
    return [violation.field for violation in exc.violations]


def test_valid_order_passes(session: Session) -> None:
    lines = [OrderLine(1, 2, Decimal("19.99")), OrderLine(2, 1, Decimal("29.99"))]

    validated = validate_order(session, 1, lines)

    assert validated.customer.id == 1
    assert validated.lines == lines


def test_missing_customer_is_reported(session: Session) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 99, [OrderLine(1, 1, Decimal("19.99"))])

    assert _fields(exc_info.value) == ["customer_id"]
    assert exc_info.value.identifier == 99


def test_inactive_customer_is_reported(session: Session) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 2, [OrderLine(1, 1, Decimal("19.99"))])

    assert "not active" in exc_info.value.violations[0].message


def test_empty_items_are_rejected(session: Session) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 1, [])

    assert _fields(exc_info.value) == ["items"]


def test_unknown_and_inactive_products_are_reported(session: Session) -> None:
    lines = [OrderLine(404, 1, Decimal("1.00")), OrderLine(3, 1, Decimal("5.00"))]

    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 1, lines)

    violations = exc_info.value.violations
    assert [violation.identifier for violation in violations] == [404, 3]
    assert "not found" in violations[0].message
    assert "not active" in violations[1].message


@pytest.mark.parametrize("quantity", [0, -1, True])
def test_non_positive_quantity_is_rejected(session: Session, quantity: int) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 1, [OrderLine(1, quantity, Decimal("19.99"))])

    assert _fields(exc_info.value) == ["items[0].quantity"]


@pytest.mark.parametrize("unit_price", [Decimal("0"), Decimal("-1.00"), Decimal("NaN"), Decimal("1.999")])
def test_invalid_unit_price_is_rejected(session: Session, unit_price: Decimal) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 1, [OrderLine(1, 1, unit_price)])

    assert _fields(exc_info.value) == ["items[0].unit_price"]


def test_duplicate_product_lines_are_rejected(session: Session) -> None:
    lines = [OrderLine(1, 1, Decimal("19.99")), OrderLine(1, 2, Decimal("19.99"))]

    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 1, lines)

    assert _fields(exc_info.value) == ["items[1].product_id"]


def test_all_violations_are_collected(session: Session) -> None:
    """Every problem in the request is reported, not just the first one."""
    lines = [OrderLine(404, 0, Decimal("19.99")), OrderLine(2, 1, Decimal("0"))]

    with pytest.raises(ValidationError) as exc_info:
        validate_order(session, 2, lines)

    assert _fields(exc_info.value) == [
        "customer_id",
        "items[0].product_id",
        "items[0].quantity",
        "items[1].unit_price",
    ]
    assert len(exc_info.value.to_dict()["violations"]) == 4


def test_validation_never_writes(session: Session) -> None:
    with pytest.raises(ValidationError):
        validate_order(session, 1, [OrderLine(404, 1, Decimal("1.00"))])

    assert session.scalar(select(func.count(Order.id))) == 0
    assert session.scalar(select(func.count(AuditRecord.id))) == 0
