"""Database seeding helpers."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.models import Category, Customer, Product

logger = logging.getLogger(__name__)

DEMO_CATEGORIES: tuple[tuple[str, int], ...] = (("Electronics", 1), ("Books", 2), ("Home", 3))
DEMO_PRODUCTS: tuple[tuple[str, str, str, str], ...] = (
    ("Electronics", "USB-C Cable", "Braided 2m cable", "9.99"),
    ("Electronics", "Wireless Mouse", "Ergonomic 2.4GHz mouse", "29.99"),
    ("Electronics", "Noise Cancelling Headphones", "Over-ear, 30h battery", "249.00"),
    ("Books", "Database Internals", "Storage engines and distributed systems", "54.50"),
    ("Home", "Espresso Machine", "15 bar pump", "649.00"),
)
DEMO_CUSTOMERS: tuple[tuple[str, str, str], ...] = (
    ("Ada", "Lovelace", "ada@example.com"),
    ("Alan", "Turing", "alan@example.com"),
)


def ensure_demo_catalog(session: Session) -> bool:
    """Seed a small demo catalog in development only; returns whether rows were added."""
    if settings.app_env != "dev":
        return False
    if session.scalar(select(Category.id).limit(1)) is not None:
        return False

    categories: dict[str, Category] = {}
    for name, display_order in DEMO_CATEGORIES:
        categories[name] = Category(name=name, display_order=display_order)
        session.add(categories[name])
    session.flush()

    for category_name, name, description, price in DEMO_PRODUCTS:
        session.add(
            Product(name=name, description=description, price=Decimal(price), category_id=categories[category_name].id)
        )
    for first_name, last_name, email in DEMO_CUSTOMERS:
        session.add(Customer(first_name=first_name, last_name=last_name, email=email))

    session.commit()
    logger.info("Seeded demo catalog: %s categories, %s products", len(DEMO_CATEGORIES), len(DEMO_PRODUCTS))
    return True
