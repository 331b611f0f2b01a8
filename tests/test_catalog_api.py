"""Catalog and customer HTTP API tests."""

from decimal import Decimal
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from storefront.db import session as db_session
from storefront.db.base import Base
from storefront.db.session import build_engine
from storefront.main import app


def _build_test_engine(db_file: Path) -> Engine:
    return build_engine(f"sqlite:///{db_file}")


def _setup(tmp_path: Path, monkeypatch, name: str) -> None:
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)


def test_category_and_product_lifecycle(tmp_path: Path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch, "api_catalog.db")

    with TestClient(app) as client:
        category = client.post("/api/v1/categories", json={"name": "Home"})
        assert category.status_code == 201
        category_id = category.json()["id"]

        product = client.post(
            "/api/v1/products",
            json={"name": "Espresso Machine", "price": "649.00", "category_id": category_id},
        )
        assert product.status_code == 201
        assert product.json()["price_category"] == "Luxury"
        assert product.json()["category_name"] == "Home"
        product_id = product.json()["id"]

        too_cheap = client.post(
            "/api/v1/products",
            json={"name": "Free", "price": "0", "category_id": category_id},
        )
        assert too_cheap.status_code == 422

        missing_category = client.post(
            "/api/v1/products",
            json={"name": "Lost", "price": "5.00", "category_id": 999},
        )
        assert missing_category.status_code == 404

        updated = client.put(
            f"/api/v1/products/{product_id}",
            json={"name": "Espresso Machine", "price": "449.00", "category_id": category_id},
        )
        assert updated.status_code == 200
        assert updated.json()["price_category"] == "Premium"

        listing = client.get(f"/api/v1/categories/{category_id}/products").json()
        assert listing["total_count"] == 1

        assert client.delete(f"/api/v1/products/{product_id}").status_code == 204
        assert client.get(f"/api/v1/products/{product_id}").json()["is_active"] is False
        assert client.get("/api/v1/products").json()["total_count"] == 0


def test_customer_endpoints(tmp_path: Path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch, "api_customers.db")

    payload = {"first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"}
    with TestClient(app) as client:
        created = client.post("/api/v1/customers", json=payload, headers={"X-User-Id": "support"})
        assert created.status_code == 201
        customer_id = created.json()["id"]
        assert created.json()["full_name"] == "Grace Hopper"

        duplicate = client.post("/api/v1/customers", json=payload)
        assert duplicate.status_code == 409
        assert duplicate.json()["error"]["field"] == "email"

        by_email = client.get("/api/v1/customers/by-email/GRACE@example.com")
        assert by_email.status_code == 200
        assert by_email.json()["id"] == customer_id
        assert client.get("/api/v1/customers/by-email/nobody@example.com").status_code == 404

        assert client.delete(f"/api/v1/customers/{customer_id}").status_code == 204
        assert client.get(f"/api/v1/customers/{customer_id}").json()["is_active"] is False

        reactivated = client.patch(f"/api/v1/customers/{customer_id}/reactivate")
        assert reactivated.json()["is_active"] is True

        assert client.get(f"/api/v1/customers/{customer_id}/orders").json() == []
        assert client.get("/api/v1/customers/404/orders").status_code == 404

        audit = client.get("/api/v1/audit", params={"table_name": "Customers"}).json()
        assert [record["action"] for record in audit] == ["UPDATE", "UPDATE", "INSERT"]
        assert audit[-1]["user_id"] == "support"


def test_paging_metadata(tmp_path: Path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch, "api_paging.db")

    with TestClient(app) as client:
        category_id = client.post("/api/v1/categories", json={"name": "Books"}).json()["id"]
        for index in range(5):
            client.post(
                "/api/v1/products",
                json={"name": f"Book {index}", "price": str(Decimal("10.00") + index), "category_id": category_id},
            )

        page = client.get("/api/v1/products", params={"page_size": 2, "page_number": 2}).json()

    assert [item["name"] for item in page["items"]] == ["Book 2", "Book 3"]
    assert page["total_count"] == 5
    assert page["total_pages"] == 3
    assert page["has_previous_page"] is True
    assert page["has_next_page"] is True


def test_catalog_and_customer_aggregates(tmp_path: Path, monkeypatch) -> None:
    _setup(tmp_path, monkeypatch, "api_aggregates.db")

    with TestClient(app) as client:
        category_id = client.post("/api/v1/categories", json={"name": "Electronics"}).json()["id"]
        cable_id = client.post(
            "/api/v1/products", json={"name": "Cable", "price": "10.00", "category_id": category_id}
        ).json()["id"]
        client.post("/api/v1/products", json={"name": "Mouse", "price": "30.00", "category_id": category_id})
        customer_id = client.post(
            "/api/v1/customers", json={"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"}
        ).json()["id"]

        order = {
            "customer_id": customer_id,
            "items": [{"product_id": cable_id, "quantity": 4, "unit_price": "10.00"}],
        }
        order_id = client.post("/api/v1/orders", json=order).json()["order_id"]
        for status in ("Processing", "Shipped", "Delivered"):
            client.patch(f"/api/v1/orders/{order_id}/status", json={"status": status})

        top = client.get("/api/v1/products/top-selling", params={"count": 1}).json()
        all_stats = client.get("/api/v1/categories/statistics").json()
        one_stats = client.get(f"/api/v1/categories/{category_id}/statistics")
        missing_stats = client.get("/api/v1/categories/404/statistics")
        summary = client.get(f"/api/v1/customers/{customer_id}/order-summary").json()
        missing_summary = client.get("/api/v1/customers/404/order-summary")

    assert [(item["name"], item["quantity_sold"]) for item in top] == [("Cable", 4)]
    assert top[0]["price_category"] == "Budget"

    assert [(row["category_name"], row["product_count"]) for row in all_stats] == [("Electronics", 2)]
    assert one_stats.status_code == 200
    assert Decimal(one_stats.json()["average_price"]) == Decimal("20.00")
    assert missing_stats.status_code == 404

    assert summary["total_orders"] == 1
    assert summary["customer_name"] == "Ada Lovelace"
    assert Decimal(summary["total_spent"]) == Decimal(summary["average_order_value"])
    assert missing_summary.status_code == 404
