"""
Dashboard KPI Tests

Verifies card figures, monthly growth and best sellers, each computed
from one shop's data only.
"""

from datetime import timedelta
from decimal import Decimal

from pharmatrack.models import Sale
from pharmatrack.time_utils import month_start, utcnow

from conftest import make_medicine


def test_cards(client, customer_a, medicine_a, medicine_b, headers_a, headers_b):
    client.post(
        "/api/sales",
        json={"customer_id": customer_a.id, "items": [{"medicine_id": medicine_a.id, "qty": 2}], "paid": 150},
        headers=headers_a,
    )
    # Shop B activity must not leak into Shop A's cards
    client.post("/api/sales", json={"items": [{"medicine_id": medicine_b.id, "qty": 10}]}, headers=headers_b)

    resp = client.get("/api/dashboard/cards", headers=headers_a)

    assert resp.status_code == 200
    cards = resp.get_json()["data"]
    assert cards["today_revenue"] == 200.0
    assert cards["today_profit"] == 30.0
    assert cards["today_sales_count"] == 1
    assert cards["credit_outstanding"] == 50.0
    assert cards["low_stock_count"] == 1
    assert cards["expiry_alert"] == 0


def test_expiry_alert_counts_stocked_batches_only(client, db_session, shop_a, headers_a):
    soon = (utcnow() + timedelta(days=10)).date().isoformat()
    past = (utcnow() - timedelta(days=40)).date().isoformat()
    make_medicine(db_session, shop_a, "Insulin Pen", stock=3, expiry=soon)
    make_medicine(db_session, shop_a, "Old Syrup", stock=2, expiry=past)
    make_medicine(db_session, shop_a, "Empty Shelf", stock=0, expiry=soon)
    make_medicine(db_session, shop_a, "Long Dated", stock=50, expiry="2035-01")

    cards = client.get("/api/dashboard/cards", headers=headers_a).get_json()["data"]

    assert cards["expiry_alert"] == 2


def test_monthly_revenue_growth(client, db_session, shop_a, medicine_a, headers_a):
    last_month = month_start(utcnow(), months_back=1) + timedelta(days=2)
    db_session.add(Sale(
        shop_id=shop_a.id,
        invoice_number="OLD-000001",
        subtotal=Decimal("100.00"),
        final_total=Decimal("100.00"),
        paid=Decimal("100.00"),
        due=Decimal("0.00"),
        created_at=last_month,
    ))
    db_session.commit()

    client.post("/api/sales", json={"items": [{"medicine_id": medicine_a.id, "qty": 2}]}, headers=headers_a)

    data = client.get("/api/dashboard/monthly-revenue", headers=headers_a).get_json()["data"]
    assert data["current_month_revenue"] == 200.0
    assert data["last_month_revenue"] == 100.0
    assert data["growth_percent"] == 100.0
    assert data["direction"] == "up"


def test_monthly_revenue_empty_shop(client, shop_a, headers_a):
    data = client.get("/api/dashboard/monthly-revenue", headers=headers_a).get_json()["data"]
    assert data["current_month_revenue"] == 0.0
    assert data["growth_percent"] == 0.0


def test_top_medicines(client, db_session, shop_a, medicine_a, headers_a):
    cough = make_medicine(db_session, shop_a, "Cough Syrup", stock=20, price="80.00")
    client.post("/api/sales", json={"items": [{"medicine_id": medicine_a.id, "qty": 2}]}, headers=headers_a)
    client.post("/api/sales", json={"items": [{"medicine_id": cough.id, "qty": 3}]}, headers=headers_a)

    top = client.get("/api/dashboard/top-medicines", headers=headers_a).get_json()["data"]

    assert top == [
        {"name": "Cough Syrup", "qty": 3, "revenue": 240.0},
        {"name": "Paracetamol 500mg", "qty": 2, "revenue": 200.0},
    ]


def test_stats(client, customer_a, medicine_a, headers_a):
    client.post(
        "/api/sales",
        json={"customer_id": customer_a.id, "items": [{"medicine_id": medicine_a.id, "qty": 1}], "paid": 0},
        headers=headers_a,
    )
    client.post("/api/sales", json={"items": [{"medicine_id": medicine_a.id, "qty": 1}]}, headers=headers_a)

    stats = client.get("/api/dashboard/stats", headers=headers_a).get_json()["data"]

    assert stats["total_sales"] == 2
    assert stats["total_revenue"] == 200.0
    assert stats["sales_with_due"] == 1
    assert stats["top_medicines"][0]["qty"] == 2


def test_staff_can_view_dashboard(client, shop_a, staff_headers_a):
    assert client.get("/api/dashboard/cards", headers=staff_headers_a).status_code == 200
