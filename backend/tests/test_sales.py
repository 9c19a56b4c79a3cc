# Overview: Pytest coverage for sale recording: stock, totals, atomicity, idempotency.

"""
Sales Tests

Verifies:
- Stock never goes negative and a failed sale leaves stock untouched
- Totals are computed server-side from snapshots of the catalog
- All writes of a sale commit or roll back together
- A replayed idempotency key returns the original sale
"""

import pytest

from pharmatrack.models import Credit, Customer, Medicine, Sale
from pharmatrack.services import medicine_service

from conftest import make_medicine


def _sell(client, headers, **payload):
    return client.post("/api/sales", json=payload, headers=headers)


class TestStock:
    def test_stock_five_sell_three_twice(self, client, db_session, medicine_a, headers_a):
        first = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 3}])
        assert first.status_code == 201

        db_session.refresh(medicine_a)
        assert medicine_a.stock == 2

        second = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 3}])
        assert second.status_code == 400
        body = second.get_json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert "Paracetamol 500mg" in body["message"]

        db_session.refresh(medicine_a)
        assert medicine_a.stock == 2
        assert db_session.query(Sale).count() == 1

    def test_same_medicine_on_two_lines_checked_together(self, client, db_session, medicine_a, headers_a):
        resp = _sell(client, headers_a, items=[
            {"medicine_id": medicine_a.id, "qty": 3},
            {"medicine_id": medicine_a.id, "qty": 3},
        ])

        assert resp.status_code == 400
        db_session.refresh(medicine_a)
        assert medicine_a.stock == 5

    def test_failed_decrement_rolls_back_everything(self, client, db_session, shop_a, medicine_a, headers_a, monkeypatch):
        ointment = make_medicine(db_session, shop_a, "Burn Ointment", stock=4, price="60.00")
        original = medicine_service.decrement_stock
        calls = []

        def losing_race(shop_id, medicine_id, quantity):
            calls.append(medicine_id)
            if len(calls) == 2:
                return False
            return original(shop_id, medicine_id, quantity)

        monkeypatch.setattr(medicine_service, "decrement_stock", losing_race)

        resp = _sell(
            client,
            headers_a,
            customer={"name": "New Walk-in", "phone": "9333333333"},
            items=[
                {"medicine_id": medicine_a.id, "qty": 2},
                {"medicine_id": ointment.id, "qty": 1},
            ],
            paid=0,
        )

        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INSUFFICIENT_STOCK"
        assert db_session.get(Medicine, medicine_a.id).stock == 5
        assert db_session.get(Medicine, ointment.id).stock == 4
        assert db_session.query(Sale).count() == 0
        assert db_session.query(Credit).count() == 0
        assert db_session.query(Customer).filter_by(phone="9333333333").count() == 0

    def test_zero_quantity_rejected(self, client, medicine_a, headers_a):
        resp = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 0}])
        assert resp.status_code == 400

    def test_empty_items_rejected(self, client, headers_a):
        assert _sell(client, headers_a, items=[]).status_code == 400


class TestTotals:
    def test_defaults_to_selling_price_and_fully_paid(self, client, medicine_a, headers_a):
        data = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 2}]).get_json()["data"]

        assert data["subtotal"] == 200.0
        assert data["final_total"] == 200.0
        assert data["paid"] == 200.0
        assert data["due"] == 0.0
        assert data["customer"] is None
        assert data["invoice_number"] == "INV-000001"
        assert data["items"][0]["name"] == "Paracetamol 500mg"
        assert data["items"][0]["price"] == 100.0

    def test_price_override_discount_and_gst(self, client, medicine_a, headers_a):
        data = _sell(
            client,
            headers_a,
            items=[{"medicine_id": medicine_a.id, "qty": 2, "price": 90, "item_discount_percent": 10}],
            gst=10,
            discount=2,
        ).get_json()["data"]

        assert data["items"][0]["line_total"] == 162.0
        assert data["subtotal"] == 162.0
        assert data["final_total"] == 170.0

    def test_final_total_never_negative(self, client, medicine_a, headers_a):
        data = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}], discount=500).get_json()["data"]
        assert data["final_total"] == 0.0
        assert data["due"] == 0.0

    def test_negative_gst_rejected(self, client, medicine_a, headers_a):
        resp = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}], gst=-5)
        assert resp.status_code == 400

    @pytest.mark.parametrize("field", ["gst", "discount", "paid"])
    def test_oversized_amount_rejected(self, client, db_session, customer_a, medicine_a, headers_a, field):
        payload = {"customer_id": customer_a.id, "items": [{"medicine_id": medicine_a.id, "qty": 1}], field: "1e30"}

        resp = _sell(client, headers_a, **payload)

        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"
        db_session.refresh(medicine_a)
        assert medicine_a.stock == 5

    def test_oversized_price_rejected(self, client, medicine_a, headers_a):
        resp = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1, "price": "99999999999"}])
        assert resp.status_code == 400

    def test_total_beyond_storable_range_rejected(self, client, db_session, medicine_a, headers_a):
        resp = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 2, "price": "9999999999"}])

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Sale total is too large"
        assert db_session.query(Sale).count() == 0

    def test_overpayment_is_capped_at_total(self, client, medicine_a, headers_a):
        data = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}], paid=500).get_json()["data"]

        assert data["final_total"] == 100.0
        assert data["paid"] == 100.0
        assert data["due"] == 0.0

    def test_invoice_prefix_from_settings(self, client, medicine_a, headers_a):
        client.put("/api/settings", json={"invoice_prefix": "PHX"}, headers=headers_a)

        data = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}]).get_json()["data"]
        assert data["invoice_number"] == "PHX-000001"

        data = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}]).get_json()["data"]
        assert data["invoice_number"] == "PHX-000002"

    def test_line_items_are_snapshots(self, client, db_session, medicine_a, headers_a):
        sale = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}]).get_json()["data"]

        client.put(f"/api/medicines/{medicine_a.id}", json={"name": "Renamed", "selling_price": 999}, headers=headers_a)

        item = client.get(f"/api/sales/{sale['id']}", headers=headers_a).get_json()["data"]["items"][0]
        assert item["name"] == "Paracetamol 500mg"
        assert item["price"] == 100.0


class TestCreditOnSale:
    def test_due_sale_creates_pending_credit(self, client, db_session, customer_a, medicine_a, headers_a):
        resp = _sell(
            client,
            headers_a,
            customer_id=customer_a.id,
            items=[{"medicine_id": medicine_a.id, "qty": 5}],
            paid=200,
        )

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["final_total"] == 500.0
        assert data["due"] == 300.0

        credit = db_session.query(Credit).one()
        assert credit.sale_id == data["id"]
        assert credit.shop_id == customer_a.shop_id
        assert float(credit.due) == 300.0
        assert credit.status == "pending"
        assert credit.phone == "9876543210"

    def test_fully_paid_sale_has_no_credit(self, client, db_session, customer_a, medicine_a, headers_a):
        _sell(client, headers_a, customer_id=customer_a.id, items=[{"medicine_id": medicine_a.id, "qty": 1}], paid=100)
        assert db_session.query(Credit).count() == 0

    def test_due_without_customer_rejected(self, client, db_session, medicine_a, headers_a):
        resp = _sell(client, headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}], paid=0)

        assert resp.status_code == 400
        db_session.refresh(medicine_a)
        assert medicine_a.stock == 5

    def test_inline_customer_is_created_once(self, client, db_session, medicine_a, headers_a):
        walk_in = {"name": "Suresh", "phone": "9222222222"}
        first = _sell(client, headers_a, customer=walk_in, items=[{"medicine_id": medicine_a.id, "qty": 1}], paid=0)
        second = _sell(client, headers_a, customer=walk_in, items=[{"medicine_id": medicine_a.id, "qty": 1}], paid=0)

        assert first.status_code == 201
        assert second.status_code == 201
        customers = db_session.query(Customer).filter_by(phone="9222222222").all()
        assert len(customers) == 1
        assert first.get_json()["data"]["customer"]["id"] == customers[0].id
        assert second.get_json()["data"]["customer"]["id"] == customers[0].id
        assert db_session.query(Credit).count() == 2


class TestIdempotency:
    def test_replay_returns_original_sale(self, client, db_session, medicine_a, headers_a):
        payload = {"items": [{"medicine_id": medicine_a.id, "qty": 2}], "idempotency_key": "till-1-0001"}

        first = client.post("/api/sales", json=payload, headers=headers_a)
        second = client.post("/api/sales", json=payload, headers=headers_a)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.get_json()["data"]["id"] == first.get_json()["data"]["id"]
        db_session.refresh(medicine_a)
        assert medicine_a.stock == 3
        assert db_session.query(Sale).count() == 1

    def test_header_key(self, client, db_session, medicine_a, headers_a):
        headers = {**headers_a, "Idempotency-Key": "till-2-0042"}
        payload = {"items": [{"medicine_id": medicine_a.id, "qty": 1}]}

        client.post("/api/sales", json=payload, headers=headers)
        client.post("/api/sales", json=payload, headers=headers)

        assert db_session.query(Sale).count() == 1

    def test_same_key_in_other_shop_is_independent(self, client, db_session, medicine_a, medicine_b, headers_a, headers_b):
        client.post("/api/sales", json={"items": [{"medicine_id": medicine_a.id, "qty": 1}], "idempotency_key": "k1"}, headers=headers_a)
        resp = client.post("/api/sales", json={"items": [{"medicine_id": medicine_b.id, "qty": 1}], "idempotency_key": "k1"}, headers=headers_b)

        assert resp.status_code == 201
        assert db_session.query(Sale).count() == 2


class TestSaleReads:
    def test_list_and_get(self, client, customer_a, medicine_a, headers_a):
        created = _sell(client, headers_a, customer_id=customer_a.id, items=[{"medicine_id": medicine_a.id, "qty": 1}]).get_json()["data"]

        listing = client.get("/api/sales", headers=headers_a).get_json()["data"]
        assert listing["count"] == 1
        assert listing["items"][0]["id"] == created["id"]
        assert "items" not in listing["items"][0]

        detail = client.get(f"/api/sales/{created['id']}", headers=headers_a).get_json()["data"]
        assert detail["customer"]["name"] == "Ravi Kumar"
        assert len(detail["items"]) == 1

    def test_staff_can_sell(self, client, medicine_a, staff_headers_a):
        resp = _sell(client, staff_headers_a, items=[{"medicine_id": medicine_a.id, "qty": 1}])
        assert resp.status_code == 201


class TestDecrementStock:
    def test_floor_check(self, db_session, shop_a):
        medicine = make_medicine(db_session, shop_a, "Antacid Gel", stock=2)

        assert medicine_service.decrement_stock(shop_a.id, medicine.id, 3) is False
        db_session.commit()
        db_session.refresh(medicine)
        assert medicine.stock == 2

        assert medicine_service.decrement_stock(shop_a.id, medicine.id, 2) is True
        db_session.commit()
        db_session.refresh(medicine)
        assert medicine.stock == 0

        assert medicine_service.decrement_stock(shop_a.id, medicine.id, 1) is False

    def test_other_shop_cannot_decrement(self, db_session, shop_b, medicine_a):
        assert medicine_service.decrement_stock(shop_b.id, medicine_a.id, 1) is False
        db_session.commit()
        db_session.refresh(medicine_a)
        assert medicine_a.stock == 5
