# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two shops with separate users, then verify that:
1. A user of Shop B cannot read or write data in Shop A
2. Foreign ids are answered with 404, never 403 (no existence leak)
3. Searches and aggregates only ever see the caller's shop
4. Security events are logged for cross-tenant access attempts
"""

import pytest

from pharmatrack.errors import NotFoundError, ValidationError
from pharmatrack.models import Credit, Customer, Medicine, Sale, SecurityEvent
from pharmatrack.services.tenant_service import escape_like, get_current_shop_id, get_owned_or_404
from pharmatrack.services.token_service import issue_token

from conftest import auth_headers


def _cross_tenant_events(session, shop_id):
    return session.query(SecurityEvent).filter_by(
        event_type="CROSS_TENANT_ACCESS_DENIED", shop_id=shop_id,
    ).count()


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_get_owned_or_404_own_record(self, app, db_session, shop_a, medicine_a):
        with app.test_request_context():
            medicine = get_owned_or_404(Medicine, medicine_a.id, shop_a.id)
        assert medicine.id == medicine_a.id

    def test_get_owned_or_404_cross_tenant(self, app, db_session, shop_b, medicine_a):
        with app.test_request_context():
            with pytest.raises(NotFoundError):
                get_owned_or_404(Medicine, medicine_a.id, shop_b.id, label="Medicine")
        assert _cross_tenant_events(db_session, shop_b.id) == 1

    def test_get_owned_or_404_nonexistent_not_logged(self, app, db_session, shop_a):
        with app.test_request_context():
            with pytest.raises(NotFoundError):
                get_owned_or_404(Medicine, 999999, shop_a.id)
        assert _cross_tenant_events(db_session, shop_a.id) == 0

    def test_get_owned_or_404_garbage_id(self, app, db_session, shop_a):
        with app.test_request_context():
            with pytest.raises(NotFoundError):
                get_owned_or_404(Medicine, "abc", shop_a.id)

    def test_current_shop_required(self, app):
        with app.test_request_context():
            with pytest.raises(ValidationError):
                get_current_shop_id()

    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


class TestCustomerIsolation:
    def test_search_sees_only_own_shop(self, client, customer_a, headers_b):
        resp = client.get("/api/customers?q=Ravi", headers=headers_b)
        assert resp.status_code == 200
        assert resp.get_json()["data"] == []

    def test_profile_of_foreign_customer_is_404(self, client, db_session, shop_b, customer_a, headers_b):
        resp = client.get(f"/api/customers/{customer_a.id}/sales", headers=headers_b)

        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Customer not found"
        assert _cross_tenant_events(db_session, shop_b.id) == 1

    def test_same_phone_in_two_shops(self, client, db_session, shop_a, shop_b, headers_a, headers_b):
        payload = {"name": "Meena", "phone": "9111111111"}
        resp_a = client.post("/api/customers", json=payload, headers=headers_a)
        resp_b = client.post("/api/customers", json=payload, headers=headers_b)

        assert resp_a.status_code == 201
        assert resp_b.status_code == 201
        assert resp_a.get_json()["data"]["id"] != resp_b.get_json()["data"]["id"]

        listed_a = client.get("/api/customers", headers=headers_a).get_json()["data"]
        listed_b = client.get("/api/customers", headers=headers_b).get_json()["data"]
        assert [c["shop_id"] for c in listed_a] == [shop_a.id]
        assert [c["shop_id"] for c in listed_b] == [shop_b.id]


class TestMedicineIsolation:
    def test_search_sees_only_own_shop(self, client, medicine_a, medicine_b, headers_b):
        names = [m["name"] for m in client.get("/api/medicines", headers=headers_b).get_json()["data"]]
        assert names == ["Cetirizine 10mg"]

    def test_restock_foreign_medicine_is_404(self, client, db_session, medicine_a, headers_b):
        resp = client.put(f"/api/medicines/update-stock/{medicine_a.id}", json={"add_stock": 50}, headers=headers_b)

        assert resp.status_code == 404
        db_session.refresh(medicine_a)
        assert medicine_a.stock == 5

    def test_edit_foreign_medicine_is_404(self, client, db_session, medicine_a, headers_b):
        resp = client.put(f"/api/medicines/{medicine_a.id}", json={"selling_price": 1}, headers=headers_b)

        assert resp.status_code == 404
        db_session.refresh(medicine_a)
        assert float(medicine_a.selling_price) == 100.0


class TestSaleIsolation:
    def test_cannot_sell_foreign_medicine(self, client, db_session, medicine_a, headers_b):
        resp = client.post(
            "/api/sales",
            json={"items": [{"medicine_id": medicine_a.id, "qty": 1}]},
            headers=headers_b,
        )

        assert resp.status_code == 404
        db_session.refresh(medicine_a)
        assert medicine_a.stock == 5
        assert db_session.query(Sale).count() == 0

    def test_cannot_bill_foreign_customer(self, client, db_session, customer_a, medicine_b, headers_b):
        resp = client.post(
            "/api/sales",
            json={"customer_id": customer_a.id, "items": [{"medicine_id": medicine_b.id, "qty": 1}], "paid": 0},
            headers=headers_b,
        )

        assert resp.status_code == 404
        db_session.refresh(medicine_b)
        assert medicine_b.stock == 20

    def test_cannot_read_foreign_sale(self, client, medicine_a, headers_a, headers_b):
        created = client.post(
            "/api/sales",
            json={"items": [{"medicine_id": medicine_a.id, "qty": 1}]},
            headers=headers_a,
        ).get_json()["data"]

        assert client.get(f"/api/sales/{created['id']}", headers=headers_b).status_code == 404
        assert client.get("/api/sales", headers=headers_b).get_json()["data"]["count"] == 0


class TestCreditIsolation:
    def test_cannot_pay_foreign_credit(self, client, db_session, customer_a, medicine_a, headers_a, headers_b):
        client.post(
            "/api/sales",
            json={"customer_id": customer_a.id, "items": [{"medicine_id": medicine_a.id, "qty": 2}], "paid": 0},
            headers=headers_a,
        )
        credit = db_session.query(Credit).one()

        resp = client.put(f"/api/credits/{credit.id}/payment", json={"paid": 200}, headers=headers_b)

        assert resp.status_code == 404
        db_session.refresh(credit)
        assert credit.status == "pending"
        assert client.get("/api/credits", headers=headers_b).get_json()["data"]["credits"] == []


class TestAggregateIsolation:
    def test_dashboard_excludes_other_shop(self, client, customer_a, medicine_a, medicine_b, headers_a, headers_b):
        client.post(
            "/api/sales",
            json={"customer_id": customer_a.id, "items": [{"medicine_id": medicine_a.id, "qty": 2}], "paid": 50},
            headers=headers_a,
        )

        cards_b = client.get("/api/dashboard/cards", headers=headers_b).get_json()["data"]
        assert cards_b["today_revenue"] == 0
        assert cards_b["credit_outstanding"] == 0
        assert client.get("/api/dashboard/top-medicines", headers=headers_b).get_json()["data"] == []

        cards_a = client.get("/api/dashboard/cards", headers=headers_a).get_json()["data"]
        assert cards_a["today_revenue"] == 200.0

    def test_export_contains_only_own_sales(self, client, medicine_a, headers_a, headers_b):
        client.post("/api/sales", json={"items": [{"medicine_id": medicine_a.id, "qty": 1}]}, headers=headers_a)

        resp = client.get("/api/export/sales/csv", headers=headers_b)
        assert resp.get_json() == {"success": False, "message": "No sales data to export"}


class TestTenantContext:
    def test_token_without_shop_rejected(self, client, db_session, admin_a):
        token = issue_token(user_id=admin_a.id, shop_id=None, role="admin")

        resp = client.get("/api/customers", headers=auth_headers(token))

        assert resp.status_code == 401
        assert db_session.query(SecurityEvent).filter_by(event_type="TENANT_CONTEXT_MISSING").count() == 1

    def test_shop_comes_from_token_not_request(self, client, db_session, shop_b, customer_a, headers_b):
        resp = client.get(f"/api/customers?shop_id={customer_a.shop_id}", headers=headers_b)
        assert resp.get_json()["data"] == []

    def test_superadmin_has_no_tenant_data_access(self, client, customer_a, superadmin_headers):
        resp = client.get("/api/customers", headers=superadmin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Shop context missing"
