"""Health probes and the shop activity feed."""


def test_health(client, db_session):
    resp = client.get("/api/status/health")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "healthy"
    assert data["database"]["status"] == "healthy"


def test_live_and_ready(client, db_session):
    assert client.get("/api/status/live").get_json()["data"] == {"alive": True}
    assert client.get("/api/status/ready").get_json()["data"] == {"ready": True}


def test_plans_are_public(client):
    plans = client.get("/api/subscription/plans").get_json()["data"]
    assert {plan["plan_type"] for plan in plans} == {"monthly", "quarterly", "halfYearly", "yearly"}


def test_subscription_status(client, headers_a):
    data = client.get("/api/status/subscription", headers=headers_a).get_json()["data"]
    assert data["shop_name"] == "Shop A Pharmacy"
    assert data["is_allowed"] is True
    assert data["monthly_price"] == 699


def test_activity_feed(client, medicine_a, headers_a):
    client.post("/api/sales", json={"items": [{"medicine_id": medicine_a.id, "qty": 1}]}, headers=headers_a)
    client.put("/api/settings", json={"gst_number": "29ABCDE1234F1Z5"}, headers=headers_a)

    data = client.get("/api/status/activity", headers=headers_a).get_json()["data"]
    assert data["count"] == 2
    assert {item["action"] for item in data["items"]} == {"create_sale", "update_settings"}

    only_sales = client.get("/api/status/activity?action=create_sale", headers=headers_a).get_json()["data"]
    assert only_sales["count"] == 1


def test_activity_feed_rejects_unknown_action(client, headers_a):
    assert client.get("/api/status/activity?action=bogus", headers=headers_a).status_code == 400


def test_activity_feed_is_shop_scoped(client, medicine_b, headers_a, headers_b):
    client.post("/api/sales", json={"items": [{"medicine_id": medicine_b.id, "qty": 1}]}, headers=headers_b)
    assert client.get("/api/status/activity", headers=headers_a).get_json()["data"]["count"] == 0
