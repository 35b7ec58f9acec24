"""PUT /api/orders/{id}/status against both stores."""
from __future__ import annotations


def test_update_remote_status(client, remote_store, order_payload):
    order_id = client.post("/api/orders", json=order_payload).json()["orderId"]

    resp = client.put(f"/api/orders/{order_id}/status", json={"status": "Shipped"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"]
    assert body["data"]["status"] == "Shipped"
    assert remote_store.orders[0]["status"] == "Shipped"


def test_update_local_status(client, remote_store, local_store, order_payload):
    remote_store.fail_create = True
    order_id = client.post("/api/orders", json=order_payload).json()["orderId"]

    resp = client.put(f"/api/orders/{order_id}/status", json={"status": "Delivered"})

    assert resp.status_code == 200
    assert local_store.read_orders()[0]["status"] == "Delivered"


def test_unknown_order_is_404(client):
    resp = client.put("/api/orders/999/status", json={"status": "Shipped"})

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Order ID not Found"}


def test_missing_status_is_400(client, order_payload):
    order_id = client.post("/api/orders", json=order_payload).json()["orderId"]

    assert client.put(f"/api/orders/{order_id}/status", json={}).status_code == 400
    assert client.put(f"/api/orders/{order_id}/status", json={"status": " "}).status_code == 400
