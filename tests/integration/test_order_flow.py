from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient


def _create_menu_item(client: TestClient, headers: dict[str, str], price: str) -> str:
    response = client.post(
        "/api/menu/items",
        json={"name": "Tasting Platter", "price": price, "preparationTime": 15},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["itemId"]


def test_order_lifecycle_from_placement_to_payment(client, auth_headers, table_id) -> None:
    admin = auth_headers("admin@restaurant.com")
    waiter = auth_headers("waiter1@restaurant.com")
    chef = auth_headers("chef1@restaurant.com")
    cashier = auth_headers("cashier1@restaurant.com")
    menu_item_id = _create_menu_item(client, admin, "75.00")
    t5 = table_id("T5")

    placed = client.post(
        "/api/orders",
        json={
            "items": [{"menuItemId": menu_item_id, "quantity": 2}],
            "tableId": t5,
            "customerCount": 3,
        },
        headers=waiter,
    )
    assert placed.status_code == 201, placed.text
    order = placed.json()["data"]
    order_id = order["orderId"]
    assert order["status"] == "pending"
    assert Decimal(str(order["totalAmount"])) == Decimal("150.00")
    assert order["customerName"] == "Table T5"

    table = client.get(f"/api/tables/{t5}").json()["data"]
    assert table["status"] == "occupied"
    assert table["customerCount"] == 3

    preparing = client.patch(
        f"/api/orders/{order_id}/status", json={"status": "preparing"}, headers=chef
    )
    assert preparing.status_code == 200, preparing.text
    assert preparing.json()["data"]["estimatedReadyTime"] is not None
    assert {item["status"] for item in preparing.json()["data"]["items"]} == {"preparing"}

    kitchen = client.get("/api/kitchen/orders", headers=chef).json()["data"]
    assert order_id in {o["orderId"] for o in kitchen}

    ready = client.post(f"/api/kitchen/orders/{order_id}/ready", headers=chef)
    assert ready.status_code == 200, ready.text
    assert ready.json()["data"]["status"] == "ready"

    completed = client.patch(
        f"/api/orders/{order_id}/status", json={"status": "completed"}, headers=waiter
    )
    assert completed.status_code == 200, completed.text
    assert completed.json()["data"]["completedTime"] is not None
    assert client.get(f"/api/tables/{t5}").json()["data"]["status"] == "available"

    pending_payments = client.get("/api/billing/pending", headers=cashier).json()["data"]
    assert order_id in {o["orderId"] for o in pending_payments}

    paid = client.post(
        f"/api/billing/orders/{order_id}/pay",
        json={"paymentMethod": "card", "tip": "10.00", "tax": "15.00"},
        headers=cashier,
    )
    assert paid.status_code == 200, paid.text
    assert paid.json()["data"]["paymentStatus"] == "paid"
    assert paid.json()["data"]["paymentMethod"] == "card"

    receipt = client.get(f"/api/billing/orders/{order_id}/receipt", headers=cashier)
    assert receipt.status_code == 200, receipt.text
    assert Decimal(str(receipt.json()["data"]["total"])) == Decimal("175.00")

    second = client.post(
        f"/api/billing/orders/{order_id}/pay",
        json={"paymentMethod": "cash"},
        headers=cashier,
    )
    assert second.status_code == 409
    assert second.json()["code"] == "PAYMENT_REJECTED"


def test_waiter_cannot_start_preparation(client, auth_headers, table_id) -> None:
    admin = auth_headers("admin@restaurant.com")
    waiter = auth_headers("waiter1@restaurant.com")
    menu_item_id = _create_menu_item(client, admin, "12.00")

    placed = client.post(
        "/api/orders",
        json={"items": [{"menuItemId": menu_item_id}], "tableId": table_id("T1")},
        headers=waiter,
    )
    order_id = placed.json()["data"]["orderId"]

    response = client.patch(
        f"/api/orders/{order_id}/status", json={"status": "preparing"}, headers=waiter
    )

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["requestId"]
    assert client.get(f"/api/orders/{order_id}", headers=waiter).json()["data"]["status"] == (
        "pending"
    )


def test_second_order_on_occupied_table_is_rejected(client, auth_headers, table_id) -> None:
    admin = auth_headers("admin@restaurant.com")
    waiter = auth_headers("waiter2@restaurant.com")
    menu_item_id = _create_menu_item(client, admin, "9.00")
    t3 = table_id("T3")
    payload = {"items": [{"menuItemId": menu_item_id}], "tableId": t3, "customerCount": 2}

    assert client.post("/api/orders", json=payload, headers=waiter).status_code == 201
    response = client.post("/api/orders", json=payload, headers=waiter)

    assert response.status_code == 409
    assert response.json()["code"] == "TABLE_UNAVAILABLE"


def test_unauthenticated_and_invalid_requests_use_error_envelope(client) -> None:
    missing_token = client.get("/api/orders")
    assert missing_token.status_code == 401
    assert missing_token.json()["code"] == "UNAUTHORIZED"

    invalid = client.post("/api/auth/login", json={"email": "admin@restaurant.com"})
    assert invalid.status_code == 400
    body = invalid.json()
    assert body["code"] == "INVALID_REQUEST"
    assert body["details"]["errors"]
