from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient


def _place(client: TestClient, headers: dict[str, str], **extra) -> dict:
    menu_item_id = client.get("/api/menu/items").json()["data"][0]["itemId"]
    payload = {"items": [{"menuItemId": menu_item_id, "quantity": 2}], **extra}
    response = client.post("/api/orders", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_cashier_reads_the_kitchen_queue_but_cannot_mark_ready(client, auth_headers) -> None:
    waiter = auth_headers("waiter1@restaurant.com")
    cashier = auth_headers("cashier1@restaurant.com")
    order = _place(client, waiter, customerName="Counter")

    queue = client.get("/api/kitchen/orders", headers=cashier)
    assert queue.status_code == 200
    assert order["orderId"] in {o["orderId"] for o in queue.json()["data"]}

    ready = client.post(f"/api/kitchen/orders/{order['orderId']}/ready", headers=cashier)
    assert ready.status_code == 403
    assert ready.json()["code"] == "FORBIDDEN"

    item_id = order["items"][0]["itemId"]
    item = client.patch(
        f"/api/kitchen/items/{item_id}/status", json={"status": "ready"}, headers=cashier
    )
    assert item.status_code == 403
    assert client.get(f"/api/orders/{order['orderId']}", headers=waiter).json()["data"][
        "status"
    ] == "pending"


def test_chef_marks_a_pending_order_ready_and_buzzes_its_pager(client, auth_headers) -> None:
    waiter = auth_headers("waiter2@restaurant.com")
    chef = auth_headers("chef1@restaurant.com")
    order = _place(client, waiter, customerName="Walk-in", pagerNumber=5)

    response = client.post(f"/api/kitchen/orders/{order['orderId']}/ready", headers=chef)

    assert response.status_code == 200, response.text
    ready = response.json()["data"]
    assert ready["status"] == "ready"
    assert ready["estimatedReadyTime"] is not None
    assert {item["status"] for item in ready["items"]} == {"ready"}
    pager = client.get("/api/tables/pagers/5", headers=waiter).json()["data"]
    assert pager["status"] == "active"


def test_item_updates_leave_the_order_status_alone(client, auth_headers) -> None:
    waiter = auth_headers("waiter1@restaurant.com")
    chef = auth_headers("chef1@restaurant.com")
    order = _place(client, waiter, customerName="Bar")
    item_id = order["items"][0]["itemId"]

    response = client.patch(
        f"/api/kitchen/items/{item_id}/status", json={"status": "ready"}, headers=chef
    )

    assert response.status_code == 200, response.text
    assert response.json()["data"]["completedAt"] is not None
    current = client.get(f"/api/orders/{order['orderId']}", headers=waiter).json()["data"]
    assert current["status"] == "pending"


def test_cancelling_frees_the_table_and_the_pager(client, auth_headers, table_id) -> None:
    waiter = auth_headers("waiter1@restaurant.com")
    manager = auth_headers("manager@restaurant.com")
    t6 = table_id("T6")
    order = _place(client, waiter, tableId=t6, customerCount=4, pagerNumber=9)
    assert client.get(f"/api/tables/{t6}").json()["data"]["status"] == "occupied"

    response = client.delete(
        f"/api/orders/{order['orderId']}/cancel",
        params={"reason": "guest left"},
        headers=manager,
    )

    assert response.status_code == 200, response.text
    cancelled = response.json()["data"]
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancelReason"] == "guest left"
    assert client.get(f"/api/tables/{t6}").json()["data"]["status"] == "available"
    pager = client.get("/api/tables/pagers/9", headers=waiter).json()["data"]
    assert pager["status"] == "available"
    assert pager["orderId"] is None


def test_payment_keeps_a_discount_applied_before_it(client, auth_headers) -> None:
    waiter = auth_headers("waiter2@restaurant.com")
    cashier = auth_headers("cashier1@restaurant.com")
    order = _place(client, waiter, customerName="Regular")
    total = Decimal(str(order["totalAmount"]))

    discounted = client.post(
        f"/api/billing/orders/{order['orderId']}/discount",
        json={"discountAmount": "1.00", "discountReason": "loyalty"},
        headers=cashier,
    )
    assert discounted.status_code == 200, discounted.text

    paid = client.post(
        f"/api/billing/orders/{order['orderId']}/pay",
        json={"paymentMethod": "cash"},
        headers=cashier,
    )
    assert paid.status_code == 200, paid.text
    assert Decimal(str(paid.json()["data"]["discount"])) == Decimal("1.00")

    receipt = client.get(f"/api/billing/orders/{order['orderId']}/receipt", headers=cashier)
    assert Decimal(str(receipt.json()["data"]["total"])) == total - Decimal("1.00")
