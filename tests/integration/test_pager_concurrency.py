from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

import pytest

from rms.domain.common.ids import OrderId
from rms.infrastructure.db.repositories.pager_repo import SqlAlchemyPagerRepository


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'pagers.db'}"


def _takeaway_order(client, headers: dict[str, str], menu_item_id: str, name: str) -> str:
    response = client.post(
        "/api/orders",
        json={"items": [{"menuItemId": menu_item_id}], "customerName": name},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["orderId"]


def _any_menu_item(client) -> str:
    return client.get("/api/menu/items").json()["data"][0]["itemId"]


def test_only_one_concurrent_claim_on_a_pager_wins(client, auth_headers) -> None:
    waiter = auth_headers("waiter1@restaurant.com")
    menu_item_id = _any_menu_item(client)
    order_ids = [
        _takeaway_order(client, waiter, menu_item_id, f"Guest {n}") for n in range(6)
    ]
    repository = SqlAlchemyPagerRepository()
    now = datetime.now(timezone.utc)

    with ThreadPoolExecutor(max_workers=len(order_ids)) as pool:
        results = list(
            pool.map(
                lambda order_id: repository.assign_to_order(4, OrderId(order_id), now),
                order_ids,
            )
        )

    assert results.count(True) == 1
    pager = repository.get_by_number(4)
    assert pager is not None
    assert pager.status.value == "assigned"
    assert pager.order_id == order_ids[results.index(True)]


def test_placing_an_order_on_a_taken_pager_conflicts(client, auth_headers) -> None:
    waiter = auth_headers("waiter2@restaurant.com")
    menu_item_id = _any_menu_item(client)
    payload = {
        "items": [{"menuItemId": menu_item_id}],
        "customerName": "Walk-in",
        "pagerNumber": 7,
    }

    first = client.post("/api/orders", json=payload, headers=waiter)
    second = client.post("/api/orders", json=payload, headers=waiter)

    assert first.status_code == 201, first.text
    assert first.json()["data"]["pagerNumber"] == 7
    assert second.status_code == 409
    assert second.json()["code"] == "PAGER_UNAVAILABLE"

    pagers = client.get("/api/tables/pagers", headers=waiter).json()["data"]
    assert next(p for p in pagers if p["pagerNumber"] == 7)["orderId"] == (
        first.json()["data"]["orderId"]
    )


def test_released_pager_detaches_from_its_order(client, auth_headers) -> None:
    waiter = auth_headers("waiter1@restaurant.com")
    menu_item_id = _any_menu_item(client)
    placed = client.post(
        "/api/orders",
        json={"items": [{"menuItemId": menu_item_id}], "customerName": "Patio", "pagerNumber": 6},
        headers=waiter,
    )
    assert placed.status_code == 201, placed.text
    order_id = placed.json()["data"]["orderId"]

    released = client.post("/api/tables/pagers/6/release", headers=waiter)
    assert released.status_code == 200, released.text
    assert released.json()["data"]["status"] == "available"
    assert client.get(f"/api/orders/{order_id}", headers=waiter).json()["data"][
        "pagerNumber"
    ] is None

    reassigned = client.post(
        "/api/tables/pagers/8/assign", json={"orderId": order_id}, headers=waiter
    )
    assert reassigned.status_code == 200, reassigned.text
    assert reassigned.json()["data"]["orderId"] == order_id
    order = client.get(f"/api/orders/{order_id}", headers=waiter).json()["data"]
    assert order["pagerNumber"] == 8
