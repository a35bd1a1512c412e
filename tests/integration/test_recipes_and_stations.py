from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient


def _by_name(rows: list[dict], key: str) -> dict[str, str]:
    return {row["name"]: row[key] for row in rows}


def _menu_ids(client: TestClient) -> dict[str, str]:
    return _by_name(client.get("/api/menu/items").json()["data"], "itemId")


def _ingredient_ids(client: TestClient, headers: dict[str, str]) -> dict[str, str]:
    return _by_name(client.get("/api/inventory", headers=headers).json()["data"], "ingredientId")


def test_recipe_costs_margin_and_shortages(client, auth_headers) -> None:
    manager = auth_headers("manager@restaurant.com")
    chef = auth_headers("chef1@restaurant.com")
    pizza = _menu_ids(client)["Margherita Pizza"]
    ingredients = _ingredient_ids(client, manager)
    base = f"/api/menu/items/{pizza}/recipe"

    for name, quantity in (("Wheat Flour", "0.200"), ("Tomatoes", "0.100")):
        added = client.post(
            f"{base}/ingredients",
            json={"ingredientId": ingredients[name], "quantityRequired": quantity},
            headers=manager,
        )
        assert added.status_code == 200, added.text

    recipe = client.get(base, headers=chef).json()["data"]
    assert Decimal(str(recipe["costPrice"])) == Decimal("13.60")
    assert Decimal(str(recipe["profitMargin"])) == Decimal("26.49")
    assert {i["ingredientName"] for i in recipe["ingredients"]} == {"Wheat Flour", "Tomatoes"}

    enough = client.get(f"{base}/availability", params={"quantity": 400}, headers=chef)
    assert enough.json()["data"]["canPrepare"] is True
    short = client.get(f"{base}/availability", params={"quantity": 450}, headers=chef)
    [shortage] = short.json()["data"]["shortages"]
    assert shortage["ingredientName"] == "Tomatoes"
    assert Decimal(str(shortage["missing"])) == Decimal("5")

    listed = client.get("/api/menu/items-with-recipes", headers=chef).json()["data"]
    assert [r["menuItemName"] for r in listed] == ["Margherita Pizza"]


def test_recipe_changes_are_management_only(client, auth_headers) -> None:
    chef = auth_headers("chef1@restaurant.com")
    waiter = auth_headers("waiter1@restaurant.com")
    pizza = _menu_ids(client)["Margherita Pizza"]
    flour = _ingredient_ids(client, chef)["Wheat Flour"]

    denied = client.post(
        f"/api/menu/items/{pizza}/recipe/ingredients",
        json={"ingredientId": flour, "quantityRequired": "0.2"},
        headers=chef,
    )
    assert denied.status_code == 403
    assert client.get(f"/api/menu/items/{pizza}/recipe", headers=waiter).status_code == 403


def test_ingredient_used_by_a_recipe_cannot_be_deleted(client, auth_headers) -> None:
    admin = auth_headers("admin@restaurant.com")
    pizza = _menu_ids(client)["Margherita Pizza"]
    flour = _ingredient_ids(client, admin)["Wheat Flour"]
    client.post(
        f"/api/menu/items/{pizza}/recipe/ingredients",
        json={"ingredientId": flour, "quantityRequired": "0.2"},
        headers=admin,
    )

    blocked = client.delete(f"/api/inventory/{flour}", headers=admin)
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "INGREDIENT_IN_USE"

    removed = client.delete(f"/api/menu/items/{pizza}/recipe/ingredients/{flour}", headers=admin)
    assert removed.json()["data"]["ingredients"] == []
    again = client.delete(f"/api/menu/items/{pizza}/recipe/ingredients/{flour}", headers=admin)
    assert again.status_code == 404
    assert again.json()["code"] == "RECIPE_LINE_NOT_FOUND"
    assert client.delete(f"/api/inventory/{flour}", headers=admin).status_code == 200


def test_station_routes_its_categories_to_the_kitchen_screen(client, auth_headers) -> None:
    admin = auth_headers("admin@restaurant.com")
    manager = auth_headers("manager@restaurant.com")
    chef = auth_headers("chef1@restaurant.com")
    cashier = auth_headers("cashier1@restaurant.com")
    waiter = auth_headers("waiter1@restaurant.com")
    mains = _by_name(client.get("/api/menu/categories").json()["data"], "categoryId")["Mains"]

    created = client.post("/api/stations", json={"name": "Pizza Oven"}, headers=chef)
    assert created.status_code == 201, created.text
    station_id = created.json()["data"]["stationId"]
    duplicate = client.post("/api/stations", json={"name": "Pizza Oven"}, headers=manager)
    assert duplicate.status_code == 409

    assigned = client.post(
        f"/api/stations/{station_id}/assign-categories",
        json={"categoryIds": [mains]},
        headers=manager,
    )
    assert assigned.json()["data"]["categoryIds"] == [mains]

    [available] = client.get("/api/stations/chefs/available", headers=manager).json()["data"]
    staffed = client.post(
        f"/api/stations/{station_id}/assign-chef",
        json={"chefId": available["userId"]},
        headers=manager,
    )
    assert staffed.json()["data"]["assignedChefId"] == available["userId"]

    menu = _menu_ids(client)
    order = client.post(
        "/api/orders",
        json={
            "customerName": "Window",
            "items": [
                {"menuItemId": menu["Margherita Pizza"], "quantity": 1},
                {"menuItemId": menu["Tiramisu"], "quantity": 2},
            ],
        },
        headers=waiter,
    ).json()["data"]

    tickets = client.get(f"/api/kitchen/station/{station_id}", headers=cashier).json()["data"]
    assert [t["orderId"] for t in tickets] == [order["orderId"]]
    assert [i["name"] for i in tickets[0]["items"]] == ["Margherita Pizza"]

    detail = client.get(f"/api/stations/{station_id}", headers=waiter).json()["data"]
    assert detail["workload"]["activeOrders"] == 1
    assert detail["workload"]["pendingItems"] == 1

    stats = client.get("/api/stations/stats/summary", headers=manager).json()["data"]
    assert stats["totalStations"] == 1
    assert stats["staffedStations"] == 1

    assert client.delete(f"/api/stations/{station_id}", headers=manager).status_code == 403
    in_use = client.delete(f"/api/stations/{station_id}", headers=admin)
    assert in_use.status_code == 409
    assert in_use.json()["code"] == "STATION_IN_USE"
