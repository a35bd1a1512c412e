from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from rms.application.dto.requests import (
    AssignCategoriesRequest,
    AssignChefRequest,
    CreateStationRequest,
    UpdateStationRequest,
)
from rms.application.ports.repositories import DuplicateKeyError
from rms.application.use_cases.menu import CategoryNotFoundError
from rms.application.use_cases.stations import (
    AssignCategories,
    AssignChef,
    AvailableChefs,
    ChefUnavailableError,
    CreateStation,
    DeleteStation,
    DuplicateStationError,
    GetStation,
    InvalidStationRequestError,
    ListStations,
    RemoveChef,
    StationInUseError,
    StationNotFoundError,
    StationOrders,
    StationStats,
    UpdateStation,
)
from rms.domain.common.ids import CategoryId, MenuItemId, OrderId, OrderItemId, StationId, UserId
from rms.domain.common.money import Money
from rms.domain.identity.entities import Role, User, UserStatus
from rms.domain.menu.entities import Category, MenuItem
from rms.domain.order.entities import (
    Order,
    OrderItem,
    OrderItemStatus,
    OrderStatus,
    create_pending_order,
)
from rms.domain.station.entities import Station, StationStatus

GRILL = StationId("stn_grill")
MAINS = CategoryId("cat_mains")
DESSERTS = CategoryId("cat_desserts")


class FakeStationRepository:
    def __init__(self) -> None:
        self.stations: dict[StationId, Station] = {}
        self.routing: dict[CategoryId, StationId] = {}

    def add(self, station: Station) -> None:
        if any(s.name == station.name for s in self.stations.values()):
            raise DuplicateKeyError(station.name)
        self.stations[station.station_id] = station

    def get(self, station_id: StationId) -> Station | None:
        return self.stations.get(station_id)

    def update(self, station: Station) -> None:
        self.stations[station.station_id] = station

    def delete(self, station_id: StationId) -> None:
        self.stations.pop(station_id, None)

    def list(self, status: StationStatus | None = None) -> list[Station]:
        return [
            s
            for s in sorted(self.stations.values(), key=lambda s: s.name)
            if status is None or s.status == status
        ]

    def category_ids(self, station_id: StationId) -> list[CategoryId]:
        return sorted(c for c, s in self.routing.items() if s == station_id)

    def assign_categories(self, station_id: StationId, category_ids: list[CategoryId]) -> None:
        for category_id in category_ids:
            self.routing[category_id] = station_id

    def count_for_chef(self, chef_id: UserId) -> int:
        return sum(1 for s in self.stations.values() if s.assigned_chef_id == chef_id)


class FakeMenuRepository:
    def __init__(self) -> None:
        self.categories = {
            MAINS: Category(category_id=MAINS, name="Mains"),
            DESSERTS: Category(category_id=DESSERTS, name="Desserts"),
        }
        self.items = [
            MenuItem(
                item_id=MenuItemId("mit_steak"),
                category_id=MAINS,
                name="Steak",
                price=Money.from_decimal("30.00"),
            ),
            MenuItem(
                item_id=MenuItemId("mit_tart"),
                category_id=DESSERTS,
                name="Tart",
                price=Money.from_decimal("8.00"),
            ),
        ]

    def get_category(self, category_id: CategoryId) -> Category | None:
        return self.categories.get(category_id)

    def list_items(self, category_id=None, available=None, popular=None) -> list[MenuItem]:
        return [i for i in self.items if category_id is None or i.category_id == category_id]


class FakeOrderRepository:
    def __init__(self, orders: list[Order]) -> None:
        self.orders = orders

    def list_by_statuses(self, statuses, placed_before=None) -> list[Order]:
        return [order for order in self.orders if order.status in statuses]


class FakeUserRepository:
    def __init__(self, users: list[User]) -> None:
        self.users = {user.user_id: user for user in users}

    def get(self, user_id: UserId) -> User | None:
        return self.users.get(user_id)

    def list(self, role: Role | None = None, status: UserStatus | None = None) -> list[User]:
        return [
            u
            for u in self.users.values()
            if (role is None or u.role == role) and (status is None or u.status == status)
        ]


def _user(suffix: str, role: Role, status: UserStatus = UserStatus.ACTIVE) -> User:
    return User(
        user_id=UserId(f"usr_{suffix}"),
        username=suffix,
        email=f"{suffix}@restaurant.com",
        password_hash="x",
        role=role,
        first_name=suffix.title(),
        last_name="Cook",
        phone=None,
        status=status,
        token_version=0,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def _line(suffix: str, menu_item: str, status=OrderItemStatus.PENDING) -> OrderItem:
    return OrderItem(
        item_id=OrderItemId(f"oit_{suffix}"),
        menu_item_id=MenuItemId(menu_item),
        name=menu_item,
        quantity=1,
        price=Money.from_decimal("10.00"),
        status=status,
    )


def _order(suffix: str, items: list[OrderItem], minutes_ago: int, status=OrderStatus.PENDING):
    order = create_pending_order(
        order_id=OrderId(f"ord_{suffix}"),
        order_number=f"ORD-{suffix}",
        table_id=None,
        customer_name="Walk-in",
        items=items,
        waiter_id=None,
        now=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )
    return replace(order, status=status)


@pytest.fixture
def stations() -> FakeStationRepository:
    repository = FakeStationRepository()
    repository.add(Station(station_id=GRILL, name="Grill"))
    return repository


def test_station_rejects_bad_colors() -> None:
    with pytest.raises(ValueError):
        Station(station_id=GRILL, name="Grill", color="red")


def test_create_station_defaults_and_duplicate_names(stations: FakeStationRepository) -> None:
    created = CreateStation(stations).execute(CreateStationRequest(name=" Pastry "))

    assert created.name == "Pastry"
    assert created.status == "active"
    assert created.color == "#4CAF50"
    with pytest.raises(DuplicateStationError):
        CreateStation(stations).execute(CreateStationRequest(name="Grill"))
    with pytest.raises(InvalidStationRequestError):
        CreateStation(stations).execute(CreateStationRequest(name="Fry", status="closed"))


def test_update_station_changes_only_sent_fields(stations: FakeStationRepository) -> None:
    updated = UpdateStation(stations).execute(
        GRILL, UpdateStationRequest(status="MAINTENANCE", color="#FF5722")
    )

    assert updated.name == "Grill"
    assert updated.status == "maintenance"
    assert updated.color == "#FF5722"
    assert [s.name for s in ListStations(stations).execute(status="maintenance")] == ["Grill"]
    with pytest.raises(InvalidStationRequestError):
        UpdateStation(stations).execute(GRILL, UpdateStationRequest(color="#12"))


def test_station_with_categories_cannot_be_deleted(stations: FakeStationRepository) -> None:
    menu = FakeMenuRepository()
    AssignCategories(stations, menu).execute(
        GRILL, AssignCategoriesRequest(categoryIds=["cat_mains"])
    )

    with pytest.raises(StationInUseError):
        DeleteStation(stations).execute(GRILL)
    with pytest.raises(CategoryNotFoundError):
        AssignCategories(stations, menu).execute(
            GRILL, AssignCategoriesRequest(categoryIds=["cat_missing"])
        )

    stations.routing.clear()
    DeleteStation(stations).execute(GRILL)
    with pytest.raises(StationNotFoundError):
        DeleteStation(stations).execute(GRILL)


def test_chef_runs_at_most_two_stations(stations: FakeStationRepository) -> None:
    chef = _user("chef1", Role.CHEF)
    users = FakeUserRepository([chef, _user("waiter1", Role.WAITER)])
    for name in ("Pastry", "Fry"):
        CreateStation(stations).execute(CreateStationRequest(name=name))
    by_name = {s.name: s.station_id for s in stations.list()}
    pastry, fry = by_name["Pastry"], by_name["Fry"]
    assign = AssignChef(stations, users)

    assign.execute(GRILL, AssignChefRequest(chefId="usr_chef1"))
    assign.execute(pastry, AssignChefRequest(chefId="usr_chef1"))
    # reassigning to a station the chef already runs is not a third station
    assign.execute(GRILL, AssignChefRequest(chefId="usr_chef1"))

    assert AvailableChefs(stations, users).execute() == []
    with pytest.raises(ChefUnavailableError):
        assign.execute(fry, AssignChefRequest(chefId="usr_chef1"))
    with pytest.raises(InvalidStationRequestError):
        assign.execute(fry, AssignChefRequest(chefId="usr_waiter1"))

    freed = RemoveChef(stations).execute(GRILL)
    assert freed.assignedChefId is None
    [available] = AvailableChefs(stations, users).execute()
    assert available.userId == "usr_chef1"
    assert available.currentStations == 1


def test_station_stats_count_by_status(stations: FakeStationRepository) -> None:
    CreateStation(stations).execute(CreateStationRequest(name="Fry", status="busy"))
    stations.update(stations.get(GRILL).with_chef(UserId("usr_chef1")))

    stats = StationStats(stations).execute()

    assert stats.totalStations == 2
    assert stats.activeStations == 1
    assert stats.busyStations == 1
    assert stats.maintenanceStations == 0
    assert stats.staffedStations == 1


def test_station_tickets_hold_only_the_stations_open_items(
    stations: FakeStationRepository,
) -> None:
    menu = FakeMenuRepository()
    stations.assign_categories(GRILL, [MAINS])
    orders = FakeOrderRepository(
        [
            _order("late", [_line("late_0", "mit_steak")], minutes_ago=2),
            _order(
                "early",
                [
                    _line("early_0", "mit_steak", OrderItemStatus.PREPARING),
                    _line("early_1", "mit_tart"),
                    _line("early_2", "mit_steak", OrderItemStatus.READY),
                ],
                minutes_ago=10,
                status=OrderStatus.PREPARING,
            ),
            _order("sweet", [_line("sweet_0", "mit_tart")], minutes_ago=5),
            _order(
                "done",
                [_line("done_0", "mit_steak")],
                minutes_ago=30,
                status=OrderStatus.COMPLETED,
            ),
        ]
    )

    tickets = StationOrders(stations, menu, orders).execute(GRILL)

    assert [t.orderId for t in tickets] == ["ord_early", "ord_late"]
    assert [i.itemId for i in tickets[0].items] == ["oit_early_0"]

    detail = GetStation(stations, menu, orders).execute(GRILL)
    assert detail.categoryIds == ["cat_mains"]
    assert detail.workload.activeOrders == 2
    assert detail.workload.pendingItems == 1
    assert detail.workload.preparingItems == 1


def test_station_without_categories_has_no_tickets(stations: FakeStationRepository) -> None:
    orders = FakeOrderRepository([_order("a", [_line("a_0", "mit_steak")], minutes_ago=1)])

    assert StationOrders(stations, FakeMenuRepository(), orders).execute(GRILL) == []
    with pytest.raises(StationNotFoundError):
        StationOrders(stations, FakeMenuRepository(), orders).execute(StationId("stn_missing"))
