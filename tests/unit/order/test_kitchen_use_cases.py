from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from rms.application.use_cases.kitchen import KitchenOrders, KitchenStats, UrgentOrders
from rms.application.use_cases.order_lifecycle import (
    InvalidOrderStatusError,
    InvalidOrderTransitionError,
    OrderItemNotFoundError,
    UpdateItemStatus,
)
from rms.domain.common.ids import MenuItemId, OrderId, OrderItemId, TableId
from rms.domain.common.money import Money
from rms.domain.order.entities import (
    Order,
    OrderItem,
    OrderItemStatus,
    OrderStatus,
    create_pending_order,
)


class FakeOrderRepository:
    def __init__(self, orders: list[Order]) -> None:
        self.orders = {order.order_id: order for order in orders}
        self.item_writes: list[tuple[OrderItemId, OrderItemStatus]] = []

    def get_by_item(self, item_id: OrderItemId) -> Order | None:
        for order in self.orders.values():
            if order.find_item(item_id) is not None:
                return order
        return None

    def update_item_status(
        self,
        item_id: OrderItemId,
        status: OrderItemStatus,
        completed_at: datetime | None,
    ) -> None:
        self.item_writes.append((item_id, status))
        order = self.get_by_item(item_id)
        items = [
            replace(item, status=status, completed_at=completed_at)
            if item.item_id == item_id
            else item
            for item in order.items
        ]
        self.orders[order.order_id] = replace(order, items=items)

    def list_by_statuses(
        self,
        statuses: frozenset[OrderStatus],
        placed_before: datetime | None = None,
    ) -> list[Order]:
        return [
            order
            for order in self.orders.values()
            if order.status in statuses
            and (placed_before is None or order.order_time < placed_before)
        ]

    def count_by_status_since(self, since: datetime) -> dict[OrderStatus, int]:
        counts: dict[OrderStatus, int] = {}
        for order in self.orders.values():
            if order.order_time >= since:
                counts[order.status] = counts.get(order.status, 0) + 1
        return counts


def _order(
    suffix: str,
    status: OrderStatus = OrderStatus.PENDING,
    age: timedelta = timedelta(minutes=1),
    item_statuses: tuple[OrderItemStatus, ...] = (OrderItemStatus.PENDING,),
) -> Order:
    items = [
        OrderItem(
            item_id=OrderItemId(f"oit_{suffix}_{index}"),
            menu_item_id=MenuItemId("itm_001"),
            name="Soup",
            quantity=1,
            price=Money.from_decimal("12.00"),
            status=item_status,
        )
        for index, item_status in enumerate(item_statuses)
    ]
    order = create_pending_order(
        order_id=OrderId(f"ord_{suffix}"),
        order_number=f"ORD-{suffix}",
        table_id=TableId("tbl_001"),
        customer_name="Table T1",
        items=items,
        waiter_id=None,
        now=datetime.now(timezone.utc) - age,
    )
    return replace(order, status=status)


def test_item_status_change_never_rolls_up_to_the_order() -> None:
    order = _order("a", item_statuses=(OrderItemStatus.PENDING,))
    repository = FakeOrderRepository([order])

    response = UpdateItemStatus(repository).execute(OrderItemId("oit_a_0"), "READY")

    assert response.status == "ready"
    assert response.completedAt is not None
    assert repository.orders[order.order_id].status == OrderStatus.PENDING


def test_item_moved_back_to_preparing_loses_its_completion_time() -> None:
    order = _order("b", status=OrderStatus.PREPARING, item_statuses=(OrderItemStatus.READY,))
    repository = FakeOrderRepository([order])
    use_case = UpdateItemStatus(repository)
    use_case.execute(OrderItemId("oit_b_0"), "ready")

    response = use_case.execute(OrderItemId("oit_b_0"), "preparing")

    assert response.status == "preparing"
    assert response.completedAt is None


@pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.CANCELLED])
def test_items_of_terminal_orders_are_locked(status: OrderStatus) -> None:
    repository = FakeOrderRepository([_order("c", status=status)])

    with pytest.raises(InvalidOrderTransitionError):
        UpdateItemStatus(repository).execute(OrderItemId("oit_c_0"), "served")
    assert repository.item_writes == []


def test_item_status_rejects_unknown_item_and_status() -> None:
    use_case = UpdateItemStatus(FakeOrderRepository([_order("d")]))

    with pytest.raises(OrderItemNotFoundError):
        use_case.execute(OrderItemId("oit_missing"), "ready")
    with pytest.raises(InvalidOrderStatusError):
        use_case.execute(OrderItemId("oit_d_0"), "burnt")


def test_kitchen_queue_puts_ready_first_then_oldest() -> None:
    repository = FakeOrderRepository(
        [
            _order("new", age=timedelta(minutes=2)),
            _order("old", age=timedelta(minutes=9)),
            _order("cooking", status=OrderStatus.PREPARING),
            _order("pass", status=OrderStatus.READY, item_statuses=(OrderItemStatus.READY,)),
            _order("done", status=OrderStatus.COMPLETED),
        ]
    )

    queue = KitchenOrders(repository).execute()

    assert [order.orderNumber for order in queue] == [
        "ORD-pass",
        "ORD-cooking",
        "ORD-old",
        "ORD-new",
    ]
    assert [item.status for item in queue[0].items] == ["ready"]


def test_urgent_orders_are_open_and_older_than_twenty_minutes() -> None:
    repository = FakeOrderRepository(
        [
            _order("late", age=timedelta(minutes=45)),
            _order("later", status=OrderStatus.PREPARING, age=timedelta(minutes=25)),
            _order("fresh", age=timedelta(minutes=5)),
            _order("waiting", status=OrderStatus.READY, age=timedelta(minutes=50)),
        ]
    )

    urgent = UrgentOrders(repository).execute()

    assert [order.orderNumber for order in urgent] == ["ORD-late", "ORD-later"]


def test_kitchen_stats_count_today_and_urgent() -> None:
    repository = FakeOrderRepository(
        [
            _order("p1", age=timedelta(minutes=30)),
            _order("p2"),
            _order("c1", status=OrderStatus.PREPARING),
            _order("r1", status=OrderStatus.READY),
            _order("done", status=OrderStatus.COMPLETED),
            _order("void", status=OrderStatus.CANCELLED),
            _order("yesterday", status=OrderStatus.COMPLETED, age=timedelta(days=2)),
        ]
    )

    stats = KitchenStats(repository).execute()

    assert stats.preparing == 1
    assert stats.ready == 1
    assert stats.cancelledToday == 1
    assert stats.completedToday == 1
    assert stats.urgent == 1
