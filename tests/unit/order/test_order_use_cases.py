from __future__ import annotations

import json
import sys
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from rms.application.dto.requests import (
    DiscountRequest,
    OrderItemRequest,
    PlaceOrderRequest,
    ProcessPaymentRequest,
)
from rms.application.ports.repositories import OptimisticConcurrencyError, PagerUnavailableError
from rms.application.use_cases.context import Actor, TraceContext
from rms.application.use_cases.order_lifecycle import (
    InvalidOrderTransitionError,
    MarkOrderReady,
    OrderConflictError,
    OrderItemNotFoundError,
    TransitionForbiddenError,
    UpdateOrderStatus,
)
from rms.application.use_cases.order_items import (
    AddOrderItem,
    LastOrderItemError,
    OrderLockedError,
    RemoveOrderItem,
)
from rms.application.use_cases.pagers import PagerConflictError
from rms.application.use_cases.payments import (
    ApplyDiscount,
    InvalidPaymentRequestError,
    PaymentRejectedError,
    ProcessPayment,
)
from rms.application.use_cases.place_order import MenuItemUnavailableError, PlaceOrder
from rms.application.use_cases.tables import InvalidPartySizeError, TableStateError
from rms.domain.common.ids import (
    CategoryId,
    MenuItemId,
    OrderId,
    OrderItemId,
    PagerId,
    TableId,
    UserId,
)
from rms.domain.common.money import Money
from rms.domain.identity.entities import Role
from rms.domain.menu.entities import MenuItem
from rms.domain.order.entities import Order, OrderStatus
from rms.domain.order.lifecycle import TransitionPlan
from rms.domain.pager.entities import Pager, PagerStatus
from rms.domain.table.entities import Table, TableStatus

WAITER = Actor(user_id=UserId("usr_waiter"), role=Role.WAITER)
CHEF = Actor(user_id=UserId("usr_chef"), role=Role.CHEF)
CASHIER = Actor(user_id=UserId("usr_cashier"), role=Role.CASHIER)
TRACE = TraceContext(trace_id="trace-1", request_id="req-1")


class FakeMenuRepository:
    def __init__(self, items: list[MenuItem]) -> None:
        self._items = {item.item_id: item for item in items}

    def get_items(self, item_ids: list[MenuItemId]) -> dict[MenuItemId, MenuItem]:
        return {item_id: self._items[item_id] for item_id in item_ids if item_id in self._items}


class FakeTableRepository:
    def __init__(self, table: Table | None) -> None:
        self.table = table

    def get(self, table_id: TableId) -> Table | None:
        return self.table


class FakePagerRepository:
    def __init__(self, pagers: list[Pager] | None = None) -> None:
        self._pagers = {pager.pager_number: pager for pager in pagers or []}

    def get_by_number(self, pager_number: int) -> Pager | None:
        return self._pagers.get(pager_number)


class FakeOrderRepository:
    def __init__(self) -> None:
        self.orders: dict[OrderId, Order] = {}
        self.occupied: list[Table] = []
        self.plans: list[TransitionPlan] = []
        self.add_error: Exception | None = None

    def add(self, order: Order, occupied_table: Table | None) -> None:
        if self.add_error is not None:
            raise self.add_error
        if occupied_table is not None:
            self.occupied.append(occupied_table)
        self.orders[order.order_id] = order

    def get(self, order_id: OrderId) -> Order | None:
        return self.orders.get(order_id)

    def apply_transition(self, plan: TransitionPlan) -> Order:
        current = self.orders[plan.order.order_id]
        if current.version != plan.expected_version:
            raise OptimisticConcurrencyError("version mismatch")
        self.plans.append(plan)
        stored = replace(plan.order, version=current.version + 1)
        self.orders[stored.order_id] = stored
        return stored

    def replace_items(self, order: Order, expected_version: int) -> Order:
        return self.save_billing(order, expected_version)

    def save_billing(self, order: Order, expected_version: int) -> Order:
        if self.orders[order.order_id].version != expected_version:
            raise OptimisticConcurrencyError("version mismatch")
        stored = replace(order, version=expected_version + 1)
        self.orders[stored.order_id] = stored
        return stored


@dataclass
class PublishCall:
    channel: str
    message: str


class FakePublisher:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[PublishCall] = []
        self._fail = fail

    def publish(self, channel: str, message: str) -> None:
        if self._fail:
            raise RuntimeError("broker down")
        self.calls.append(PublishCall(channel=channel, message=message))


def _menu_item(available: bool = True) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId("itm_001"),
        category_id=CategoryId("cat_001"),
        name="Pasta",
        price=Money.from_decimal("37.50"),
        available=available,
    )


def _table(status: TableStatus = TableStatus.AVAILABLE) -> Table:
    return Table(table_id=TableId("tbl_005"), table_number="T5", capacity=4, status=status)


def _place_order(
    order_repository: FakeOrderRepository | None = None,
    table: Table | None = None,
    pagers: list[Pager] | None = None,
    menu_available: bool = True,
    publisher: FakePublisher | None = None,
) -> PlaceOrder:
    return PlaceOrder(
        menu_repository=FakeMenuRepository([_menu_item(menu_available)]),
        table_repository=FakeTableRepository(table if table is not None else _table()),
        pager_repository=FakePagerRepository(pagers),
        order_repository=order_repository or FakeOrderRepository(),
        publisher=publisher or FakePublisher(),
    )


def _request(**overrides) -> PlaceOrderRequest:
    payload = {
        "items": [OrderItemRequest(menu_item_id="itm_001", quantity=2)],
        "table_id": "tbl_005",
        "customer_count": 3,
    }
    payload.update(overrides)
    return PlaceOrderRequest(**payload)


def _placed(order_repository: FakeOrderRepository, publisher: FakePublisher) -> OrderId:
    use_case = _place_order(order_repository, publisher=publisher)
    response = use_case.execute(_request(), WAITER, TRACE)
    return OrderId(response.orderId)


def test_place_order_snapshots_prices_and_occupies_table() -> None:
    order_repository = FakeOrderRepository()
    publisher = FakePublisher()
    response = _place_order(order_repository, publisher=publisher).execute(
        _request(), WAITER, TRACE
    )

    assert response.status == "pending"
    assert response.totalAmount == Decimal("75.00")
    assert response.customerName == "Table T5"
    assert response.waiterId == "usr_waiter"
    assert order_repository.occupied[0].status == TableStatus.OCCUPIED
    assert order_repository.occupied[0].customer_count == 3
    event = json.loads(publisher.calls[0].message)
    assert event["event_type"] == "order.created"
    assert event["request_id"] == "req-1"


def test_place_order_rejects_unavailable_menu_item() -> None:
    with pytest.raises(MenuItemUnavailableError):
        _place_order(menu_available=False).execute(_request(), WAITER, TRACE)


def test_place_order_rejects_occupied_table_and_oversized_party() -> None:
    with pytest.raises(TableStateError):
        _place_order(table=_table(TableStatus.OCCUPIED)).execute(_request(), WAITER, TRACE)
    with pytest.raises(InvalidPartySizeError):
        _place_order().execute(_request(customer_count=6), WAITER, TRACE)


def test_place_order_rejects_pager_in_use() -> None:
    busy = Pager(
        pager_id=PagerId("pgr_001"),
        pager_number=4,
        status=PagerStatus.ASSIGNED,
        order_id=OrderId("ord_other"),
    )
    with pytest.raises(PagerConflictError):
        _place_order(pagers=[busy]).execute(_request(pager_number=4), WAITER, TRACE)


def test_place_order_maps_lost_pager_race_to_conflict() -> None:
    order_repository = FakeOrderRepository()
    order_repository.add_error = PagerUnavailableError("pager 4 was claimed")
    free = Pager(pager_id=PagerId("pgr_001"), pager_number=4, status=PagerStatus.AVAILABLE)
    with pytest.raises(PagerConflictError):
        _place_order(order_repository, pagers=[free]).execute(
            _request(pager_number=4), WAITER, TRACE
        )


def test_place_order_survives_publisher_outage() -> None:
    response = _place_order(publisher=FakePublisher(fail=True)).execute(_request(), WAITER, TRACE)
    assert response.status == "pending"


def test_update_status_walks_the_lifecycle() -> None:
    order_repository = FakeOrderRepository()
    publisher = FakePublisher()
    order_id = _placed(order_repository, publisher)
    use_case = UpdateOrderStatus(order_repository, publisher)

    assert use_case.execute(order_id, "preparing", CHEF, TRACE).status == "preparing"
    assert use_case.execute(order_id, "ready", CHEF, TRACE).status == "ready"
    completed = use_case.execute(order_id, "completed", WAITER, TRACE)

    assert completed.status == "completed"
    assert all(item.status == "served" for item in completed.items)
    assert order_repository.plans[-1].free_table == TableId("tbl_005")
    assert [json.loads(c.message)["event_type"] for c in publisher.calls[1:]] == [
        "order.status_changed"
    ] * 3


def test_update_status_rejects_forbidden_role_and_illegal_move() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    use_case = UpdateOrderStatus(order_repository, FakePublisher())

    with pytest.raises(TransitionForbiddenError):
        use_case.execute(order_id, "preparing", WAITER, TRACE)
    with pytest.raises(InvalidOrderTransitionError):
        use_case.execute(order_id, "ready", CHEF, TRACE)


def test_update_status_converges_when_a_concurrent_writer_reached_the_target() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    use_case = UpdateOrderStatus(order_repository, FakePublisher())
    stale = order_repository.get(order_id)
    use_case.execute(order_id, "preparing", CHEF, TRACE)

    original_get = order_repository.get
    calls = {"n": 0}

    def stale_then_fresh(requested: OrderId) -> Order | None:
        calls["n"] += 1
        return stale if calls["n"] == 1 else original_get(requested)

    order_repository.get = stale_then_fresh  # type: ignore[method-assign]
    assert use_case.execute(order_id, "preparing", CHEF, TRACE).status == "preparing"

    calls["n"] = 0
    with pytest.raises(OrderConflictError):
        use_case.execute(order_id, "cancelled", Actor(UserId("usr_admin"), Role.ADMIN), TRACE)


def test_process_payment_completes_and_publishes_paid_event() -> None:
    order_repository = FakeOrderRepository()
    publisher = FakePublisher()
    order_id = _placed(order_repository, publisher)

    paid = ProcessPayment(order_repository, publisher).execute(
        order_id,
        ProcessPaymentRequest(payment_method="card", tip=Decimal("5"), tax=Decimal("10")),
        CASHIER,
        TRACE,
    )

    assert paid.status == "completed"
    assert paid.paymentStatus == "paid"
    assert paid.cashierId == "usr_cashier"
    assert json.loads(publisher.calls[-1].message)["event_type"] == "order.paid"


def test_process_payment_rejects_second_payment_and_unknown_method() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    use_case = ProcessPayment(order_repository, FakePublisher())

    with pytest.raises(InvalidPaymentRequestError):
        use_case.execute(order_id, ProcessPaymentRequest(payment_method="cheque"), CASHIER, TRACE)
    use_case.execute(order_id, ProcessPaymentRequest(payment_method="cash"), CASHIER, TRACE)
    with pytest.raises(PaymentRejectedError):
        use_case.execute(order_id, ProcessPaymentRequest(payment_method="cash"), CASHIER, TRACE)


def test_discount_is_capped_by_order_total_and_noted() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    use_case = ApplyDiscount(order_repository)

    with pytest.raises(InvalidPaymentRequestError):
        use_case.execute(order_id, DiscountRequest(discount_amount=Decimal("80")))
    discounted = use_case.execute(
        order_id,
        DiscountRequest(discount_amount=Decimal("7.50"), discount_reason="regular"),
    )
    assert discounted.discount == Decimal("7.50")
    assert discounted.notes == "Discount: 7.50 (regular)"


def test_payment_without_discount_keeps_the_recorded_discount() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    ApplyDiscount(order_repository).execute(
        order_id, DiscountRequest(discount_amount=Decimal("10"))
    )

    paid = ProcessPayment(order_repository, FakePublisher()).execute(
        order_id, ProcessPaymentRequest(payment_method="cash"), CASHIER, TRACE
    )

    assert paid.discount == Decimal("10.00")
    assert order_repository.get(order_id).amount_due() == Money.from_decimal("65.00")


def test_payment_discount_overrides_the_recorded_one_when_sent() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    ApplyDiscount(order_repository).execute(
        order_id, DiscountRequest(discount_amount=Decimal("10"))
    )

    paid = ProcessPayment(order_repository, FakePublisher()).execute(
        order_id,
        ProcessPaymentRequest(payment_method="cash", discount=Decimal("0")),
        CASHIER,
        TRACE,
    )

    assert paid.discount == Decimal("0.00")


def test_mark_ready_starts_and_finishes_a_pending_order_in_one_write() -> None:
    order_repository = FakeOrderRepository()
    publisher = FakePublisher()
    order_id = _placed(order_repository, publisher)

    ready = MarkOrderReady(order_repository, publisher).execute(order_id, CHEF, TRACE)

    assert ready.status == "ready"
    assert ready.estimatedReadyTime is not None
    assert ready.actualReadyTime is not None
    assert all(item.status == "ready" for item in ready.items)
    assert len(order_repository.plans) == 1
    assert order_repository.plans[0].previous_status == OrderStatus.PENDING
    event = json.loads(publisher.calls[-1].message)
    assert event["event_type"] == "order.status_changed"


def test_mark_ready_still_refuses_roles_without_kitchen_rights() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())

    with pytest.raises(TransitionForbiddenError):
        MarkOrderReady(order_repository, FakePublisher()).execute(order_id, CASHIER, TRACE)
    assert order_repository.get(order_id).status == OrderStatus.PENDING


def test_add_and_remove_items_recompute_the_total() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    menu_repository = FakeMenuRepository([_menu_item()])

    grown = AddOrderItem(order_repository, menu_repository).execute(
        order_id, OrderItemRequest(menu_item_id="itm_001", quantity=1)
    )
    assert grown.totalAmount == Decimal("112.50")
    assert len(grown.items) == 2

    shrunk = RemoveOrderItem(order_repository).execute(
        order_id, OrderItemId(grown.items[0].itemId)
    )
    assert shrunk.totalAmount == Decimal("37.50")
    assert [item.quantity for item in shrunk.items] == [1]


def test_last_item_cannot_be_removed() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    only_item = order_repository.get(order_id).items[0]

    with pytest.raises(LastOrderItemError):
        RemoveOrderItem(order_repository).execute(order_id, only_item.item_id)
    with pytest.raises(OrderItemNotFoundError):
        RemoveOrderItem(order_repository).execute(order_id, OrderItemId("oit_missing"))


def test_items_of_a_closed_order_cannot_change() -> None:
    order_repository = FakeOrderRepository()
    order_id = _placed(order_repository, FakePublisher())
    ProcessPayment(order_repository, FakePublisher()).execute(
        order_id, ProcessPaymentRequest(payment_method="card"), CASHIER, TRACE
    )

    with pytest.raises(OrderLockedError):
        AddOrderItem(order_repository, FakeMenuRepository([_menu_item()])).execute(
            order_id, OrderItemRequest(menu_item_id="itm_001")
        )
