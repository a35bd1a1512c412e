from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from rms.domain.common.ids import MenuItemId, OrderId, OrderItemId, TableId, UserId
from rms.domain.common.money import Money
from rms.domain.identity.entities import Role
from rms.domain.order.entities import (
    Order,
    OrderItem,
    OrderItemStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    create_pending_order,
)
from rms.domain.order.lifecycle import (
    PREPARATION_ESTIMATE,
    InvalidPaymentError,
    OrderAlreadyPaidError,
    OrderTransitionError,
    Payment,
    TransitionNotPermittedError,
    is_urgent,
    plan_mark_ready,
    plan_payment,
    plan_transition,
)

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _order(
    status: OrderStatus = OrderStatus.PENDING,
    item_statuses: tuple[OrderItemStatus, ...] = (OrderItemStatus.PENDING,),
    pager_number: int | None = None,
) -> Order:
    items = [
        OrderItem(
            item_id=OrderItemId(f"oit_{index}"),
            menu_item_id=MenuItemId("itm_001"),
            name="Pasta",
            quantity=2,
            price=Money.from_decimal("37.50"),
            status=item_status,
        )
        for index, item_status in enumerate(item_statuses)
    ]
    order = create_pending_order(
        order_id=OrderId("ord_001"),
        order_number="ORD-261001-ABC123",
        table_id=TableId("tbl_005"),
        customer_name="Table T5",
        items=items,
        waiter_id=UserId("usr_waiter"),
        now=NOW,
        pager_number=pager_number,
    )
    if status == OrderStatus.PENDING:
        return order
    return replace(order, status=status)


def test_preparing_sets_estimate_and_cascades_pending_items() -> None:
    plan = plan_transition(_order(), OrderStatus.PREPARING, Role.CHEF, NOW)

    assert plan.order.status == OrderStatus.PREPARING
    assert plan.order.estimated_ready_time == NOW + PREPARATION_ESTIMATE
    assert [item.status for item in plan.order.items] == [OrderItemStatus.PREPARING]
    assert plan.free_table is None
    assert plan.expected_version == 1


def test_ready_stamps_items_and_activates_pager() -> None:
    order = _order(
        status=OrderStatus.PREPARING,
        item_statuses=(OrderItemStatus.PREPARING, OrderItemStatus.SERVED),
        pager_number=7,
    )
    plan = plan_transition(order, OrderStatus.READY, Role.CHEF, NOW)

    assert plan.order.actual_ready_time == NOW
    assert plan.order.items[0].status == OrderItemStatus.READY
    assert plan.order.items[0].completed_at == NOW
    assert plan.order.items[1].status == OrderItemStatus.SERVED
    assert plan.activate_pager == 7


def test_completion_serves_items_frees_table_and_releases_pager() -> None:
    order = _order(status=OrderStatus.READY, item_statuses=(OrderItemStatus.READY,), pager_number=3)
    plan = plan_transition(order, OrderStatus.COMPLETED, Role.WAITER, NOW)

    assert plan.order.completed_time == NOW
    assert plan.order.items[0].status == OrderItemStatus.SERVED
    assert plan.free_table == TableId("tbl_005")
    assert plan.release_pager == 3


def test_cancel_keeps_reason_and_releases_resources() -> None:
    plan = plan_transition(
        _order(pager_number=2), OrderStatus.CANCELLED, Role.MANAGER, NOW, reason="guest left"
    )

    assert plan.order.cancel_reason == "guest left"
    assert plan.free_table == TableId("tbl_005")
    assert plan.release_pager == 2
    assert plan.item_cascade is None


@pytest.mark.parametrize(
    ("role", "target"),
    [
        (Role.WAITER, OrderStatus.PREPARING),
        (Role.CASHIER, OrderStatus.CANCELLED),
        (Role.CHEF, OrderStatus.COMPLETED),
    ],
)
def test_role_capabilities_are_enforced(role: Role, target: OrderStatus) -> None:
    with pytest.raises(TransitionNotPermittedError):
        plan_transition(_order(), target, role, NOW)


def test_terminal_orders_cannot_move() -> None:
    completed = _order(status=OrderStatus.COMPLETED)
    with pytest.raises(OrderTransitionError):
        plan_transition(completed, OrderStatus.CANCELLED, Role.ADMIN, NOW)


def test_pending_cannot_skip_to_ready() -> None:
    with pytest.raises(OrderTransitionError):
        plan_transition(_order(), OrderStatus.READY, Role.ADMIN, NOW)


def test_payment_completes_an_open_order() -> None:
    order = _order(status=OrderStatus.READY, item_statuses=(OrderItemStatus.READY,))
    payment = Payment(
        method=PaymentMethod.CARD,
        cashier_id=UserId("usr_cashier"),
        tip=Money.from_decimal("5.00"),
        tax=Money.from_decimal("10.00"),
    )
    plan = plan_payment(order, payment, NOW)

    assert plan.order.status == OrderStatus.COMPLETED
    assert plan.order.payment_status == PaymentStatus.PAID
    assert plan.order.cashier_id == UserId("usr_cashier")
    assert plan.free_table == TableId("tbl_005")
    assert plan.order.amount_due() == Money.from_decimal("90.00")


def test_payment_of_completed_order_only_settles_billing() -> None:
    plan = plan_payment(
        _order(status=OrderStatus.COMPLETED),
        Payment(method=PaymentMethod.CASH, cashier_id=UserId("usr_cashier")),
        NOW,
    )

    assert not plan.status_changed
    assert plan.free_table is None
    assert plan.order.is_paid


def test_payment_rejects_paid_cancelled_and_oversized_discount() -> None:
    payment = Payment(method=PaymentMethod.CASH, cashier_id=UserId("usr_cashier"))
    paid = replace(_order(), payment_status=PaymentStatus.PAID)
    with pytest.raises(OrderAlreadyPaidError):
        plan_payment(paid, payment, NOW)
    with pytest.raises(OrderTransitionError):
        plan_payment(_order(status=OrderStatus.CANCELLED), payment, NOW)
    with pytest.raises(InvalidPaymentError):
        plan_payment(
            _order(),
            Payment(
                method=PaymentMethod.CASH,
                cashier_id=UserId("usr_cashier"),
                discount=Money.from_decimal("500.00"),
            ),
            NOW,
        )


def test_urgency_applies_to_open_kitchen_orders_only() -> None:
    later = NOW + timedelta(minutes=25)
    assert is_urgent(_order(), later)
    assert not is_urgent(_order(), NOW + timedelta(minutes=5))
    assert not is_urgent(_order(status=OrderStatus.READY), later)


def test_mark_ready_from_pending_passes_through_preparing() -> None:
    plan = plan_mark_ready(
        _order(item_statuses=(OrderItemStatus.PENDING, OrderItemStatus.SERVED), pager_number=3),
        Role.CHEF,
        NOW,
    )

    assert plan.previous_status == OrderStatus.PENDING
    assert plan.order.status == OrderStatus.READY
    assert plan.expected_version == 1
    assert plan.order.estimated_ready_time == NOW + PREPARATION_ESTIMATE
    assert plan.order.actual_ready_time == NOW
    assert [item.status for item in plan.order.items] == [
        OrderItemStatus.READY,
        OrderItemStatus.SERVED,
    ]
    assert plan.item_cascade is not None
    assert OrderItemStatus.PENDING in plan.item_cascade.from_statuses
    assert plan.activate_pager == 3


def test_mark_ready_keeps_role_and_graph_rules() -> None:
    with pytest.raises(TransitionNotPermittedError):
        plan_mark_ready(_order(), Role.WAITER, NOW)
    with pytest.raises(OrderTransitionError):
        plan_mark_ready(_order(status=OrderStatus.COMPLETED), Role.MANAGER, NOW)
    plan = plan_mark_ready(_order(status=OrderStatus.PREPARING), Role.CHEF, NOW)
    assert plan.previous_status == OrderStatus.PREPARING
    assert plan.order.estimated_ready_time is None
