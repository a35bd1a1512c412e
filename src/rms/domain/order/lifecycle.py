from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from rms.domain.common.ids import TableId, UserId
from rms.domain.common.money import Money
from rms.domain.identity.entities import Role
from rms.domain.order.entities import (
    OPEN_ITEM_STATUSES,
    Order,
    OrderItem,
    OrderItemStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

PREPARATION_ESTIMATE = timedelta(minutes=30)
URGENT_AFTER = timedelta(minutes=20)

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset(
        {OrderStatus.READY, OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    ),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

ROLE_CAPABILITIES: dict[Role, frozenset[OrderStatus]] = {
    Role.ADMIN: frozenset(OrderStatus),
    Role.MANAGER: frozenset(OrderStatus),
    Role.CHEF: frozenset({OrderStatus.PREPARING, OrderStatus.READY}),
    Role.WAITER: frozenset({OrderStatus.COMPLETED}),
    Role.CASHIER: frozenset({OrderStatus.COMPLETED}),
}


@dataclass(frozen=True)
class ItemCascade:
    from_statuses: frozenset[OrderItemStatus]
    to_status: OrderItemStatus


@dataclass(frozen=True)
class TransitionPlan:
    order: Order
    previous_status: OrderStatus
    expected_version: int
    item_cascade: ItemCascade | None = None
    free_table: TableId | None = None
    release_pager: int | None = None
    activate_pager: int | None = None

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.order.status


@dataclass(frozen=True)
class Payment:
    method: PaymentMethod
    cashier_id: UserId
    tip: Money = Money(amount_cents=0)
    discount: Money = Money(amount_cents=0)
    tax: Money = Money(amount_cents=0)
    split_count: int = 1


class TransitionNotPermittedError(Exception):
    pass


class OrderTransitionError(Exception):
    pass


class OrderAlreadyPaidError(Exception):
    pass


class InvalidPaymentError(Exception):
    pass


def ensure_role_may_set(role: Role, target: OrderStatus) -> None:
    if target not in ROLE_CAPABILITIES.get(role, frozenset()):
        raise TransitionNotPermittedError(
            f"role {role.value} cannot set order status to {target.value}"
        )


def plan_transition(
    order: Order,
    target: OrderStatus,
    role: Role,
    now: datetime,
    reason: str | None = None,
) -> TransitionPlan:
    ensure_role_may_set(role, target)
    if target not in ALLOWED_TRANSITIONS[order.status]:
        raise OrderTransitionError(
            f"cannot move order {order.order_number} from {order.status.value} to {target.value}"
        )

    if target == OrderStatus.PREPARING:
        cascade = ItemCascade(
            from_statuses=frozenset({OrderItemStatus.PENDING}),
            to_status=OrderItemStatus.PREPARING,
        )
        updated = replace(
            order,
            status=target,
            estimated_ready_time=now + PREPARATION_ESTIMATE,
            items=_cascade_items(order.items, cascade, now),
        )
        return TransitionPlan(
            order=updated,
            previous_status=order.status,
            expected_version=order.version,
            item_cascade=cascade,
        )

    if target == OrderStatus.READY:
        cascade = ItemCascade(from_statuses=OPEN_ITEM_STATUSES, to_status=OrderItemStatus.READY)
        updated = replace(
            order,
            status=target,
            actual_ready_time=now,
            items=_cascade_items(order.items, cascade, now),
        )
        return TransitionPlan(
            order=updated,
            previous_status=order.status,
            expected_version=order.version,
            item_cascade=cascade,
            activate_pager=order.pager_number,
        )

    if target == OrderStatus.COMPLETED:
        return _completion_plan(order, order, now)

    updated = replace(order, status=OrderStatus.CANCELLED, cancel_reason=reason)
    return TransitionPlan(
        order=updated,
        previous_status=order.status,
        expected_version=order.version,
        free_table=order.table_id,
        release_pager=order.pager_number,
    )


def plan_mark_ready(order: Order, role: Role, now: datetime) -> TransitionPlan:
    """A pending order passes through preparing within the same write."""
    if order.status != OrderStatus.PENDING:
        return plan_transition(order, OrderStatus.READY, role, now)
    started = plan_transition(order, OrderStatus.PREPARING, role, now).order
    ready = plan_transition(started, OrderStatus.READY, role, now)
    return replace(ready, previous_status=order.status, expected_version=order.version)


def plan_payment(order: Order, payment: Payment, now: datetime) -> TransitionPlan:
    if order.status == OrderStatus.CANCELLED:
        raise OrderTransitionError(f"cannot take payment for cancelled order {order.order_number}")
    if order.is_paid:
        raise OrderAlreadyPaidError(f"order {order.order_number} is already paid")
    if payment.split_count < 1:
        raise InvalidPaymentError("split_count must be >= 1")
    gross = order.total_amount + payment.tax + payment.tip
    if payment.discount.amount_cents > gross.amount_cents:
        raise InvalidPaymentError("discount exceeds order amount")

    paid = replace(
        order,
        payment_status=PaymentStatus.PAID,
        payment_method=payment.method,
        tip=payment.tip,
        discount=payment.discount,
        tax=payment.tax,
        split_count=payment.split_count,
        cashier_id=payment.cashier_id,
    )
    if order.status == OrderStatus.COMPLETED:
        return TransitionPlan(
            order=paid, previous_status=order.status, expected_version=order.version
        )
    return _completion_plan(order, paid, now)


def is_urgent(order: Order, now: datetime) -> bool:
    if order.status not in (OrderStatus.PENDING, OrderStatus.PREPARING):
        return False
    return now - order.order_time > URGENT_AFTER


def _completion_plan(original: Order, order: Order, now: datetime) -> TransitionPlan:
    cascade = ItemCascade(
        from_statuses=frozenset(
            {OrderItemStatus.PENDING, OrderItemStatus.PREPARING, OrderItemStatus.READY}
        ),
        to_status=OrderItemStatus.SERVED,
    )
    updated = replace(
        order,
        status=OrderStatus.COMPLETED,
        completed_time=now,
        items=_cascade_items(order.items, cascade, now),
    )
    return TransitionPlan(
        order=updated,
        previous_status=original.status,
        expected_version=original.version,
        item_cascade=cascade,
        free_table=original.table_id,
        release_pager=original.pager_number,
    )


def _cascade_items(items: list[OrderItem], cascade: ItemCascade, now: datetime) -> list[OrderItem]:
    cascaded: list[OrderItem] = []
    for item in items:
        if item.status not in cascade.from_statuses:
            cascaded.append(item)
            continue
        completed_at = item.completed_at
        if cascade.to_status == OrderItemStatus.READY and completed_at is None:
            completed_at = now
        cascaded.append(replace(item, status=cascade.to_status, completed_at=completed_at))
    return cascaded
