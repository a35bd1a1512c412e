from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from rms.application.dto.responses import OrderItemResponse, OrderResponse
from rms.application.mappers.event_envelope import (
    ORDER_EVENTS_CHANNEL,
    serialize_order_status_event,
)
from rms.application.mappers.order_mapper import to_order_item_response, to_order_response
from rms.application.metrics.order_lifecycle import record_time_to_ready, record_transition
from rms.application.ports.publisher import EventPublisher
from rms.application.ports.repositories import OptimisticConcurrencyError, OrderRepository
from rms.application.use_cases.context import Actor, TraceContext
from rms.application.use_cases.events import publish_quietly
from rms.domain.common.ids import OrderId, OrderItemId
from rms.domain.order.entities import Order, OrderItemStatus, OrderStatus
from rms.domain.order.lifecycle import (
    OrderTransitionError,
    TransitionNotPermittedError,
    TransitionPlan,
    plan_mark_ready,
    plan_transition,
)

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    pass


class OrderItemNotFoundError(Exception):
    pass


class InvalidOrderStatusError(Exception):
    pass


class TransitionForbiddenError(Exception):
    pass


class InvalidOrderTransitionError(Exception):
    pass


class OrderConflictError(Exception):
    pass


def parse_order_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.lower())
    except ValueError as exc:
        raise InvalidOrderStatusError(f"invalid order status: {value}") from exc


def load_order(order_repository: OrderRepository, order_id: OrderId) -> Order:
    order = order_repository.get(order_id)
    if order is None:
        raise OrderNotFoundError(f"order {order_id} not found")
    return order


def commit_plan(
    order_repository: OrderRepository,
    publisher: EventPublisher,
    plan: TransitionPlan,
    trace_ctx: TraceContext,
    now: datetime,
) -> Order:
    """Persists a plan in one transaction, then emits metrics, logs and events."""
    try:
        persisted = order_repository.apply_transition(plan)
    except OptimisticConcurrencyError as exc:
        raise OrderConflictError(
            f"order {plan.order.order_number} was modified concurrently"
        ) from exc

    if not plan.status_changed:
        return persisted

    record_transition(from_status=plan.previous_status, to_status=persisted.status)
    if persisted.status == OrderStatus.READY:
        record_time_to_ready(persisted, now=now)
    logger.info(
        "order_status_changed",
        extra={
            "order_id": persisted.order_id,
            "from_status": plan.previous_status.value,
            "to_status": persisted.status.value,
        },
    )
    if plan.activate_pager is not None:
        logger.info(
            "pager_buzz",
            extra={"pager_number": plan.activate_pager, "order_id": persisted.order_id},
        )
    publish_quietly(
        publisher,
        channel=ORDER_EVENTS_CHANNEL,
        message=serialize_order_status_event(
            occurred_at=now,
            order=persisted,
            previous_status=plan.previous_status.value,
            trace_id=trace_ctx.trace_id,
            request_id=trace_ctx.request_id,
        ),
    )
    return persisted


def _plan_or_raise(planner: Callable[[], TransitionPlan]) -> TransitionPlan:
    try:
        return planner()
    except TransitionNotPermittedError as exc:
        raise TransitionForbiddenError(str(exc)) from exc
    except OrderTransitionError as exc:
        raise InvalidOrderTransitionError(str(exc)) from exc


def _commit_converging(
    order_repository: OrderRepository,
    publisher: EventPublisher,
    plan: TransitionPlan,
    trace_ctx: TraceContext,
    now: datetime,
) -> OrderResponse:
    """A lost race that already reached the target status is not a conflict."""
    try:
        persisted = commit_plan(order_repository, publisher, plan, trace_ctx, now)
    except OrderConflictError:
        current = load_order(order_repository, plan.order.order_id)
        if current.status == plan.order.status:
            return to_order_response(current)
        raise
    return to_order_response(persisted)


class UpdateOrderStatus:
    """The single transition handler for every order status change."""

    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(
        self,
        order_id: OrderId,
        status: str,
        actor: Actor,
        trace_ctx: TraceContext,
        reason: str | None = None,
    ) -> OrderResponse:
        target = parse_order_status(status)
        order = load_order(self._order_repository, order_id)
        now = datetime.now(timezone.utc)
        plan = _plan_or_raise(
            lambda: plan_transition(order, target, actor.role, now, reason=reason)
        )
        return _commit_converging(self._order_repository, self._publisher, plan, trace_ctx, now)


class CancelOrder:
    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._update_status = UpdateOrderStatus(order_repository, publisher)

    def execute(
        self,
        order_id: OrderId,
        actor: Actor,
        trace_ctx: TraceContext,
        reason: str | None = None,
    ) -> OrderResponse:
        return self._update_status.execute(
            order_id,
            OrderStatus.CANCELLED.value,
            actor,
            trace_ctx,
            reason=reason,
        )


class MarkOrderReady:
    """Kitchen shortcut: open items cascade to ready with the order.

    Pending orders are started and finished in one write.
    """

    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(self, order_id: OrderId, actor: Actor, trace_ctx: TraceContext) -> OrderResponse:
        order = load_order(self._order_repository, order_id)
        now = datetime.now(timezone.utc)
        plan = _plan_or_raise(lambda: plan_mark_ready(order, actor.role, now))
        return _commit_converging(self._order_repository, self._publisher, plan, trace_ctx, now)


class UpdateItemStatus:
    """Item status only; the parent order is never rolled up."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, item_id: OrderItemId, status: str) -> OrderItemResponse:
        try:
            target = OrderItemStatus(status.lower())
        except ValueError as exc:
            raise InvalidOrderStatusError(f"invalid item status: {status}") from exc

        order = self._order_repository.get_by_item(item_id)
        item = order.find_item(item_id) if order else None
        if order is None or item is None:
            raise OrderItemNotFoundError(f"order item {item_id} not found")
        if order.is_terminal:
            raise InvalidOrderTransitionError(
                f"order {order.order_number} is {order.status.value}; items are locked"
            )

        completed_at = item.completed_at
        if target in (OrderItemStatus.READY, OrderItemStatus.SERVED):
            completed_at = completed_at or datetime.now(timezone.utc)
        else:
            completed_at = None
        self._order_repository.update_item_status(item_id, target, completed_at)

        updated = self._order_repository.get_by_item(item_id)
        refreshed = updated.find_item(item_id) if updated else None
        if refreshed is None:
            raise OrderItemNotFoundError(f"order item {item_id} not found")
        return to_order_item_response(refreshed)
