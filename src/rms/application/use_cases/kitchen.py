from __future__ import annotations

from datetime import datetime, timezone

from rms.application.dto.responses import KitchenStatsResponse, OrderResponse
from rms.application.mappers.order_mapper import to_order_response
from rms.application.ports.repositories import OrderRepository
from rms.domain.order.entities import KITCHEN_STATUSES, Order, OrderStatus
from rms.domain.order.lifecycle import URGENT_AFTER

_KITCHEN_RANK = {
    OrderStatus.READY: 0,
    OrderStatus.PREPARING: 1,
    OrderStatus.PENDING: 2,
}
_URGENT_CANDIDATES = frozenset({OrderStatus.PENDING, OrderStatus.PREPARING})


def _to_ticket(order: Order) -> OrderResponse:
    # ready orders keep every item so the pass can check the full ticket
    return to_order_response(order, open_items_only=order.status != OrderStatus.READY)


class KitchenOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self) -> list[OrderResponse]:
        orders = self._order_repository.list_by_statuses(KITCHEN_STATUSES)
        orders.sort(key=lambda order: (_KITCHEN_RANK[order.status], order.order_time))
        return [_to_ticket(order) for order in orders]


class UrgentOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self) -> list[OrderResponse]:
        cutoff = datetime.now(timezone.utc) - URGENT_AFTER
        orders = self._order_repository.list_by_statuses(_URGENT_CANDIDATES, placed_before=cutoff)
        orders.sort(key=lambda order: order.order_time)
        return [_to_ticket(order) for order in orders]


class KitchenStats:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self) -> KitchenStatsResponse:
        now = datetime.now(timezone.utc)
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        counts = self._order_repository.count_by_status_since(start_of_day)
        urgent = self._order_repository.list_by_statuses(
            _URGENT_CANDIDATES,
            placed_before=now - URGENT_AFTER,
        )
        return KitchenStatsResponse(
            pending=counts.get(OrderStatus.PENDING, 0),
            preparing=counts.get(OrderStatus.PREPARING, 0),
            ready=counts.get(OrderStatus.READY, 0),
            completedToday=counts.get(OrderStatus.COMPLETED, 0),
            cancelledToday=counts.get(OrderStatus.CANCELLED, 0),
            urgent=len(urgent),
        )
