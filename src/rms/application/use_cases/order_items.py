from __future__ import annotations

from rms.application.dto.requests import OrderItemRequest
from rms.application.dto.responses import OrderResponse
from rms.application.mappers.order_mapper import to_order_response
from rms.application.ports.repositories import (
    MenuRepository,
    OptimisticConcurrencyError,
    OrderRepository,
)
from rms.application.use_cases.order_lifecycle import (
    OrderConflictError,
    OrderItemNotFoundError,
    load_order,
)
from rms.application.use_cases.place_order import build_order_items
from rms.domain.common.ids import OrderId, OrderItemId
from rms.domain.order.entities import Order, OrderNotEditableError


class OrderLockedError(Exception):
    pass


class LastOrderItemError(Exception):
    pass


def _ensure_editable(order: Order) -> None:
    try:
        order.ensure_editable()
    except OrderNotEditableError as exc:
        raise OrderLockedError(str(exc)) from exc


class AddOrderItem:
    def __init__(self, order_repository: OrderRepository, menu_repository: MenuRepository) -> None:
        self._order_repository = order_repository
        self._menu_repository = menu_repository

    def execute(self, order_id: OrderId, request_dto: OrderItemRequest) -> OrderResponse:
        order = load_order(self._order_repository, order_id)
        _ensure_editable(order)
        new_items = build_order_items(self._menu_repository, [request_dto])
        try:
            persisted = self._order_repository.replace_items(
                order.with_items([*order.items, *new_items]),
                expected_version=order.version,
            )
        except OptimisticConcurrencyError as exc:
            raise OrderConflictError(
                f"order {order.order_number} was modified concurrently"
            ) from exc
        return to_order_response(persisted)


class RemoveOrderItem:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId, item_id: OrderItemId) -> OrderResponse:
        order = load_order(self._order_repository, order_id)
        _ensure_editable(order)
        if order.find_item(item_id) is None:
            raise OrderItemNotFoundError(f"item {item_id} is not part of order {order_id}")
        remaining = [item for item in order.items if item.item_id != item_id]
        if not remaining:
            raise LastOrderItemError("cannot remove the last item; cancel the order instead")
        try:
            persisted = self._order_repository.replace_items(
                order.with_items(remaining),
                expected_version=order.version,
            )
        except OptimisticConcurrencyError as exc:
            raise OrderConflictError(
                f"order {order.order_number} was modified concurrently"
            ) from exc
        return to_order_response(persisted)
