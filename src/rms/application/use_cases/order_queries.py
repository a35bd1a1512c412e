from __future__ import annotations

from datetime import date

from rms.application.dto.responses import OrderResponse
from rms.application.mappers.order_mapper import to_order_response
from rms.application.ports.repositories import OrderFilter, OrderRepository
from rms.application.use_cases.context import Actor
from rms.application.use_cases.order_lifecycle import (
    InvalidOrderStatusError,
    OrderNotFoundError,
    load_order,
    parse_order_status,
)
from rms.domain.common.ids import OrderId, TableId, UserId
from rms.domain.order.entities import TERMINAL_STATUSES, PaymentStatus

MIN_SEARCH_LENGTH = 2


class InvalidOrderQueryError(Exception):
    pass


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        return to_order_response(load_order(self._order_repository, order_id))


class GetOrderByNumber:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_number: str) -> OrderResponse:
        order = self._order_repository.get_by_number(order_number.strip().upper())
        if order is None:
            raise OrderNotFoundError(f"order {order_number} not found")
        return to_order_response(order)


class ListOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(
        self,
        status: str | None = None,
        payment_status: str | None = None,
        table_id: str | None = None,
        waiter_id: str | None = None,
        placed_on: date | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[OrderResponse]:
        if limit < 1 or limit > 200:
            raise InvalidOrderQueryError("limit must be between 1 and 200")
        if offset < 0:
            raise InvalidOrderQueryError("offset must be >= 0")
        parsed_payment = None
        if payment_status:
            try:
                parsed_payment = PaymentStatus(payment_status.lower())
            except ValueError as exc:
                raise InvalidOrderStatusError(f"invalid payment status: {payment_status}") from exc

        order_filter = OrderFilter(
            status=parse_order_status(status) if status else None,
            payment_status=parsed_payment,
            table_id=TableId(table_id) if table_id else None,
            waiter_id=UserId(waiter_id) if waiter_id else None,
            placed_on=placed_on,
        )
        orders = self._order_repository.list(order_filter, limit=limit, offset=offset)
        return [to_order_response(order) for order in orders]


class WaiterActiveOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, waiter: Actor) -> list[OrderResponse]:
        orders = self._order_repository.list(
            OrderFilter(waiter_id=waiter.user_id, exclude_statuses=TERMINAL_STATUSES),
            limit=200,
        )
        return [to_order_response(order) for order in orders]


class SearchOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, query: str, limit: int = 50) -> list[OrderResponse]:
        term = query.strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise InvalidOrderQueryError(
                f"search query must be at least {MIN_SEARCH_LENGTH} characters"
            )
        return [to_order_response(o) for o in self._order_repository.search(term, limit=limit)]
