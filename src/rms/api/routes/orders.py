from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from rms.api.dependencies import actor_of, event_publisher, trace_context
from rms.api.security import BILLING, FRONT_OF_HOUSE, MANAGEMENT, get_current_user, require_roles
from rms.application.dto.requests import (
    OrderItemRequest,
    PlaceOrderRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentRequest,
)
from rms.application.dto.responses import Envelope, OrderResponse
from rms.application.use_cases.order_items import AddOrderItem, RemoveOrderItem
from rms.application.use_cases.order_lifecycle import CancelOrder, UpdateOrderStatus
from rms.application.use_cases.order_queries import (
    GetOrder,
    GetOrderByNumber,
    ListOrders,
    SearchOrders,
    WaiterActiveOrders,
)
from rms.application.use_cases.payments import UpdatePaymentStatus
from rms.application.use_cases.place_order import PlaceOrder
from rms.domain.common.ids import OrderId, OrderItemId
from rms.domain.identity.entities import Role, User
from rms.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from rms.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from rms.infrastructure.db.repositories.pager_repo import SqlAlchemyPagerRepository
from rms.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository

router = APIRouter(prefix="/api/orders", tags=["orders"])

front_of_house = require_roles(*FRONT_OF_HOUSE)


def _place_order_use_case() -> PlaceOrder:
    return PlaceOrder(
        menu_repository=SqlAlchemyMenuRepository(),
        table_repository=SqlAlchemyTableRepository(),
        pager_repository=SqlAlchemyPagerRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=event_publisher(),
    )


@router.post(
    "",
    response_model=Envelope[OrderResponse],
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    request_dto: PlaceOrderRequest,
    user: User = Depends(front_of_house),
) -> Envelope[OrderResponse]:
    order = _place_order_use_case().execute(
        request_dto,
        waiter=actor_of(user),
        trace_ctx=trace_context(),
    )
    return Envelope(data=order)


@router.get("", response_model=Envelope[list[OrderResponse]])
def list_orders(
    status: str | None = None,
    payment_status: str | None = None,
    table_id: str | None = None,
    waiter_id: str | None = None,
    placed_on: date | None = Query(default=None, alias="date"),
    limit: int = 50,
    offset: int = 0,
    _: User = Depends(require_roles(*BILLING)),
) -> Envelope[list[OrderResponse]]:
    use_case = ListOrders(order_repository=SqlAlchemyOrderRepository())
    return Envelope(
        data=use_case.execute(
            status=status,
            payment_status=payment_status,
            table_id=table_id,
            waiter_id=waiter_id,
            placed_on=placed_on,
            limit=limit,
            offset=offset,
        )
    )


@router.get("/search", response_model=Envelope[list[OrderResponse]])
def search_orders(
    q: str = "",
    limit: int = 50,
    _: User = Depends(front_of_house),
) -> Envelope[list[OrderResponse]]:
    use_case = SearchOrders(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(q, limit=limit))


@router.get("/waiter/active", response_model=Envelope[list[OrderResponse]])
def waiter_active_orders(
    user: User = Depends(require_roles(Role.WAITER)),
) -> Envelope[list[OrderResponse]]:
    use_case = WaiterActiveOrders(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(actor_of(user)))


@router.get("/number/{order_number}", response_model=Envelope[OrderResponse])
def get_order_by_number(order_number: str) -> Envelope[OrderResponse]:
    use_case = GetOrderByNumber(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(order_number))


@router.get("/{order_id}", response_model=Envelope[OrderResponse])
def get_order(order_id: str, _: User = Depends(get_current_user)) -> Envelope[OrderResponse]:
    use_case = GetOrder(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(OrderId(order_id)))


@router.patch("/{order_id}/status", response_model=Envelope[OrderResponse])
def update_order_status(
    order_id: str,
    request_dto: UpdateOrderStatusRequest,
    user: User = Depends(get_current_user),
) -> Envelope[OrderResponse]:
    use_case = UpdateOrderStatus(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=event_publisher(),
    )
    order = use_case.execute(
        OrderId(order_id),
        request_dto.status,
        actor=actor_of(user),
        trace_ctx=trace_context(),
    )
    return Envelope(data=order)


@router.patch("/{order_id}/payment", response_model=Envelope[OrderResponse])
def update_payment(
    order_id: str,
    request_dto: UpdatePaymentRequest,
    _: User = Depends(require_roles(*BILLING)),
) -> Envelope[OrderResponse]:
    use_case = UpdatePaymentStatus(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(OrderId(order_id), request_dto))


@router.delete("/{order_id}/cancel", response_model=Envelope[OrderResponse])
def cancel_order(
    order_id: str,
    reason: str | None = None,
    user: User = Depends(require_roles(*MANAGEMENT)),
) -> Envelope[OrderResponse]:
    use_case = CancelOrder(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=event_publisher(),
    )
    order = use_case.execute(
        OrderId(order_id),
        actor=actor_of(user),
        trace_ctx=trace_context(),
        reason=reason,
    )
    return Envelope(data=order)


@router.post(
    "/{order_id}/items",
    response_model=Envelope[OrderResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_order_item(
    order_id: str,
    request_dto: OrderItemRequest,
    _: User = Depends(front_of_house),
) -> Envelope[OrderResponse]:
    use_case = AddOrderItem(
        order_repository=SqlAlchemyOrderRepository(),
        menu_repository=SqlAlchemyMenuRepository(),
    )
    return Envelope(data=use_case.execute(OrderId(order_id), request_dto))


@router.delete("/{order_id}/items/{item_id}", response_model=Envelope[OrderResponse])
def remove_order_item(
    order_id: str,
    item_id: str,
    _: User = Depends(front_of_house),
) -> Envelope[OrderResponse]:
    use_case = RemoveOrderItem(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(OrderId(order_id), OrderItemId(item_id)))
