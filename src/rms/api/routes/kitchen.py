from __future__ import annotations

from fastapi import APIRouter, Depends

from rms.api.dependencies import actor_of, event_publisher, trace_context
from rms.api.security import COOKS, KITCHEN, require_roles
from rms.application.dto.requests import ItemStatusRequest
from rms.application.dto.responses import (
    Envelope,
    KitchenStatsResponse,
    OrderItemResponse,
    OrderResponse,
)
from rms.application.use_cases.kitchen import KitchenOrders, KitchenStats, UrgentOrders
from rms.application.use_cases.order_lifecycle import MarkOrderReady, UpdateItemStatus
from rms.application.use_cases.stations import StationOrders
from rms.domain.common.ids import OrderId, OrderItemId, StationId
from rms.domain.identity.entities import User
from rms.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from rms.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from rms.infrastructure.db.repositories.station_repo import SqlAlchemyStationRepository

router = APIRouter(prefix="/api/kitchen", tags=["kitchen"])

kitchen_staff = require_roles(*KITCHEN)
kitchen_cooks = require_roles(*COOKS)


@router.get("/orders", response_model=Envelope[list[OrderResponse]])
def kitchen_orders(_: User = Depends(kitchen_staff)) -> Envelope[list[OrderResponse]]:
    return Envelope(data=KitchenOrders(order_repository=SqlAlchemyOrderRepository()).execute())


@router.get("/orders/urgent", response_model=Envelope[list[OrderResponse]])
def urgent_orders(_: User = Depends(kitchen_staff)) -> Envelope[list[OrderResponse]]:
    return Envelope(data=UrgentOrders(order_repository=SqlAlchemyOrderRepository()).execute())


@router.get("/stats", response_model=Envelope[KitchenStatsResponse])
def kitchen_stats(_: User = Depends(kitchen_staff)) -> Envelope[KitchenStatsResponse]:
    return Envelope(data=KitchenStats(order_repository=SqlAlchemyOrderRepository()).execute())


@router.get("/station/{station_id}", response_model=Envelope[list[OrderResponse]])
def station_orders(
    station_id: str,
    _: User = Depends(kitchen_staff),
) -> Envelope[list[OrderResponse]]:
    use_case = StationOrders(
        station_repository=SqlAlchemyStationRepository(),
        menu_repository=SqlAlchemyMenuRepository(),
        order_repository=SqlAlchemyOrderRepository(),
    )
    return Envelope(data=use_case.execute(StationId(station_id)))


@router.patch("/items/{item_id}/status", response_model=Envelope[OrderItemResponse])
def update_item_status(
    item_id: str,
    request_dto: ItemStatusRequest,
    _: User = Depends(kitchen_cooks),
) -> Envelope[OrderItemResponse]:
    use_case = UpdateItemStatus(order_repository=SqlAlchemyOrderRepository())
    return Envelope(data=use_case.execute(OrderItemId(item_id), request_dto.status))


@router.post("/orders/{order_id}/ready", response_model=Envelope[OrderResponse])
def mark_order_ready(
    order_id: str,
    user: User = Depends(kitchen_cooks),
) -> Envelope[OrderResponse]:
    use_case = MarkOrderReady(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=event_publisher(),
    )
    order = use_case.execute(OrderId(order_id), actor=actor_of(user), trace_ctx=trace_context())
    return Envelope(data=order)
