from __future__ import annotations

from datetime import datetime, timezone

from rms.application.dto.requests import OrderItemRequest, PlaceOrderRequest
from rms.application.dto.responses import OrderResponse
from rms.application.mappers.event_envelope import (
    ORDER_EVENTS_CHANNEL,
    serialize_order_created_event,
)
from rms.application.mappers.order_mapper import to_order_response
from rms.application.metrics.order_lifecycle import (
    record_order_created,
    record_pager_conflict,
    record_table_rejection,
)
from rms.application.ports.publisher import EventPublisher
from rms.application.ports.repositories import (
    MenuRepository,
    OrderRepository,
    PagerRepository,
    PagerUnavailableError,
    TableRepository,
    TableUnavailableError,
)
from rms.application.use_cases.context import Actor, TraceContext
from rms.application.use_cases.events import publish_quietly
from rms.application.use_cases.pagers import PagerConflictError, load_pager
from rms.application.use_cases.tables import (
    InvalidPartySizeError,
    TableStateError,
    load_table,
)
from rms.domain.common.ids import MenuItemId, OrderId, OrderItemId, TableId, new_id
from rms.domain.menu.entities import MenuItem
from rms.domain.order.entities import OrderItem, create_pending_order, new_order_number
from rms.domain.table.entities import PartySizeError, Table, TableOccupancyError


class MenuItemUnavailableError(Exception):
    pass


def build_order_items(
    menu_repository: MenuRepository,
    requested: list[OrderItemRequest],
) -> list[OrderItem]:
    """Snapshots name and price of each requested menu item."""
    menu_items: dict[MenuItemId, MenuItem] = menu_repository.get_items(
        [MenuItemId(line.menu_item_id) for line in requested]
    )
    items: list[OrderItem] = []
    for line in requested:
        menu_item = menu_items.get(MenuItemId(line.menu_item_id))
        if menu_item is None:
            raise MenuItemUnavailableError(f"menu item {line.menu_item_id} does not exist")
        if not menu_item.available:
            raise MenuItemUnavailableError(f"menu item {menu_item.name} is unavailable")
        items.append(
            OrderItem(
                item_id=OrderItemId(new_id("oit")),
                menu_item_id=menu_item.item_id,
                name=menu_item.name,
                quantity=line.quantity,
                price=menu_item.price,
                special_instructions=line.special_instructions,
            )
        )
    return items


class PlaceOrder:
    def __init__(
        self,
        menu_repository: MenuRepository,
        table_repository: TableRepository,
        pager_repository: PagerRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
    ) -> None:
        self._menu_repository = menu_repository
        self._table_repository = table_repository
        self._pager_repository = pager_repository
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(
        self,
        request_dto: PlaceOrderRequest,
        waiter: Actor,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        items = build_order_items(self._menu_repository, request_dto.items)

        occupied_table: Table | None = None
        if request_dto.table_id:
            table = load_table(self._table_repository, TableId(request_dto.table_id))
            try:
                occupied_table = table.occupy(request_dto.customer_count)
            except TableOccupancyError as exc:
                record_table_rejection("occupied")
                raise TableStateError(str(exc)) from exc
            except PartySizeError as exc:
                record_table_rejection("party_size")
                raise InvalidPartySizeError(str(exc)) from exc

        if request_dto.pager_number is not None:
            pager = load_pager(self._pager_repository, request_dto.pager_number)
            if pager.in_use:
                record_pager_conflict()
                raise PagerConflictError(f"pager {pager.pager_number} is already in use")

        customer_name = (request_dto.customer_name or "").strip()
        if not customer_name:
            customer_name = (
                f"Table {occupied_table.table_number}" if occupied_table else "Takeaway"
            )

        now = datetime.now(timezone.utc)
        order = create_pending_order(
            order_id=OrderId(new_id("ord")),
            order_number=new_order_number(now),
            table_id=occupied_table.table_id if occupied_table else None,
            customer_name=customer_name,
            items=items,
            waiter_id=waiter.user_id,
            now=now,
            pager_number=request_dto.pager_number,
            notes=request_dto.notes,
        )
        try:
            self._order_repository.add(order, occupied_table=occupied_table)
        except PagerUnavailableError as exc:
            record_pager_conflict()
            raise PagerConflictError(str(exc)) from exc
        except TableUnavailableError as exc:
            record_table_rejection("occupied")
            raise TableStateError(str(exc)) from exc

        record_order_created(order)
        publish_quietly(
            self._publisher,
            channel=ORDER_EVENTS_CHANNEL,
            message=serialize_order_created_event(
                occurred_at=now,
                order=order,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            ),
        )
        return to_order_response(order)
