from __future__ import annotations

from dataclasses import replace

from rms.application.dto.requests import (
    AssignCategoriesRequest,
    AssignChefRequest,
    CreateStationRequest,
    UpdateStationRequest,
)
from rms.application.dto.responses import (
    AvailableChefResponse,
    OrderResponse,
    StationDetailResponse,
    StationResponse,
    StationStatsResponse,
    StationWorkloadResponse,
)
from rms.application.mappers.order_mapper import to_order_item_response, to_order_response
from rms.application.mappers.station_mapper import (
    to_available_chef_response,
    to_station_detail_response,
    to_station_response,
)
from rms.application.ports.repositories import (
    DuplicateKeyError,
    MenuRepository,
    OrderRepository,
    StationRepository,
    UserRepository,
)
from rms.application.use_cases.menu import CategoryNotFoundError
from rms.domain.common.ids import CategoryId, MenuItemId, StationId, UserId, new_id
from rms.domain.identity.entities import Role, UserStatus
from rms.domain.order.entities import KITCHEN_STATUSES, Order, OrderItem, OrderItemStatus
from rms.domain.station.entities import (
    DEFAULT_COLOR,
    MAX_STATIONS_PER_CHEF,
    Station,
    StationStatus,
)


class StationNotFoundError(Exception):
    pass


class DuplicateStationError(Exception):
    pass


class StationInUseError(Exception):
    pass


class InvalidStationRequestError(Exception):
    pass


class ChefUnavailableError(Exception):
    pass


def _parse_status(value: str) -> StationStatus:
    try:
        return StationStatus(value.lower())
    except ValueError as exc:
        raise InvalidStationRequestError(f"invalid station status: {value}") from exc


def load_station(station_repository: StationRepository, station_id: StationId) -> Station:
    station = station_repository.get(station_id)
    if station is None:
        raise StationNotFoundError(f"station {station_id} not found")
    return station


def station_tickets(
    station_repository: StationRepository,
    menu_repository: MenuRepository,
    order_repository: OrderRepository,
    station_id: StationId,
) -> list[tuple[Order, list[OrderItem]]]:
    """Kitchen orders with the open items whose category is routed to the station."""
    menu_item_ids: set[MenuItemId] = set()
    for category_id in station_repository.category_ids(station_id):
        menu_item_ids.update(
            item.item_id for item in menu_repository.list_items(category_id=category_id)
        )
    if not menu_item_ids:
        return []
    tickets: list[tuple[Order, list[OrderItem]]] = []
    for order in order_repository.list_by_statuses(KITCHEN_STATUSES):
        items = [
            item for item in order.items if item.is_open and item.menu_item_id in menu_item_ids
        ]
        if items:
            tickets.append((order, items))
    tickets.sort(key=lambda ticket: ticket[0].order_time)
    return tickets


class ListStations:
    def __init__(self, station_repository: StationRepository) -> None:
        self._station_repository = station_repository

    def execute(self, status: str | None = None) -> list[StationResponse]:
        wanted = _parse_status(status) if status else None
        return [
            to_station_response(station, self._station_repository.category_ids(station.station_id))
            for station in self._station_repository.list(status=wanted)
        ]


class GetStation:
    def __init__(
        self,
        station_repository: StationRepository,
        menu_repository: MenuRepository,
        order_repository: OrderRepository,
    ) -> None:
        self._station_repository = station_repository
        self._menu_repository = menu_repository
        self._order_repository = order_repository

    def execute(self, station_id: StationId) -> StationDetailResponse:
        station = load_station(self._station_repository, station_id)
        tickets = station_tickets(
            self._station_repository,
            self._menu_repository,
            self._order_repository,
            station_id,
        )
        items = [item for _, station_items in tickets for item in station_items]
        workload = StationWorkloadResponse(
            activeOrders=len(tickets),
            pendingItems=sum(1 for item in items if item.status == OrderItemStatus.PENDING),
            preparingItems=sum(1 for item in items if item.status == OrderItemStatus.PREPARING),
        )
        return to_station_detail_response(
            station, self._station_repository.category_ids(station_id), workload
        )


class CreateStation:
    def __init__(self, station_repository: StationRepository) -> None:
        self._station_repository = station_repository

    def execute(self, request_dto: CreateStationRequest) -> StationResponse:
        try:
            station = Station(
                station_id=StationId(new_id("stn")),
                name=request_dto.name.strip(),
                description=request_dto.description,
                status=_parse_status(request_dto.status),
                color=request_dto.color or DEFAULT_COLOR,
            )
        except ValueError as exc:
            raise InvalidStationRequestError(str(exc)) from exc
        try:
            self._station_repository.add(station)
        except DuplicateKeyError as exc:
            raise DuplicateStationError(f"station {station.name} already exists") from exc
        return to_station_response(station, [])


class UpdateStation:
    def __init__(self, station_repository: StationRepository) -> None:
        self._station_repository = station_repository

    def execute(self, station_id: StationId, request_dto: UpdateStationRequest) -> StationResponse:
        station = load_station(self._station_repository, station_id)
        changes = request_dto.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in changes:
            changes["status"] = _parse_status(changes["status"])
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        try:
            updated = replace(station, **changes)
        except ValueError as exc:
            raise InvalidStationRequestError(str(exc)) from exc
        try:
            self._station_repository.update(updated)
        except DuplicateKeyError as exc:
            raise DuplicateStationError(f"station {updated.name} already exists") from exc
        return to_station_response(updated, self._station_repository.category_ids(station_id))


class DeleteStation:
    def __init__(self, station_repository: StationRepository) -> None:
        self._station_repository = station_repository

    def execute(self, station_id: StationId) -> None:
        load_station(self._station_repository, station_id)
        assigned = self._station_repository.category_ids(station_id)
        if assigned:
            raise StationInUseError(
                f"station {station_id} still has {len(assigned)} assigned category(ies)"
            )
        self._station_repository.delete(station_id)


class StationStats:
    def __init__(self, station_repository: StationRepository) -> None:
        self._station_repository = station_repository

    def execute(self) -> StationStatsResponse:
        stations = self._station_repository.list()
        by_status = {status: 0 for status in StationStatus}
        for station in stations:
            by_status[station.status] += 1
        return StationStatsResponse(
            totalStations=len(stations),
            activeStations=by_status[StationStatus.ACTIVE],
            busyStations=by_status[StationStatus.BUSY],
            maintenanceStations=by_status[StationStatus.MAINTENANCE],
            staffedStations=sum(1 for station in stations if station.assigned_chef_id),
        )


class AssignCategories:
    def __init__(
        self,
        station_repository: StationRepository,
        menu_repository: MenuRepository,
    ) -> None:
        self._station_repository = station_repository
        self._menu_repository = menu_repository

    def execute(
        self,
        station_id: StationId,
        request_dto: AssignCategoriesRequest,
    ) -> StationResponse:
        station = load_station(self._station_repository, station_id)
        category_ids = [CategoryId(value) for value in dict.fromkeys(request_dto.category_ids)]
        for category_id in category_ids:
            if self._menu_repository.get_category(category_id) is None:
                raise CategoryNotFoundError(f"category {category_id} not found")
        self._station_repository.assign_categories(station_id, category_ids)
        return to_station_response(station, self._station_repository.category_ids(station_id))


class AssignChef:
    def __init__(
        self,
        station_repository: StationRepository,
        user_repository: UserRepository,
    ) -> None:
        self._station_repository = station_repository
        self._user_repository = user_repository

    def execute(self, station_id: StationId, request_dto: AssignChefRequest) -> StationResponse:
        station = load_station(self._station_repository, station_id)
        chef = self._user_repository.get(UserId(request_dto.chef_id))
        if chef is None or chef.role != Role.CHEF or chef.status != UserStatus.ACTIVE:
            raise InvalidStationRequestError(f"user {request_dto.chef_id} is not an active chef")
        if station.assigned_chef_id != chef.user_id:
            if self._station_repository.count_for_chef(chef.user_id) >= MAX_STATIONS_PER_CHEF:
                raise ChefUnavailableError(
                    f"{chef.username} already runs {MAX_STATIONS_PER_CHEF} stations"
                )
        updated = station.with_chef(chef.user_id)
        self._station_repository.update(updated)
        return to_station_response(updated, self._station_repository.category_ids(station_id))


class RemoveChef:
    def __init__(self, station_repository: StationRepository) -> None:
        self._station_repository = station_repository

    def execute(self, station_id: StationId) -> StationResponse:
        updated = load_station(self._station_repository, station_id).with_chef(None)
        self._station_repository.update(updated)
        return to_station_response(updated, self._station_repository.category_ids(station_id))


class AvailableChefs:
    def __init__(
        self,
        station_repository: StationRepository,
        user_repository: UserRepository,
    ) -> None:
        self._station_repository = station_repository
        self._user_repository = user_repository

    def execute(self) -> list[AvailableChefResponse]:
        chefs = self._user_repository.list(role=Role.CHEF, status=UserStatus.ACTIVE)
        available: list[AvailableChefResponse] = []
        for chef in sorted(chefs, key=lambda user: (user.first_name, user.last_name)):
            current = self._station_repository.count_for_chef(chef.user_id)
            if current < MAX_STATIONS_PER_CHEF:
                available.append(to_available_chef_response(chef, current))
        return available


class StationOrders:
    """A station's kitchen screen: each ticket lists only that station's open items."""

    def __init__(
        self,
        station_repository: StationRepository,
        menu_repository: MenuRepository,
        order_repository: OrderRepository,
    ) -> None:
        self._station_repository = station_repository
        self._menu_repository = menu_repository
        self._order_repository = order_repository

    def execute(self, station_id: StationId) -> list[OrderResponse]:
        load_station(self._station_repository, station_id)
        tickets = station_tickets(
            self._station_repository,
            self._menu_repository,
            self._order_repository,
            station_id,
        )
        return [
            to_order_response(order).model_copy(
                update={"items": [to_order_item_response(item) for item in items]}
            )
            for order, items in tickets
        ]
