from __future__ import annotations

from fastapi import APIRouter, Depends, status

from rms.api.security import MANAGEMENT, STAFF, require_roles
from rms.application.dto.requests import (
    AssignCategoriesRequest,
    AssignChefRequest,
    CreateStationRequest,
    UpdateStationRequest,
)
from rms.application.dto.responses import (
    AvailableChefResponse,
    Envelope,
    MessageResponse,
    StationDetailResponse,
    StationResponse,
    StationStatsResponse,
)
from rms.application.use_cases.stations import (
    AssignCategories,
    AssignChef,
    AvailableChefs,
    CreateStation,
    DeleteStation,
    GetStation,
    ListStations,
    RemoveChef,
    StationStats,
    UpdateStation,
)
from rms.domain.common.ids import StationId
from rms.domain.identity.entities import Role, User
from rms.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from rms.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from rms.infrastructure.db.repositories.station_repo import SqlAlchemyStationRepository
from rms.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository

router = APIRouter(prefix="/api/stations", tags=["stations"])

staff = require_roles(*STAFF)
management = require_roles(*MANAGEMENT)
station_editors = require_roles(Role.CHEF, *MANAGEMENT)
admins = require_roles(Role.ADMIN)


@router.get("", response_model=Envelope[list[StationResponse]])
def list_stations(
    status: str | None = None,
    _: User = Depends(staff),
) -> Envelope[list[StationResponse]]:
    use_case = ListStations(station_repository=SqlAlchemyStationRepository())
    return Envelope(data=use_case.execute(status=status))


@router.get("/stats/summary", response_model=Envelope[StationStatsResponse])
def station_stats(_: User = Depends(management)) -> Envelope[StationStatsResponse]:
    use_case = StationStats(station_repository=SqlAlchemyStationRepository())
    return Envelope(data=use_case.execute())


@router.get("/chefs/available", response_model=Envelope[list[AvailableChefResponse]])
def available_chefs(_: User = Depends(management)) -> Envelope[list[AvailableChefResponse]]:
    use_case = AvailableChefs(
        station_repository=SqlAlchemyStationRepository(),
        user_repository=SqlAlchemyUserRepository(),
    )
    return Envelope(data=use_case.execute())


@router.get("/{station_id}", response_model=Envelope[StationDetailResponse])
def get_station(station_id: str, _: User = Depends(staff)) -> Envelope[StationDetailResponse]:
    use_case = GetStation(
        station_repository=SqlAlchemyStationRepository(),
        menu_repository=SqlAlchemyMenuRepository(),
        order_repository=SqlAlchemyOrderRepository(),
    )
    return Envelope(data=use_case.execute(StationId(station_id)))


@router.post(
    "",
    response_model=Envelope[StationResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_station(
    request_dto: CreateStationRequest,
    _: User = Depends(station_editors),
) -> Envelope[StationResponse]:
    use_case = CreateStation(station_repository=SqlAlchemyStationRepository())
    return Envelope(data=use_case.execute(request_dto))


@router.put("/{station_id}", response_model=Envelope[StationResponse])
def update_station(
    station_id: str,
    request_dto: UpdateStationRequest,
    _: User = Depends(station_editors),
) -> Envelope[StationResponse]:
    use_case = UpdateStation(station_repository=SqlAlchemyStationRepository())
    return Envelope(data=use_case.execute(StationId(station_id), request_dto))


@router.delete("/{station_id}", response_model=Envelope[MessageResponse])
def delete_station(station_id: str, _: User = Depends(admins)) -> Envelope[MessageResponse]:
    DeleteStation(station_repository=SqlAlchemyStationRepository()).execute(StationId(station_id))
    return Envelope(data=MessageResponse(message=f"station {station_id} deleted"))


@router.post("/{station_id}/assign-categories", response_model=Envelope[StationResponse])
def assign_categories(
    station_id: str,
    request_dto: AssignCategoriesRequest,
    _: User = Depends(management),
) -> Envelope[StationResponse]:
    use_case = AssignCategories(
        station_repository=SqlAlchemyStationRepository(),
        menu_repository=SqlAlchemyMenuRepository(),
    )
    return Envelope(data=use_case.execute(StationId(station_id), request_dto))


@router.post("/{station_id}/assign-chef", response_model=Envelope[StationResponse])
def assign_chef(
    station_id: str,
    request_dto: AssignChefRequest,
    _: User = Depends(management),
) -> Envelope[StationResponse]:
    use_case = AssignChef(
        station_repository=SqlAlchemyStationRepository(),
        user_repository=SqlAlchemyUserRepository(),
    )
    return Envelope(data=use_case.execute(StationId(station_id), request_dto))


@router.post("/{station_id}/remove-chef", response_model=Envelope[StationResponse])
def remove_chef(station_id: str, _: User = Depends(management)) -> Envelope[StationResponse]:
    use_case = RemoveChef(station_repository=SqlAlchemyStationRepository())
    return Envelope(data=use_case.execute(StationId(station_id)))
