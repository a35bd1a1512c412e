from __future__ import annotations

from rms.application.dto.responses import (
    AvailableChefResponse,
    StationDetailResponse,
    StationResponse,
    StationWorkloadResponse,
)
from rms.domain.common.ids import CategoryId
from rms.domain.identity.entities import User
from rms.domain.station.entities import Station


def to_station_response(station: Station, category_ids: list[CategoryId]) -> StationResponse:
    return StationResponse(
        stationId=str(station.station_id),
        name=station.name,
        description=station.description,
        status=station.status.value,
        color=station.color,
        assignedChefId=str(station.assigned_chef_id) if station.assigned_chef_id else None,
        categoryIds=[str(category_id) for category_id in category_ids],
    )


def to_station_detail_response(
    station: Station,
    category_ids: list[CategoryId],
    workload: StationWorkloadResponse,
) -> StationDetailResponse:
    summary = to_station_response(station, category_ids)
    return StationDetailResponse(**summary.model_dump(), workload=workload)


def to_available_chef_response(chef: User, current_stations: int) -> AvailableChefResponse:
    return AvailableChefResponse(
        userId=str(chef.user_id),
        username=chef.username,
        firstName=chef.first_name,
        lastName=chef.last_name,
        currentStations=current_stations,
    )
