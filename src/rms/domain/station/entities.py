from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

from rms.domain.common.ids import StationId, UserId

DEFAULT_COLOR = "#4CAF50"
MAX_STATIONS_PER_CHEF = 2

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class StationStatus(str, Enum):
    ACTIVE = "active"
    BUSY = "busy"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class Station:
    """A kitchen station; menu categories are routed to it for preparation."""

    station_id: StationId
    name: str
    description: str | None = None
    status: StationStatus = StationStatus.ACTIVE
    color: str = DEFAULT_COLOR
    assigned_chef_id: UserId | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("station name must not be empty")
        if not _HEX_COLOR.match(self.color):
            raise ValueError(f"invalid station color: {self.color}")

    def with_chef(self, chef_id: UserId | None) -> Station:
        return replace(self, assigned_chef_id=chef_id)
