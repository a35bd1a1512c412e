from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from rms.domain.common.ids import OrderId, PagerId


class PagerStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    ACTIVE = "active"


@dataclass(frozen=True)
class Pager:
    pager_id: PagerId
    pager_number: int
    status: PagerStatus
    order_id: OrderId | None = None
    assigned_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.pager_number < 1:
            raise ValueError("pager_number must be >= 1")
        if self.status == PagerStatus.AVAILABLE and self.order_id is not None:
            raise ValueError("available pager cannot reference an order")

    @property
    def in_use(self) -> bool:
        return self.status != PagerStatus.AVAILABLE

    def ensure_buzzable(self) -> None:
        if self.status != PagerStatus.ACTIVE:
            raise PagerStateError(
                f"pager {self.pager_number} cannot buzz from status={self.status.value}"
            )


class PagerStateError(Exception):
    pass
