from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from rms.domain.common.ids import TableId


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"


@dataclass(frozen=True)
class Table:
    table_id: TableId
    table_number: str
    capacity: int
    status: TableStatus
    customer_count: int = 0
    section: str = "Main Hall"
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be >= 1")
        if self.customer_count < 0:
            raise ValueError("customer_count must be >= 0")

    def occupy(self, customer_count: int) -> Table:
        if self.status == TableStatus.OCCUPIED:
            raise TableOccupancyError(f"table {self.table_number} is already occupied")
        self._check_party_size(customer_count)
        return replace(self, status=TableStatus.OCCUPIED, customer_count=customer_count)

    def free(self) -> Table:
        if self.status == TableStatus.AVAILABLE:
            raise TableOccupancyError(f"table {self.table_number} is already available")
        return self.released()

    def reserve(self, customer_count: int) -> Table:
        if self.status != TableStatus.AVAILABLE:
            raise TableOccupancyError(
                f"table {self.table_number} cannot be reserved from status={self.status.value}"
            )
        self._check_party_size(customer_count)
        return replace(self, status=TableStatus.RESERVED, customer_count=customer_count)

    def override(self, status: TableStatus, customer_count: int | None = None) -> Table:
        count = customer_count if customer_count is not None else self.customer_count
        if status == TableStatus.AVAILABLE and customer_count is None:
            count = 0
        return replace(self, status=status, customer_count=count)

    def released(self) -> Table:
        return replace(self, status=TableStatus.AVAILABLE, customer_count=0)

    def ensure_accepts_order(self) -> None:
        if self.status == TableStatus.OCCUPIED:
            raise TableOccupancyError(f"table {self.table_number} is already occupied")

    def _check_party_size(self, customer_count: int) -> None:
        if customer_count < 1:
            raise PartySizeError("customer_count must be >= 1")
        if customer_count > self.capacity:
            raise PartySizeError(
                f"table {self.table_number} seats {self.capacity}, requested {customer_count}"
            )


class TableOccupancyError(Exception):
    pass


class PartySizeError(Exception):
    pass
