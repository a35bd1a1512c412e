from __future__ import annotations

from dataclasses import replace

from rms.application.dto.requests import (
    CreateTableRequest,
    TableStatusRequest,
    UpdateTableRequest,
)
from rms.application.dto.responses import TableResponse, TableStatsResponse
from rms.application.mappers.table_mapper import to_table_response
from rms.application.metrics.order_lifecycle import record_table_rejection
from rms.application.ports.repositories import DuplicateKeyError, TableRepository
from rms.domain.common.ids import TableId, new_id
from rms.domain.table.entities import (
    PartySizeError,
    Table,
    TableOccupancyError,
    TableStatus,
)


class TableNotFoundError(Exception):
    pass


class DuplicateTableError(Exception):
    pass


class TableStateError(Exception):
    pass


class InvalidPartySizeError(Exception):
    pass


class InvalidTableStatusError(Exception):
    pass


def parse_table_status(value: str) -> TableStatus:
    try:
        return TableStatus(value.lower())
    except ValueError as exc:
        raise InvalidTableStatusError(f"invalid table status: {value}") from exc


def load_table(table_repository: TableRepository, table_id: TableId) -> Table:
    table = table_repository.get(table_id)
    if table is None:
        raise TableNotFoundError(f"table {table_id} not found")
    return table


class ListTables:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, status: str | None = None, section: str | None = None) -> list[TableResponse]:
        tables = self._table_repository.list(
            status=parse_table_status(status) if status else None,
            section=section,
        )
        return [to_table_response(table) for table in tables]


class GetTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId) -> TableResponse:
        return to_table_response(load_table(self._table_repository, table_id))


class AvailableTables:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, min_capacity: int | None = None) -> list[TableResponse]:
        tables = self._table_repository.list_available(min_capacity=min_capacity)
        return [to_table_response(table) for table in tables]


class CreateTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, request_dto: CreateTableRequest) -> TableResponse:
        table = Table(
            table_id=TableId(new_id("tbl")),
            table_number=request_dto.table_number.strip(),
            capacity=request_dto.capacity,
            status=TableStatus.AVAILABLE,
            section=request_dto.section,
            notes=request_dto.notes,
        )
        try:
            self._table_repository.add(table)
        except DuplicateKeyError as exc:
            raise DuplicateTableError(f"table number {table.table_number} already exists") from exc
        return to_table_response(table)


class UpdateTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId, request_dto: UpdateTableRequest) -> TableResponse:
        table = load_table(self._table_repository, table_id)
        changes = request_dto.model_dump(exclude_unset=True, exclude_none=True)
        if "table_number" in changes:
            changes["table_number"] = changes["table_number"].strip()
        try:
            updated = replace(table, **changes)
        except ValueError as exc:
            raise InvalidPartySizeError(str(exc)) from exc
        if updated.customer_count > updated.capacity:
            raise InvalidPartySizeError(
                f"capacity {updated.capacity} is below "
                f"current customer count {updated.customer_count}"
            )
        try:
            self._table_repository.update(updated)
        except DuplicateKeyError as exc:
            raise DuplicateTableError(
                f"table number {updated.table_number} already exists"
            ) from exc
        return to_table_response(updated)


class DeleteTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId) -> None:
        table = load_table(self._table_repository, table_id)
        if table.status == TableStatus.OCCUPIED:
            raise TableStateError(f"table {table.table_number} is occupied and cannot be deleted")
        self._table_repository.delete(table_id)


class TableStats:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self) -> TableStatsResponse:
        tables = self._table_repository.list()

        def count(status: TableStatus) -> int:
            return sum(1 for table in tables if table.status == status)

        return TableStatsResponse(
            total=len(tables),
            available=count(TableStatus.AVAILABLE),
            occupied=count(TableStatus.OCCUPIED),
            reserved=count(TableStatus.RESERVED),
            totalCapacity=sum(table.capacity for table in tables),
            seatedCustomers=sum(
                table.customer_count for table in tables if table.status == TableStatus.OCCUPIED
            ),
        )


class OccupyTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId, customer_count: int) -> TableResponse:
        table = load_table(self._table_repository, table_id)
        try:
            occupied = table.occupy(customer_count)
        except TableOccupancyError as exc:
            record_table_rejection("occupied")
            raise TableStateError(str(exc)) from exc
        except PartySizeError as exc:
            record_table_rejection("party_size")
            raise InvalidPartySizeError(str(exc)) from exc
        self._table_repository.update(occupied)
        return to_table_response(occupied)


class FreeTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId) -> TableResponse:
        table = load_table(self._table_repository, table_id)
        try:
            freed = table.free()
        except TableOccupancyError as exc:
            raise TableStateError(str(exc)) from exc
        self._table_repository.update(freed)
        return to_table_response(freed)


class ReserveTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId, customer_count: int) -> TableResponse:
        table = load_table(self._table_repository, table_id)
        try:
            reserved = table.reserve(customer_count)
        except TableOccupancyError as exc:
            raise TableStateError(str(exc)) from exc
        except PartySizeError as exc:
            raise InvalidPartySizeError(str(exc)) from exc
        self._table_repository.update(reserved)
        return to_table_response(reserved)


class OverrideTableStatus:
    """Manager override: sets the status without occupancy checks."""

    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId, request_dto: TableStatusRequest) -> TableResponse:
        table = load_table(self._table_repository, table_id)
        status = parse_table_status(request_dto.status)
        try:
            updated = table.override(status, request_dto.customer_count)
        except ValueError as exc:
            raise InvalidPartySizeError(str(exc)) from exc
        self._table_repository.update(updated)
        return to_table_response(updated)
