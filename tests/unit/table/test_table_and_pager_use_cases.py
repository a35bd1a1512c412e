from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from rms.application.dto.requests import (
    AssignPagerRequest,
    CreateTableRequest,
    TableStatusRequest,
    UpdateTableRequest,
)
from rms.application.ports.repositories import DuplicateKeyError
from rms.application.use_cases.pagers import (
    ActivatePager,
    AssignPager,
    BuzzPager,
    DeletePager,
    PagerConflictError,
    PagerStats,
)
from rms.application.use_cases.tables import (
    CreateTable,
    DeleteTable,
    DuplicateTableError,
    FreeTable,
    InvalidPartySizeError,
    OccupyTable,
    OverrideTableStatus,
    ReserveTable,
    TableStateError,
    TableStats,
    UpdateTable,
)
from rms.domain.common.ids import MenuItemId, OrderId, OrderItemId, PagerId, TableId
from rms.domain.common.money import Money
from rms.domain.order.entities import Order, OrderItem, OrderStatus, create_pending_order
from rms.domain.pager.entities import Pager, PagerStatus
from rms.domain.table.entities import Table, TableStatus


class FakeTableRepository:
    def __init__(self, tables: list[Table] | None = None) -> None:
        self.tables = {table.table_id: table for table in tables or []}

    def add(self, table: Table) -> None:
        if any(t.table_number == table.table_number for t in self.tables.values()):
            raise DuplicateKeyError(table.table_number)
        self.tables[table.table_id] = table

    def get(self, table_id: TableId) -> Table | None:
        return self.tables.get(table_id)

    def update(self, table: Table) -> None:
        self.tables[table.table_id] = table

    def delete(self, table_id: TableId) -> None:
        del self.tables[table_id]

    def list(self, status: TableStatus | None = None, section: str | None = None) -> list[Table]:
        return [t for t in self.tables.values() if status is None or t.status == status]


class FakePagerRepository:
    """Conditional updates mirror the database guards."""

    def __init__(self, pagers: list[Pager]) -> None:
        self.pagers = {pager.pager_number: pager for pager in pagers}

    def get_by_number(self, pager_number: int) -> Pager | None:
        return self.pagers.get(pager_number)

    def delete(self, pager_number: int) -> None:
        del self.pagers[pager_number]

    def list(self, status: PagerStatus | None = None) -> list[Pager]:
        return [p for p in self.pagers.values() if status is None or p.status == status]

    def assign_to_order(self, pager_number: int, order_id: OrderId, now: datetime) -> bool:
        pager = self.pagers.get(pager_number)
        if pager is None or pager.status != PagerStatus.AVAILABLE:
            return False
        self.pagers[pager_number] = replace(
            pager, status=PagerStatus.ASSIGNED, order_id=order_id, assigned_at=now
        )
        return True

    def activate(self, pager_number: int) -> bool:
        pager = self.pagers.get(pager_number)
        if pager is None or pager.status != PagerStatus.ASSIGNED:
            return False
        self.pagers[pager_number] = replace(pager, status=PagerStatus.ACTIVE)
        return True


class FakeOrderRepository:
    def __init__(self, order: Order) -> None:
        self._order = order

    def get(self, order_id: OrderId) -> Order | None:
        return self._order if order_id == self._order.order_id else None


def _table(
    number: str = "T5",
    status: TableStatus = TableStatus.AVAILABLE,
    seated: int = 0,
) -> Table:
    return Table(
        table_id=TableId(f"tbl_{number}"),
        table_number=number,
        capacity=4,
        status=status,
        customer_count=seated,
    )


def _pager(number: int, status: PagerStatus = PagerStatus.AVAILABLE) -> Pager:
    order_id = None if status == PagerStatus.AVAILABLE else OrderId("ord_other")
    return Pager(
        pager_id=PagerId(f"pgr_{number}"),
        pager_number=number,
        status=status,
        order_id=order_id,
    )


def _order(pager_number: int | None = None, status: OrderStatus = OrderStatus.PENDING) -> Order:
    order = create_pending_order(
        order_id=OrderId("ord_001"),
        order_number="ORD-261001-AAAAAA",
        table_id=None,
        customer_name="Takeaway",
        items=[
            OrderItem(
                item_id=OrderItemId("oit_1"),
                menu_item_id=MenuItemId("itm_1"),
                name="Soup",
                quantity=1,
                price=Money.from_decimal("6.00"),
            )
        ],
        waiter_id=None,
        now=datetime(2026, 10, 1, tzinfo=timezone.utc),
        pager_number=pager_number,
    )
    return replace(order, status=status)


def test_create_table_rejects_duplicate_number() -> None:
    repository = FakeTableRepository([_table()])
    with pytest.raises(DuplicateTableError):
        CreateTable(repository).execute(CreateTableRequest(table_number=" T5 ", capacity=2))


def test_occupy_checks_capacity_and_current_status() -> None:
    repository = FakeTableRepository([_table()])
    use_case = OccupyTable(repository)

    with pytest.raises(InvalidPartySizeError):
        use_case.execute(TableId("tbl_T5"), 5)
    assert use_case.execute(TableId("tbl_T5"), 4).status == "occupied"
    with pytest.raises(TableStateError):
        use_case.execute(TableId("tbl_T5"), 2)


def test_free_resets_customer_count_and_rejects_free_table() -> None:
    repository = FakeTableRepository([_table(status=TableStatus.OCCUPIED, seated=3)])

    freed = FreeTable(repository).execute(TableId("tbl_T5"))
    assert (freed.status, freed.customerCount) == ("available", 0)
    with pytest.raises(TableStateError):
        FreeTable(repository).execute(TableId("tbl_T5"))


def test_reserve_only_from_available() -> None:
    repository = FakeTableRepository([_table(status=TableStatus.OCCUPIED, seated=2)])
    with pytest.raises(TableStateError):
        ReserveTable(repository).execute(TableId("tbl_T5"), 2)


def test_update_cannot_shrink_below_seated_party() -> None:
    repository = FakeTableRepository([_table(status=TableStatus.OCCUPIED, seated=3)])
    with pytest.raises(InvalidPartySizeError):
        UpdateTable(repository).execute(TableId("tbl_T5"), UpdateTableRequest(capacity=2))


def test_occupied_table_cannot_be_deleted() -> None:
    repository = FakeTableRepository([_table(status=TableStatus.OCCUPIED, seated=1)])
    with pytest.raises(TableStateError):
        DeleteTable(repository).execute(TableId("tbl_T5"))


def test_override_to_available_clears_party() -> None:
    repository = FakeTableRepository([_table(status=TableStatus.RESERVED, seated=2)])
    response = OverrideTableStatus(repository).execute(
        TableId("tbl_T5"), TableStatusRequest(status="available")
    )
    assert response.customerCount == 0


def test_table_stats_count_seated_customers_on_occupied_tables() -> None:
    repository = FakeTableRepository(
        [
            _table("T1", TableStatus.OCCUPIED, 3),
            _table("T2", TableStatus.RESERVED, 2),
            _table("T3"),
        ]
    )
    stats = TableStats(repository).execute()
    assert (stats.total, stats.occupied, stats.reserved, stats.available) == (3, 1, 1, 1)
    assert stats.totalCapacity == 12
    assert stats.seatedCustomers == 3


def test_assign_pager_claims_available_pager_once() -> None:
    pagers = FakePagerRepository([_pager(1)])
    use_case = AssignPager(pagers, FakeOrderRepository(_order()))

    assigned = use_case.execute(1, AssignPagerRequest(order_id="ord_001"))
    assert assigned.status == "assigned"
    assert assigned.orderId == "ord_001"
    with pytest.raises(PagerConflictError):
        use_case.execute(1, AssignPagerRequest(order_id="ord_001"))


def test_assign_pager_rejects_terminal_order_and_order_with_pager() -> None:
    pagers = FakePagerRepository([_pager(1)])
    with pytest.raises(PagerConflictError):
        AssignPager(pagers, FakeOrderRepository(_order(status=OrderStatus.COMPLETED))).execute(
            1, AssignPagerRequest(order_id="ord_001")
        )
    with pytest.raises(PagerConflictError):
        AssignPager(pagers, FakeOrderRepository(_order(pager_number=9))).execute(
            1, AssignPagerRequest(order_id="ord_001")
        )


def test_buzz_requires_active_pager() -> None:
    pagers = FakePagerRepository([_pager(2, PagerStatus.ASSIGNED)])
    with pytest.raises(PagerConflictError):
        BuzzPager(pagers).execute(2)

    ActivatePager(pagers).execute(2)
    assert BuzzPager(pagers).execute(2).message == "pager 2 buzzed"


def test_pager_in_use_cannot_be_deleted_and_stats_reflect_states() -> None:
    pagers = FakePagerRepository(
        [_pager(1), _pager(2, PagerStatus.ASSIGNED), _pager(3, PagerStatus.ACTIVE)]
    )
    with pytest.raises(PagerConflictError):
        DeletePager(pagers).execute(3)

    stats = PagerStats(pagers).execute()
    assert (stats.total, stats.available, stats.assigned, stats.active) == (3, 1, 1, 1)
