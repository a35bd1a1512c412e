from __future__ import annotations

from fastapi import APIRouter, Depends, status

from rms.api.security import FRONT_OF_HOUSE, MANAGEMENT, get_current_user, require_roles
from rms.application.dto.requests import (
    AssignPagerRequest,
    CreatePagerRequest,
    CreateTableRequest,
    CustomerCountRequest,
    TableStatusRequest,
    UpdateTableRequest,
)
from rms.application.dto.responses import (
    Envelope,
    MessageResponse,
    PagerResponse,
    PagerStatsResponse,
    TableResponse,
    TableStatsResponse,
)
from rms.application.use_cases.pagers import (
    ActivatePager,
    AssignPager,
    BuzzPager,
    CreatePager,
    DeletePager,
    FirstAvailablePager,
    GetPager,
    ListPagers,
    PagerStats,
    ReleasePager,
)
from rms.application.use_cases.tables import (
    AvailableTables,
    CreateTable,
    DeleteTable,
    FreeTable,
    GetTable,
    ListTables,
    OccupyTable,
    OverrideTableStatus,
    ReserveTable,
    TableStats,
    UpdateTable,
)
from rms.domain.common.ids import TableId
from rms.domain.identity.entities import Role, User
from rms.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from rms.infrastructure.db.repositories.pager_repo import SqlAlchemyPagerRepository
from rms.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository

router = APIRouter(prefix="/api/tables", tags=["tables"])

management = require_roles(*MANAGEMENT)
front_of_house = require_roles(*FRONT_OF_HOUSE)
pager_signalling = require_roles(Role.CHEF, Role.ADMIN, Role.MANAGER)


# pager routes are declared first so /pagers is never captured by /{table_id}


@router.get("/pagers", response_model=Envelope[list[PagerResponse]])
def list_pagers(
    status: str | None = None,
    _: User = Depends(get_current_user),
) -> Envelope[list[PagerResponse]]:
    use_case = ListPagers(pager_repository=SqlAlchemyPagerRepository())
    return Envelope(data=use_case.execute(status=status))


@router.get("/pagers/available", response_model=Envelope[PagerResponse])
def first_available_pager(_: User = Depends(get_current_user)) -> Envelope[PagerResponse]:
    use_case = FirstAvailablePager(pager_repository=SqlAlchemyPagerRepository())
    return Envelope(data=use_case.execute())


@router.get("/pagers/stats", response_model=Envelope[PagerStatsResponse])
def pager_stats(_: User = Depends(management)) -> Envelope[PagerStatsResponse]:
    return Envelope(data=PagerStats(pager_repository=SqlAlchemyPagerRepository()).execute())


@router.get("/pagers/{pager_number}", response_model=Envelope[PagerResponse])
def get_pager(pager_number: int, _: User = Depends(get_current_user)) -> Envelope[PagerResponse]:
    use_case = GetPager(pager_repository=SqlAlchemyPagerRepository())
    return Envelope(data=use_case.execute(pager_number))


@router.post(
    "/pagers",
    response_model=Envelope[PagerResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_pager(
    request_dto: CreatePagerRequest,
    _: User = Depends(management),
) -> Envelope[PagerResponse]:
    use_case = CreatePager(pager_repository=SqlAlchemyPagerRepository())
    return Envelope(data=use_case.execute(request_dto))


@router.delete("/pagers/{pager_number}", response_model=Envelope[MessageResponse])
def delete_pager(pager_number: int, _: User = Depends(management)) -> Envelope[MessageResponse]:
    DeletePager(pager_repository=SqlAlchemyPagerRepository()).execute(pager_number)
    return Envelope(data=MessageResponse(message=f"pager {pager_number} deleted"))


@router.post("/pagers/{pager_number}/assign", response_model=Envelope[PagerResponse])
def assign_pager(
    pager_number: int,
    request_dto: AssignPagerRequest,
    _: User = Depends(front_of_house),
) -> Envelope[PagerResponse]:
    use_case = AssignPager(
        pager_repository=SqlAlchemyPagerRepository(),
        order_repository=SqlAlchemyOrderRepository(),
    )
    return Envelope(data=use_case.execute(pager_number, request_dto))


@router.post("/pagers/{pager_number}/release", response_model=Envelope[PagerResponse])
def release_pager(
    pager_number: int,
    _: User = Depends(front_of_house),
) -> Envelope[PagerResponse]:
    use_case = ReleasePager(pager_repository=SqlAlchemyPagerRepository())
    return Envelope(data=use_case.execute(pager_number))


@router.post("/pagers/{pager_number}/activate", response_model=Envelope[PagerResponse])
def activate_pager(
    pager_number: int,
    _: User = Depends(pager_signalling),
) -> Envelope[PagerResponse]:
    use_case = ActivatePager(pager_repository=SqlAlchemyPagerRepository())
    return Envelope(data=use_case.execute(pager_number))


@router.post("/pagers/{pager_number}/buzz", response_model=Envelope[MessageResponse])
def buzz_pager(
    pager_number: int,
    _: User = Depends(pager_signalling),
) -> Envelope[MessageResponse]:
    use_case = BuzzPager(pager_repository=SqlAlchemyPagerRepository())
    return Envelope(data=use_case.execute(pager_number))


@router.get("", response_model=Envelope[list[TableResponse]])
def list_tables(
    status: str | None = None,
    section: str | None = None,
) -> Envelope[list[TableResponse]]:
    use_case = ListTables(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(status=status, section=section))


@router.get("/available", response_model=Envelope[list[TableResponse]])
def available_tables(capacity: int | None = None) -> Envelope[list[TableResponse]]:
    use_case = AvailableTables(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(min_capacity=capacity))


@router.get("/stats", response_model=Envelope[TableStatsResponse])
def table_stats(_: User = Depends(management)) -> Envelope[TableStatsResponse]:
    return Envelope(data=TableStats(table_repository=SqlAlchemyTableRepository()).execute())


@router.get("/{table_id}", response_model=Envelope[TableResponse])
def get_table(table_id: str) -> Envelope[TableResponse]:
    use_case = GetTable(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(TableId(table_id)))


@router.post(
    "",
    response_model=Envelope[TableResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_table(
    request_dto: CreateTableRequest,
    _: User = Depends(management),
) -> Envelope[TableResponse]:
    use_case = CreateTable(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(request_dto))


@router.put("/{table_id}", response_model=Envelope[TableResponse])
def update_table(
    table_id: str,
    request_dto: UpdateTableRequest,
    _: User = Depends(management),
) -> Envelope[TableResponse]:
    use_case = UpdateTable(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(TableId(table_id), request_dto))


@router.delete("/{table_id}", response_model=Envelope[MessageResponse])
def delete_table(
    table_id: str,
    _: User = Depends(require_roles(Role.ADMIN)),
) -> Envelope[MessageResponse]:
    DeleteTable(table_repository=SqlAlchemyTableRepository()).execute(TableId(table_id))
    return Envelope(data=MessageResponse(message=f"table {table_id} deleted"))


@router.post("/{table_id}/occupy", response_model=Envelope[TableResponse])
def occupy_table(
    table_id: str,
    request_dto: CustomerCountRequest,
    _: User = Depends(front_of_house),
) -> Envelope[TableResponse]:
    use_case = OccupyTable(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(TableId(table_id), request_dto.customer_count))


@router.post("/{table_id}/free", response_model=Envelope[TableResponse])
def free_table(table_id: str, _: User = Depends(front_of_house)) -> Envelope[TableResponse]:
    use_case = FreeTable(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(TableId(table_id)))


@router.post("/{table_id}/reserve", response_model=Envelope[TableResponse])
def reserve_table(
    table_id: str,
    request_dto: CustomerCountRequest,
    _: User = Depends(front_of_house),
) -> Envelope[TableResponse]:
    use_case = ReserveTable(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(TableId(table_id), request_dto.customer_count))


@router.patch("/{table_id}/status", response_model=Envelope[TableResponse])
def override_status(
    table_id: str,
    request_dto: TableStatusRequest,
    _: User = Depends(management),
) -> Envelope[TableResponse]:
    use_case = OverrideTableStatus(table_repository=SqlAlchemyTableRepository())
    return Envelope(data=use_case.execute(TableId(table_id), request_dto))
