from __future__ import annotations

from fastapi import APIRouter, Depends, status

from rms.api.security import MANAGEMENT, require_roles
from rms.application.dto.requests import SupplierRequest, UpdateSupplierRequest
from rms.application.dto.responses import Envelope, SupplierResponse
from rms.application.use_cases.procurement import (
    CreateSupplier,
    DeleteSupplier,
    GetSupplier,
    ListSuppliers,
    UpdateSupplier,
)
from rms.domain.common.ids import SupplierId
from rms.domain.identity.entities import User
from rms.infrastructure.db.repositories.procurement_repo import SqlAlchemySupplierRepository

router = APIRouter(
    prefix="/api/suppliers",
    tags=["procurement"],
    dependencies=[Depends(require_roles(*MANAGEMENT))],
)


@router.get("", response_model=Envelope[list[SupplierResponse]])
def list_suppliers(status: str | None = None) -> Envelope[list[SupplierResponse]]:
    use_case = ListSuppliers(supplier_repository=SqlAlchemySupplierRepository())
    return Envelope(data=use_case.execute(status=status))


@router.get("/{supplier_id}", response_model=Envelope[SupplierResponse])
def get_supplier(supplier_id: str) -> Envelope[SupplierResponse]:
    use_case = GetSupplier(supplier_repository=SqlAlchemySupplierRepository())
    return Envelope(data=use_case.execute(SupplierId(supplier_id)))


@router.post(
    "",
    response_model=Envelope[SupplierResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_supplier(request_dto: SupplierRequest) -> Envelope[SupplierResponse]:
    use_case = CreateSupplier(supplier_repository=SqlAlchemySupplierRepository())
    return Envelope(data=use_case.execute(request_dto))


@router.put("/{supplier_id}", response_model=Envelope[SupplierResponse])
def update_supplier(
    supplier_id: str,
    request_dto: UpdateSupplierRequest,
) -> Envelope[SupplierResponse]:
    use_case = UpdateSupplier(supplier_repository=SqlAlchemySupplierRepository())
    return Envelope(data=use_case.execute(SupplierId(supplier_id), request_dto))


@router.delete("/{supplier_id}", response_model=Envelope[SupplierResponse])
def delete_supplier(supplier_id: str) -> Envelope[SupplierResponse]:
    use_case = DeleteSupplier(supplier_repository=SqlAlchemySupplierRepository())
    return Envelope(data=use_case.execute(SupplierId(supplier_id)))
