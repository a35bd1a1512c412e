from __future__ import annotations

from fastapi import APIRouter, Depends, status

from rms.api.dependencies import actor_of
from rms.api.security import MANAGEMENT, require_roles
from rms.application.dto.requests import (
    CreatePurchaseOrderRequest,
    PurchaseOrderItemRequest,
    PurchaseOrderStatusRequest,
    ReceivePartialRequest,
)
from rms.application.dto.responses import Envelope, PurchaseOrderResponse
from rms.application.use_cases.procurement import (
    AddPurchaseOrderItem,
    CreatePurchaseOrder,
    GetPurchaseOrder,
    ListPurchaseOrders,
    PendingDeliveries,
    ReceivePartial,
    RemovePurchaseOrderItem,
    UpdatePurchaseOrderStatus,
)
from rms.domain.common.ids import PurchaseOrderId, PurchaseOrderItemId
from rms.domain.identity.entities import User
from rms.infrastructure.db.repositories.inventory_repo import SqlAlchemyInventoryRepository
from rms.infrastructure.db.repositories.procurement_repo import (
    SqlAlchemyPurchaseOrderRepository,
    SqlAlchemySupplierRepository,
)

router = APIRouter(prefix="/api/purchase-orders", tags=["procurement"])

management = require_roles(*MANAGEMENT)


@router.get("", response_model=Envelope[list[PurchaseOrderResponse]])
def list_purchase_orders(
    status: str | None = None,
    supplier_id: str | None = None,
    _: User = Depends(management),
) -> Envelope[list[PurchaseOrderResponse]]:
    use_case = ListPurchaseOrders(purchase_order_repository=SqlAlchemyPurchaseOrderRepository())
    return Envelope(data=use_case.execute(status=status, supplier_id=supplier_id))


@router.get("/pending-deliveries", response_model=Envelope[list[PurchaseOrderResponse]])
def pending_deliveries(_: User = Depends(management)) -> Envelope[list[PurchaseOrderResponse]]:
    use_case = PendingDeliveries(purchase_order_repository=SqlAlchemyPurchaseOrderRepository())
    return Envelope(data=use_case.execute())


@router.get("/{purchase_order_id}", response_model=Envelope[PurchaseOrderResponse])
def get_purchase_order(
    purchase_order_id: str,
    _: User = Depends(management),
) -> Envelope[PurchaseOrderResponse]:
    use_case = GetPurchaseOrder(purchase_order_repository=SqlAlchemyPurchaseOrderRepository())
    return Envelope(data=use_case.execute(PurchaseOrderId(purchase_order_id)))


@router.post(
    "",
    response_model=Envelope[PurchaseOrderResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_purchase_order(
    request_dto: CreatePurchaseOrderRequest,
    user: User = Depends(management),
) -> Envelope[PurchaseOrderResponse]:
    use_case = CreatePurchaseOrder(
        supplier_repository=SqlAlchemySupplierRepository(),
        inventory_repository=SqlAlchemyInventoryRepository(),
        purchase_order_repository=SqlAlchemyPurchaseOrderRepository(),
    )
    return Envelope(data=use_case.execute(request_dto, actor_of(user)))


@router.patch("/{purchase_order_id}/status", response_model=Envelope[PurchaseOrderResponse])
def update_purchase_order_status(
    purchase_order_id: str,
    request_dto: PurchaseOrderStatusRequest,
    user: User = Depends(management),
) -> Envelope[PurchaseOrderResponse]:
    use_case = UpdatePurchaseOrderStatus(
        purchase_order_repository=SqlAlchemyPurchaseOrderRepository()
    )
    return Envelope(
        data=use_case.execute(
            PurchaseOrderId(purchase_order_id),
            request_dto.status,
            actor_of(user),
        )
    )


@router.post("/{purchase_order_id}/receive", response_model=Envelope[PurchaseOrderResponse])
def receive_partial(
    purchase_order_id: str,
    request_dto: ReceivePartialRequest,
    user: User = Depends(management),
) -> Envelope[PurchaseOrderResponse]:
    use_case = ReceivePartial(purchase_order_repository=SqlAlchemyPurchaseOrderRepository())
    return Envelope(
        data=use_case.execute(PurchaseOrderId(purchase_order_id), request_dto, actor_of(user))
    )


@router.post(
    "/{purchase_order_id}/items",
    response_model=Envelope[PurchaseOrderResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_purchase_order_item(
    purchase_order_id: str,
    request_dto: PurchaseOrderItemRequest,
    _: User = Depends(management),
) -> Envelope[PurchaseOrderResponse]:
    use_case = AddPurchaseOrderItem(
        inventory_repository=SqlAlchemyInventoryRepository(),
        purchase_order_repository=SqlAlchemyPurchaseOrderRepository(),
    )
    return Envelope(data=use_case.execute(PurchaseOrderId(purchase_order_id), request_dto))


@router.delete(
    "/{purchase_order_id}/items/{item_id}",
    response_model=Envelope[PurchaseOrderResponse],
)
def remove_purchase_order_item(
    purchase_order_id: str,
    item_id: str,
    _: User = Depends(management),
) -> Envelope[PurchaseOrderResponse]:
    use_case = RemovePurchaseOrderItem(
        purchase_order_repository=SqlAlchemyPurchaseOrderRepository()
    )
    return Envelope(
        data=use_case.execute(PurchaseOrderId(purchase_order_id), PurchaseOrderItemId(item_id))
    )
