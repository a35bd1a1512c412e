from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from rms.application.dto.requests import (
    CreatePurchaseOrderRequest,
    PurchaseOrderItemRequest,
    ReceivePartialRequest,
    SupplierRequest,
    UpdateSupplierRequest,
)
from rms.application.dto.responses import PurchaseOrderResponse, SupplierResponse
from rms.application.mappers.procurement_mapper import (
    to_purchase_order_response,
    to_supplier_response,
)
from rms.application.ports.repositories import (
    InventoryRepository,
    PurchaseOrderRepository,
    SupplierRepository,
)
from rms.application.use_cases.context import Actor
from rms.application.use_cases.inventory import IngredientNotFoundError
from rms.domain.common.ids import (
    IngredientId,
    PurchaseOrderId,
    PurchaseOrderItemId,
    SupplierId,
    new_id,
)
from rms.domain.common.money import Money, total_of
from rms.domain.procurement.entities import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStateError,
    PurchaseOrderStatus,
    Supplier,
    SupplierStatus,
    new_purchase_order_number,
)


class SupplierNotFoundError(Exception):
    pass


class SupplierInactiveError(Exception):
    pass


class PurchaseOrderNotFoundError(Exception):
    pass


class PurchaseOrderConflictError(Exception):
    pass


class InvalidProcurementRequestError(Exception):
    pass


def _load_supplier(supplier_repository: SupplierRepository, supplier_id: SupplierId) -> Supplier:
    supplier = supplier_repository.get(supplier_id)
    if supplier is None:
        raise SupplierNotFoundError(f"supplier {supplier_id} not found")
    return supplier


def _load_purchase_order(
    purchase_order_repository: PurchaseOrderRepository,
    purchase_order_id: PurchaseOrderId,
) -> PurchaseOrder:
    purchase_order = purchase_order_repository.get(purchase_order_id)
    if purchase_order is None:
        raise PurchaseOrderNotFoundError(f"purchase order {purchase_order_id} not found")
    return purchase_order


def _ensure_editable(purchase_order: PurchaseOrder) -> None:
    try:
        purchase_order.ensure_editable()
    except PurchaseOrderStateError as exc:
        raise PurchaseOrderConflictError(str(exc)) from exc


def _build_items(
    inventory_repository: InventoryRepository,
    requested: list[PurchaseOrderItemRequest],
) -> list[PurchaseOrderItem]:
    known = inventory_repository.get_many([IngredientId(line.ingredient_id) for line in requested])
    items: list[PurchaseOrderItem] = []
    for line in requested:
        if IngredientId(line.ingredient_id) not in known:
            raise IngredientNotFoundError(f"ingredient {line.ingredient_id} not found")
        items.append(
            PurchaseOrderItem(
                item_id=PurchaseOrderItemId(new_id("poi")),
                ingredient_id=IngredientId(line.ingredient_id),
                quantity=line.quantity,
                unit_price=Money.from_decimal(line.unit_price),
            )
        )
    return items


class ListSuppliers:
    def __init__(self, supplier_repository: SupplierRepository) -> None:
        self._supplier_repository = supplier_repository

    def execute(self, status: str | None = None) -> list[SupplierResponse]:
        parsed = None
        if status:
            try:
                parsed = SupplierStatus(status.lower())
            except ValueError as exc:
                raise InvalidProcurementRequestError(f"invalid supplier status: {status}") from exc
        return [to_supplier_response(s) for s in self._supplier_repository.list(status=parsed)]


class GetSupplier:
    def __init__(self, supplier_repository: SupplierRepository) -> None:
        self._supplier_repository = supplier_repository

    def execute(self, supplier_id: SupplierId) -> SupplierResponse:
        return to_supplier_response(_load_supplier(self._supplier_repository, supplier_id))


class CreateSupplier:
    def __init__(self, supplier_repository: SupplierRepository) -> None:
        self._supplier_repository = supplier_repository

    def execute(self, request_dto: SupplierRequest) -> SupplierResponse:
        supplier = Supplier(
            supplier_id=SupplierId(new_id("sup")),
            name=request_dto.name.strip(),
            contact_person=request_dto.contact_person,
            phone=request_dto.phone,
            email=request_dto.email,
            address=request_dto.address,
            payment_terms=request_dto.payment_terms,
        )
        self._supplier_repository.add(supplier)
        return to_supplier_response(supplier)


class UpdateSupplier:
    def __init__(self, supplier_repository: SupplierRepository) -> None:
        self._supplier_repository = supplier_repository

    def execute(
        self, supplier_id: SupplierId, request_dto: UpdateSupplierRequest
    ) -> SupplierResponse:
        supplier = _load_supplier(self._supplier_repository, supplier_id)
        changes = request_dto.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in changes:
            try:
                changes["status"] = SupplierStatus(changes["status"].lower())
            except ValueError as exc:
                raise InvalidProcurementRequestError(
                    f"invalid supplier status: {request_dto.status}"
                ) from exc
        updated = replace(supplier, **changes)
        self._supplier_repository.update(updated)
        return to_supplier_response(updated)


class DeleteSupplier:
    """Soft delete so purchase history keeps its supplier."""

    def __init__(self, supplier_repository: SupplierRepository) -> None:
        self._supplier_repository = supplier_repository

    def execute(self, supplier_id: SupplierId) -> SupplierResponse:
        supplier = _load_supplier(self._supplier_repository, supplier_id)
        updated = replace(supplier, status=SupplierStatus.INACTIVE)
        self._supplier_repository.update(updated)
        return to_supplier_response(updated)


class ListPurchaseOrders:
    def __init__(self, purchase_order_repository: PurchaseOrderRepository) -> None:
        self._purchase_order_repository = purchase_order_repository

    def execute(
        self,
        status: str | None = None,
        supplier_id: str | None = None,
    ) -> list[PurchaseOrderResponse]:
        purchase_orders = self._purchase_order_repository.list(
            status=_parse_status(status) if status else None,
            supplier_id=SupplierId(supplier_id) if supplier_id else None,
        )
        return [to_purchase_order_response(po) for po in purchase_orders]


class GetPurchaseOrder:
    def __init__(self, purchase_order_repository: PurchaseOrderRepository) -> None:
        self._purchase_order_repository = purchase_order_repository

    def execute(self, purchase_order_id: PurchaseOrderId) -> PurchaseOrderResponse:
        return to_purchase_order_response(
            _load_purchase_order(self._purchase_order_repository, purchase_order_id)
        )


class CreatePurchaseOrder:
    def __init__(
        self,
        supplier_repository: SupplierRepository,
        inventory_repository: InventoryRepository,
        purchase_order_repository: PurchaseOrderRepository,
    ) -> None:
        self._supplier_repository = supplier_repository
        self._inventory_repository = inventory_repository
        self._purchase_order_repository = purchase_order_repository

    def execute(
        self, request_dto: CreatePurchaseOrderRequest, actor: Actor
    ) -> PurchaseOrderResponse:
        supplier = _load_supplier(self._supplier_repository, SupplierId(request_dto.supplier_id))
        if supplier.status != SupplierStatus.ACTIVE:
            raise SupplierInactiveError(f"supplier {supplier.name} is inactive")

        items = _build_items(self._inventory_repository, request_dto.items)
        now = datetime.now(timezone.utc)
        purchase_order = PurchaseOrder(
            purchase_order_id=PurchaseOrderId(new_id("po")),
            order_number=new_purchase_order_number(now),
            supplier_id=supplier.supplier_id,
            status=PurchaseOrderStatus.PENDING,
            items=items,
            total_amount=total_of([item.line_total for item in items]),
            created_at=now,
            created_by=actor.user_id,
            expected_delivery=request_dto.expected_delivery,
            notes=request_dto.notes,
        )
        self._purchase_order_repository.add(purchase_order)
        return to_purchase_order_response(purchase_order)


class UpdatePurchaseOrderStatus:
    def __init__(self, purchase_order_repository: PurchaseOrderRepository) -> None:
        self._purchase_order_repository = purchase_order_repository

    def execute(
        self,
        purchase_order_id: PurchaseOrderId,
        status: str,
        actor: Actor,
    ) -> PurchaseOrderResponse:
        target = _parse_status(status)
        purchase_order = _load_purchase_order(self._purchase_order_repository, purchase_order_id)
        try:
            moved = purchase_order.transition_to(target)
        except PurchaseOrderStateError as exc:
            raise PurchaseOrderConflictError(str(exc)) from exc

        if target != PurchaseOrderStatus.RECEIVED:
            self._purchase_order_repository.save(moved)
            return to_purchase_order_response(moved)

        now = datetime.now(timezone.utc)
        receipts = {
            item.item_id: item.outstanding
            for item in purchase_order.items
            if item.outstanding > 0
        }
        received = replace(
            moved,
            items=[replace(item, received_quantity=item.quantity) for item in moved.items],
            received_date=now.date(),
        )
        persisted = self._purchase_order_repository.receive(
            received,
            receipts,
            user_id=actor.user_id,
            now=now,
        )
        return to_purchase_order_response(persisted)


class ReceivePartial:
    def __init__(self, purchase_order_repository: PurchaseOrderRepository) -> None:
        self._purchase_order_repository = purchase_order_repository

    def execute(
        self,
        purchase_order_id: PurchaseOrderId,
        request_dto: ReceivePartialRequest,
        actor: Actor,
    ) -> PurchaseOrderResponse:
        purchase_order = _load_purchase_order(self._purchase_order_repository, purchase_order_id)
        _ensure_editable(purchase_order)

        receipts: dict[PurchaseOrderItemId, Decimal] = {}
        for line in request_dto.items:
            item_id = PurchaseOrderItemId(line.item_id)
            item = purchase_order.find_item(item_id)
            if item is None:
                raise PurchaseOrderNotFoundError(
                    f"item {line.item_id} is not part of "
                    f"purchase order {purchase_order.order_number}"
                )
            receipts[item_id] = receipts.get(item_id, Decimal(0)) + line.received_quantity
            if receipts[item_id] > item.outstanding:
                raise InvalidProcurementRequestError(
                    f"cannot receive {receipts[item_id]} of item {line.item_id}; "
                    f"only {item.outstanding} outstanding"
                )

        items = [
            replace(
                item,
                received_quantity=item.received_quantity
                + receipts.get(item.item_id, Decimal(0)),
            )
            for item in purchase_order.items
        ]
        now = datetime.now(timezone.utc)
        complete = all(item.fully_received for item in items)
        updated = replace(
            purchase_order,
            items=items,
            status=PurchaseOrderStatus.RECEIVED if complete else PurchaseOrderStatus.ORDERED,
            received_date=now.date() if complete else purchase_order.received_date,
        )
        persisted = self._purchase_order_repository.receive(
            updated,
            receipts,
            user_id=actor.user_id,
            now=now,
        )
        return to_purchase_order_response(persisted)


class AddPurchaseOrderItem:
    def __init__(
        self,
        inventory_repository: InventoryRepository,
        purchase_order_repository: PurchaseOrderRepository,
    ) -> None:
        self._inventory_repository = inventory_repository
        self._purchase_order_repository = purchase_order_repository

    def execute(
        self,
        purchase_order_id: PurchaseOrderId,
        request_dto: PurchaseOrderItemRequest,
    ) -> PurchaseOrderResponse:
        purchase_order = _load_purchase_order(self._purchase_order_repository, purchase_order_id)
        _ensure_editable(purchase_order)
        new_items = _build_items(self._inventory_repository, [request_dto])
        updated = purchase_order.with_items([*purchase_order.items, *new_items])
        self._purchase_order_repository.save(updated)
        return to_purchase_order_response(updated)


class RemovePurchaseOrderItem:
    def __init__(self, purchase_order_repository: PurchaseOrderRepository) -> None:
        self._purchase_order_repository = purchase_order_repository

    def execute(
        self,
        purchase_order_id: PurchaseOrderId,
        item_id: PurchaseOrderItemId,
    ) -> PurchaseOrderResponse:
        purchase_order = _load_purchase_order(self._purchase_order_repository, purchase_order_id)
        _ensure_editable(purchase_order)
        item = purchase_order.find_item(item_id)
        if item is None:
            raise PurchaseOrderNotFoundError(
                f"item {item_id} is not part of purchase order {purchase_order.order_number}"
            )
        if item.received_quantity > 0:
            raise PurchaseOrderConflictError(f"item {item_id} has already been partly received")
        remaining = [i for i in purchase_order.items if i.item_id != item_id]
        if not remaining:
            raise PurchaseOrderConflictError(
                "cannot remove the last item; cancel the purchase order"
            )
        updated = purchase_order.with_items(remaining)
        self._purchase_order_repository.save(updated)
        return to_purchase_order_response(updated)


class PendingDeliveries:
    def __init__(self, purchase_order_repository: PurchaseOrderRepository) -> None:
        self._purchase_order_repository = purchase_order_repository

    def execute(self) -> list[PurchaseOrderResponse]:
        return [
            to_purchase_order_response(po)
            for po in self._purchase_order_repository.list_pending_deliveries()
        ]


def _parse_status(value: str) -> PurchaseOrderStatus:
    try:
        return PurchaseOrderStatus(value.lower())
    except ValueError as exc:
        raise InvalidProcurementRequestError(f"invalid purchase order status: {value}") from exc
