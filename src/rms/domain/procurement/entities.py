from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from random import randint

from rms.domain.common.ids import (
    IngredientId,
    PurchaseOrderId,
    PurchaseOrderItemId,
    SupplierId,
    UserId,
)
from rms.domain.common.money import Money, total_of


class SupplierStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class PurchaseOrderStatus(str, Enum):
    PENDING = "pending"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


PURCHASE_ORDER_TRANSITIONS: dict[PurchaseOrderStatus, frozenset[PurchaseOrderStatus]] = {
    PurchaseOrderStatus.PENDING: frozenset(
        {PurchaseOrderStatus.ORDERED, PurchaseOrderStatus.CANCELLED}
    ),
    PurchaseOrderStatus.ORDERED: frozenset(
        {PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED}
    ),
    PurchaseOrderStatus.RECEIVED: frozenset(),
    PurchaseOrderStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class Supplier:
    supplier_id: SupplierId
    name: str
    status: SupplierStatus = SupplierStatus.ACTIVE
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    payment_terms: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("supplier name must not be empty")


@dataclass(frozen=True)
class PurchaseOrderItem:
    item_id: PurchaseOrderItemId
    ingredient_id: IngredientId
    quantity: Decimal
    unit_price: Money
    received_quantity: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0")
        if self.received_quantity < 0:
            raise ValueError("received_quantity must be >= 0")

    @property
    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity)

    @property
    def outstanding(self) -> Decimal:
        return max(self.quantity - self.received_quantity, Decimal(0))

    @property
    def fully_received(self) -> bool:
        return self.received_quantity >= self.quantity


@dataclass(frozen=True)
class PurchaseOrder:
    purchase_order_id: PurchaseOrderId
    order_number: str
    supplier_id: SupplierId
    status: PurchaseOrderStatus
    items: list[PurchaseOrderItem]
    total_amount: Money
    created_at: datetime
    created_by: UserId | None = None
    expected_delivery: date | None = None
    received_date: date | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.total_amount != total_of([item.line_total for item in self.items]):
            raise ValueError("purchase order total must equal sum of line totals")

    @property
    def is_editable(self) -> bool:
        return self.status in (PurchaseOrderStatus.PENDING, PurchaseOrderStatus.ORDERED)

    def ensure_editable(self) -> None:
        if not self.is_editable:
            raise PurchaseOrderStateError(
                f"purchase order {self.order_number} "
                f"cannot be changed in status={self.status.value}"
            )

    def with_items(self, items: list[PurchaseOrderItem]) -> PurchaseOrder:
        return replace(self, items=items, total_amount=total_of([i.line_total for i in items]))

    def transition_to(self, target: PurchaseOrderStatus) -> PurchaseOrder:
        if target not in PURCHASE_ORDER_TRANSITIONS[self.status]:
            raise PurchaseOrderStateError(
                f"cannot move purchase order {self.order_number} "
                f"from {self.status.value} to {target.value}"
            )
        return replace(self, status=target)

    def find_item(self, item_id: PurchaseOrderItemId) -> PurchaseOrderItem | None:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None


def new_purchase_order_number(now: datetime) -> str:
    return f"PO-{now:%Y%m}-{randint(1000, 9999)}"


class PurchaseOrderStateError(Exception):
    pass
