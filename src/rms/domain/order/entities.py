from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from uuid import uuid4

from rms.domain.common.ids import MenuItemId, OrderId, OrderItemId, TableId, UserId
from rms.domain.common.money import Money, total_of


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
KITCHEN_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY})


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    SPLIT = "split"


class OrderItemStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"


OPEN_ITEM_STATUSES = frozenset({OrderItemStatus.PENDING, OrderItemStatus.PREPARING})


@dataclass(frozen=True)
class OrderItem:
    item_id: OrderItemId
    menu_item_id: MenuItemId
    name: str
    quantity: int
    price: Money
    status: OrderItemStatus = OrderItemStatus.PENDING
    special_instructions: str | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def subtotal(self) -> Money:
        return self.price.times(self.quantity)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_ITEM_STATUSES


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    order_number: str
    table_id: TableId | None
    customer_name: str
    status: OrderStatus
    payment_status: PaymentStatus
    items: list[OrderItem]
    total_amount: Money
    order_time: datetime
    waiter_id: UserId | None = None
    tax: Money = field(default_factory=Money.zero)
    tip: Money = field(default_factory=Money.zero)
    discount: Money = field(default_factory=Money.zero)
    payment_method: PaymentMethod | None = None
    split_count: int = 1
    cashier_id: UserId | None = None
    estimated_ready_time: datetime | None = None
    actual_ready_time: datetime | None = None
    completed_time: datetime | None = None
    pager_number: int | None = None
    notes: str | None = None
    cancel_reason: str | None = None
    version: int = 1

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("order must contain at least one item")
        if self.total_amount != total_of([item.subtotal for item in self.items]):
            raise ValueError("order total must equal sum of item subtotals")
        if self.split_count < 1:
            raise ValueError("split_count must be >= 1")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def amount_due(self) -> Money:
        gross = self.total_amount + self.tax + self.tip
        if self.discount.amount_cents > gross.amount_cents:
            raise ValueError("discount exceeds order amount")
        return gross - self.discount

    def with_items(self, items: list[OrderItem]) -> Order:
        return replace(self, items=items, total_amount=total_of([item.subtotal for item in items]))

    def ensure_editable(self) -> None:
        if self.is_terminal:
            raise OrderNotEditableError(
                f"order {self.order_number} cannot be modified in status={self.status.value}"
            )

    def find_item(self, item_id: OrderItemId) -> OrderItem | None:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None


def new_order_number(now: datetime) -> str:
    return f"ORD-{now:%y%m%d}-{uuid4().hex[:6].upper()}"


def create_pending_order(
    order_id: OrderId,
    order_number: str,
    table_id: TableId | None,
    customer_name: str,
    items: list[OrderItem],
    waiter_id: UserId | None,
    now: datetime,
    pager_number: int | None = None,
    notes: str | None = None,
) -> Order:
    if not items:
        raise ValueError("order must contain at least one item")
    return Order(
        order_id=order_id,
        order_number=order_number,
        table_id=table_id,
        customer_name=customer_name,
        status=OrderStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        items=items,
        total_amount=total_of([item.subtotal for item in items]),
        order_time=now,
        waiter_id=waiter_id,
        pager_number=pager_number,
        notes=notes,
    )


class OrderNotEditableError(Exception):
    pass
