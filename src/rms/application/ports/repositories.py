from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol

from rms.domain.common.ids import (
    CategoryId,
    IngredientId,
    MenuItemId,
    OrderId,
    OrderItemId,
    PurchaseOrderId,
    PurchaseOrderItemId,
    StationId,
    SupplierId,
    TableId,
    UserId,
)
from rms.domain.identity.entities import AuditAction, AuditEntry, Role, User, UserStatus
from rms.domain.inventory.entities import Ingredient, StockTransaction, TransactionType
from rms.domain.menu.entities import Category, MenuItem
from rms.domain.menu.recipes import RecipeLine
from rms.domain.order.entities import Order, OrderItemStatus, OrderStatus, PaymentStatus
from rms.domain.order.lifecycle import TransitionPlan
from rms.domain.pager.entities import Pager, PagerStatus
from rms.domain.procurement.entities import (
    PurchaseOrder,
    PurchaseOrderStatus,
    Supplier,
    SupplierStatus,
)
from rms.domain.station.entities import Station, StationStatus
from rms.domain.table.entities import Table, TableStatus


class UserRepository(Protocol):
    def add(self, user: User) -> None: ...

    def get(self, user_id: UserId) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def update(self, user: User) -> None: ...

    def list(self, role: Role | None = None, status: UserStatus | None = None) -> list[User]: ...


class AuditLogRepository(Protocol):
    def add(self, entry: AuditEntry) -> None: ...

    def list(
        self,
        user_id: UserId | None,
        action: AuditAction | None,
        limit: int,
        offset: int,
    ) -> list[AuditEntry]: ...


class MenuRepository(Protocol):
    def add_category(self, category: Category) -> None: ...

    def get_category(self, category_id: CategoryId) -> Category | None: ...

    def update_category(self, category: Category) -> None: ...

    def delete_category(self, category_id: CategoryId) -> None: ...

    def list_categories(self) -> list[Category]: ...

    def count_items_in_category(self, category_id: CategoryId) -> int: ...

    def add_item(self, item: MenuItem) -> None: ...

    def get_item(self, item_id: MenuItemId) -> MenuItem | None: ...

    def get_items(self, item_ids: list[MenuItemId]) -> dict[MenuItemId, MenuItem]: ...

    def update_item(self, item: MenuItem) -> None: ...

    def list_items(
        self,
        category_id: CategoryId | None = None,
        available: bool | None = None,
        popular: bool | None = None,
    ) -> list[MenuItem]: ...

    def search_items(self, query: str, limit: int = 50) -> list[MenuItem]: ...


class TableRepository(Protocol):
    def add(self, table: Table) -> None: ...

    def get(self, table_id: TableId) -> Table | None: ...

    def get_by_number(self, table_number: str) -> Table | None: ...

    def update(self, table: Table) -> None: ...

    def delete(self, table_id: TableId) -> None: ...

    def list(
        self,
        status: TableStatus | None = None,
        section: str | None = None,
    ) -> list[Table]: ...

    def list_available(self, min_capacity: int | None = None) -> list[Table]: ...


class PagerRepository(Protocol):
    def add(self, pager: Pager) -> None: ...

    def get_by_number(self, pager_number: int) -> Pager | None: ...

    def delete(self, pager_number: int) -> None: ...

    def list(self, status: PagerStatus | None = None) -> list[Pager]: ...

    def first_available(self) -> Pager | None: ...

    def assign_to_order(self, pager_number: int, order_id: OrderId, now: datetime) -> bool: ...

    def activate(self, pager_number: int) -> bool: ...

    def release(self, pager_number: int) -> bool: ...


@dataclass(frozen=True)
class OrderFilter:
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    table_id: TableId | None = None
    waiter_id: UserId | None = None
    placed_on: date | None = None
    exclude_statuses: frozenset[OrderStatus] = frozenset()


class OrderRepository(Protocol):
    def add(self, order: Order, occupied_table: Table | None) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def get_by_number(self, order_number: str) -> Order | None: ...

    def get_by_item(self, item_id: OrderItemId) -> Order | None: ...

    def list(self, order_filter: OrderFilter, limit: int = 100, offset: int = 0) -> list[Order]: ...

    def list_by_statuses(
        self,
        statuses: frozenset[OrderStatus],
        placed_before: datetime | None = None,
    ) -> list[Order]: ...

    def search(self, query: str, limit: int = 50) -> list[Order]: ...

    def count_by_status_since(self, since: datetime) -> dict[OrderStatus, int]: ...

    def apply_transition(self, plan: TransitionPlan) -> Order: ...

    def replace_items(self, order: Order, expected_version: int) -> Order: ...

    def save_billing(self, order: Order, expected_version: int) -> Order: ...

    def update_item_status(
        self,
        item_id: OrderItemId,
        status: OrderItemStatus,
        completed_at: datetime | None,
    ) -> None: ...


@dataclass(frozen=True)
class StockChange:
    ingredient_id: IngredientId
    delta: Decimal
    transaction_type: TransactionType
    user_id: UserId | None = None
    notes: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None


class InventoryRepository(Protocol):
    def add(self, ingredient: Ingredient, initial: StockTransaction | None) -> None: ...

    def get(self, ingredient_id: IngredientId) -> Ingredient | None: ...

    def get_by_name(self, name: str) -> Ingredient | None: ...

    def update(self, ingredient: Ingredient, adjustment: StockTransaction | None) -> None: ...

    def delete(self, ingredient_id: IngredientId) -> None: ...

    def list(
        self,
        category: str | None = None,
        search: str | None = None,
        low_stock_only: bool = False,
    ) -> list[Ingredient]: ...

    def get_many(self, ingredient_ids: list[IngredientId]) -> dict[IngredientId, Ingredient]: ...

    def apply_stock_change(
        self,
        change: StockChange,
        now: datetime,
    ) -> tuple[Ingredient, StockTransaction]: ...

    def list_transactions(
        self,
        ingredient_id: IngredientId | None,
        transaction_type: TransactionType | None,
        limit: int,
    ) -> list[StockTransaction]: ...

    def is_referenced(self, ingredient_id: IngredientId) -> bool: ...


class RecipeRepository(Protocol):
    def list_for_item(self, menu_item_id: MenuItemId) -> list[RecipeLine]: ...

    def list_all(self) -> list[RecipeLine]: ...

    def get_line(
        self,
        menu_item_id: MenuItemId,
        ingredient_id: IngredientId,
    ) -> RecipeLine | None: ...

    def save_line(self, line: RecipeLine) -> None: ...

    def delete_line(self, menu_item_id: MenuItemId, ingredient_id: IngredientId) -> bool: ...


class StationRepository(Protocol):
    def add(self, station: Station) -> None: ...

    def get(self, station_id: StationId) -> Station | None: ...

    def update(self, station: Station) -> None: ...

    def delete(self, station_id: StationId) -> None: ...

    def list(self, status: StationStatus | None = None) -> list[Station]: ...

    def category_ids(self, station_id: StationId) -> list[CategoryId]: ...

    def assign_categories(self, station_id: StationId, category_ids: list[CategoryId]) -> None: ...

    def count_for_chef(self, chef_id: UserId) -> int: ...


class SupplierRepository(Protocol):
    def add(self, supplier: Supplier) -> None: ...

    def get(self, supplier_id: SupplierId) -> Supplier | None: ...

    def update(self, supplier: Supplier) -> None: ...

    def list(self, status: SupplierStatus | None = None) -> list[Supplier]: ...


class PurchaseOrderRepository(Protocol):
    def add(self, purchase_order: PurchaseOrder) -> None: ...

    def get(self, purchase_order_id: PurchaseOrderId) -> PurchaseOrder | None: ...

    def list(
        self,
        status: PurchaseOrderStatus | None = None,
        supplier_id: SupplierId | None = None,
    ) -> list[PurchaseOrder]: ...

    def list_pending_deliveries(self) -> list[PurchaseOrder]: ...

    def save(self, purchase_order: PurchaseOrder) -> None: ...

    def receive(
        self,
        purchase_order: PurchaseOrder,
        receipts: dict[PurchaseOrderItemId, Decimal],
        user_id: UserId | None,
        now: datetime,
    ) -> PurchaseOrder: ...


class DuplicateKeyError(Exception):
    pass


class OptimisticConcurrencyError(Exception):
    pass


class PagerUnavailableError(Exception):
    pass


class TableUnavailableError(Exception):
    pass
