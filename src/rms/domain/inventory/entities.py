from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from rms.domain.common.ids import IngredientId, StockTransactionId, SupplierId, UserId
from rms.domain.common.money import Money


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    WASTAGE = "wastage"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True)
class Ingredient:
    ingredient_id: IngredientId
    name: str
    unit: str
    current_stock: Decimal
    minimum_stock: Decimal
    cost_per_unit: Money
    supplier_id: SupplierId | None = None
    category: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("ingredient name must not be empty")
        if self.current_stock < 0:
            raise ValueError("current_stock must be >= 0")
        if self.minimum_stock < 0:
            raise ValueError("minimum_stock must be >= 0")

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.minimum_stock

    @property
    def stock_value(self) -> Money:
        return self.cost_per_unit.times(self.current_stock)

    def stock_ratio(self) -> Decimal:
        if self.minimum_stock == 0:
            return Decimal("Infinity") if self.current_stock > 0 else Decimal(0)
        return self.current_stock / self.minimum_stock

    def adjusted(self, delta: Decimal) -> Ingredient:
        new_stock = self.current_stock + delta
        if new_stock < 0:
            raise InsufficientStockError(
                f"insufficient stock for {self.name}: have {self.current_stock}, need {-delta}"
            )
        return replace(self, current_stock=new_stock)


@dataclass(frozen=True)
class StockTransaction:
    transaction_id: StockTransactionId
    ingredient_id: IngredientId
    transaction_type: TransactionType
    quantity: Decimal
    previous_stock: Decimal
    new_stock: Decimal
    created_at: datetime
    user_id: UserId | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    notes: str | None = None


class InsufficientStockError(Exception):
    pass
