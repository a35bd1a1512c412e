from __future__ import annotations

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from rms.application.dto.requests import (
    CreateIngredientRequest,
    StockAdjustmentRequest,
    StockCheckItemRequest,
    StockCheckRequest,
    UpdateIngredientRequest,
    UsageRequest,
    WastageRequest,
)
from rms.application.ports.repositories import DuplicateKeyError, StockChange
from rms.application.use_cases.context import Actor
from rms.application.use_cases.inventory import (
    AdjustStock,
    CreateIngredient,
    DeleteIngredient,
    DuplicateIngredientError,
    IngredientInUseError,
    IngredientNotFoundError,
    InvalidInventoryRequestError,
    LowStock,
    RecordUsage,
    RecordWastage,
    StockCheck,
    StockLevelError,
    StockSummary,
    UpdateIngredient,
)
from rms.domain.common.ids import IngredientId, StockTransactionId, UserId
from rms.domain.common.money import Money
from rms.domain.identity.entities import Role
from rms.domain.inventory.entities import Ingredient, StockTransaction, TransactionType

MANAGER = Actor(user_id=UserId("usr_manager"), role=Role.MANAGER)


class FakeInventoryRepository:
    def __init__(self, ingredients: list[Ingredient] | None = None) -> None:
        self.ingredients = {i.ingredient_id: i for i in ingredients or []}
        self.transactions: list[StockTransaction] = []
        self.referenced: set[IngredientId] = set()

    def add(self, ingredient: Ingredient, initial: StockTransaction | None) -> None:
        if any(i.name.lower() == ingredient.name.lower() for i in self.ingredients.values()):
            raise DuplicateKeyError(ingredient.name)
        self.ingredients[ingredient.ingredient_id] = ingredient
        if initial is not None:
            self.transactions.append(initial)

    def get(self, ingredient_id: IngredientId) -> Ingredient | None:
        return self.ingredients.get(ingredient_id)

    def update(self, ingredient: Ingredient, adjustment: StockTransaction | None) -> None:
        self.ingredients[ingredient.ingredient_id] = ingredient
        if adjustment is not None:
            self.transactions.append(adjustment)

    def delete(self, ingredient_id: IngredientId) -> None:
        del self.ingredients[ingredient_id]

    def list(self, category=None, search=None, low_stock_only: bool = False) -> list[Ingredient]:
        found = list(self.ingredients.values())
        if low_stock_only:
            found = [i for i in found if i.is_low_stock]
        return found

    def get_many(self, ingredient_ids: list[IngredientId]) -> dict[IngredientId, Ingredient]:
        return {i: self.ingredients[i] for i in ingredient_ids if i in self.ingredients}

    def apply_stock_change(
        self,
        change: StockChange,
        now: datetime,
    ) -> tuple[Ingredient, StockTransaction]:
        current = self.ingredients[change.ingredient_id]
        updated = current.adjusted(change.delta)
        transaction = StockTransaction(
            transaction_id=StockTransactionId(f"stx_{len(self.transactions)}"),
            ingredient_id=change.ingredient_id,
            transaction_type=change.transaction_type,
            quantity=change.delta,
            previous_stock=current.current_stock,
            new_stock=updated.current_stock,
            created_at=now,
            user_id=change.user_id,
            reference_type=change.reference_type,
            reference_id=change.reference_id,
            notes=change.notes,
        )
        self.ingredients[change.ingredient_id] = updated
        self.transactions.append(transaction)
        return updated, transaction

    def is_referenced(self, ingredient_id: IngredientId) -> bool:
        return ingredient_id in self.referenced


def _ingredient(
    name: str = "Tomatoes",
    stock: str = "40",
    minimum: str = "10",
    cost: str = "2.50",
    category: str | None = "Vegetables",
) -> Ingredient:
    return Ingredient(
        ingredient_id=IngredientId(f"ing_{name.lower()}"),
        name=name,
        unit="kg",
        current_stock=Decimal(stock),
        minimum_stock=Decimal(minimum),
        cost_per_unit=Money.from_decimal(cost),
        category=category,
    )


def test_create_records_initial_stock_as_adjustment() -> None:
    repository = FakeInventoryRepository()
    response = CreateIngredient(repository).execute(
        CreateIngredientRequest(name=" Basil ", unit="kg", current_stock=Decimal("3")),
        MANAGER,
    )

    assert response.name == "Basil"
    assert repository.transactions[0].transaction_type == TransactionType.ADJUSTMENT
    assert repository.transactions[0].quantity == Decimal("3")
    with pytest.raises(DuplicateIngredientError):
        CreateIngredient(repository).execute(
            CreateIngredientRequest(name="basil", unit="kg"), MANAGER
        )


def test_editing_stock_level_leaves_an_adjustment_trail() -> None:
    repository = FakeInventoryRepository([_ingredient()])
    UpdateIngredient(repository).execute(
        IngredientId("ing_tomatoes"),
        UpdateIngredientRequest(current_stock=Decimal("35"), notes="recount"),
        MANAGER,
    )

    transaction = repository.transactions[-1]
    assert (transaction.previous_stock, transaction.new_stock) == (Decimal("40"), Decimal("35"))
    assert transaction.quantity == Decimal("-5")


def test_adjust_rejects_zero_and_negative_result() -> None:
    repository = FakeInventoryRepository([_ingredient(stock="4")])
    use_case = AdjustStock(repository)

    with pytest.raises(InvalidInventoryRequestError):
        use_case.execute(IngredientId("ing_tomatoes"), StockAdjustmentRequest(quantity=0), MANAGER)
    with pytest.raises(StockLevelError):
        use_case.execute(
            IngredientId("ing_tomatoes"), StockAdjustmentRequest(quantity=Decimal("-5")), MANAGER
        )
    moved = use_case.execute(
        IngredientId("ing_tomatoes"), StockAdjustmentRequest(quantity=Decimal("6")), MANAGER
    )
    assert moved.ingredient.currentStock == Decimal("10")


def test_wastage_cannot_exceed_stock_and_usage_keeps_order_reference() -> None:
    repository = FakeInventoryRepository([_ingredient(stock="2")])
    with pytest.raises(StockLevelError):
        RecordWastage(repository).execute(
            IngredientId("ing_tomatoes"), WastageRequest(quantity=Decimal("3")), MANAGER
        )

    moved = RecordUsage(repository).execute(
        IngredientId("ing_tomatoes"),
        UsageRequest(quantity=Decimal("1.5"), order_id="ord_001"),
        MANAGER,
    )
    assert moved.transaction.transactionType == "usage"
    assert moved.transaction.referenceType == "order"
    assert moved.transaction.referenceId == "ord_001"
    assert moved.ingredient.currentStock == Decimal("0.5")


def test_missing_ingredient_is_not_found() -> None:
    with pytest.raises(IngredientNotFoundError):
        RecordWastage(FakeInventoryRepository()).execute(
            IngredientId("ing_nope"), WastageRequest(quantity=Decimal("1")), MANAGER
        )


def test_low_stock_lists_most_depleted_first() -> None:
    repository = FakeInventoryRepository(
        [
            _ingredient("Milk", stock="5", minimum="6"),
            _ingredient("Salt", stock="1", minimum="5"),
            _ingredient("Rice", stock="80", minimum="20"),
        ]
    )
    assert [i.name for i in LowStock(repository).execute()] == ["Salt", "Milk"]


def test_stock_check_aggregates_duplicate_lines() -> None:
    repository = FakeInventoryRepository([_ingredient(stock="5")])
    result = StockCheck(repository).execute(
        StockCheckRequest(
            items=[
                StockCheckItemRequest(ingredient_id="ing_tomatoes", quantity=Decimal("3")),
                StockCheckItemRequest(ingredient_id="ing_tomatoes", quantity=Decimal("3")),
                StockCheckItemRequest(ingredient_id="ing_ghost", quantity=Decimal("1")),
            ]
        )
    )

    assert not result.sufficient
    shortages = {s.ingredientId: s for s in result.shortages}
    assert shortages["ing_tomatoes"].required == Decimal("6")
    assert shortages["ing_ghost"].name is None


def test_stock_summary_groups_by_category_by_value() -> None:
    repository = FakeInventoryRepository(
        [
            _ingredient("Tomatoes", stock="40", cost="2.50"),
            _ingredient("Onions", stock="0", cost="1.00"),
            _ingredient("Beef", stock="10", cost="30.00", category="Meat"),
        ]
    )
    summary = StockSummary(repository).execute(top=2)

    assert summary.totalIngredients == 3
    assert summary.totalValue == Decimal("400.00")
    assert summary.outOfStockCount == 1
    assert [c.category for c in summary.categories] == ["Meat", "Vegetables"]
    assert [i.name for i in summary.mostValuable] == ["Beef", "Tomatoes"]


def test_delete_refuses_ingredients_on_purchase_orders() -> None:
    repository = FakeInventoryRepository([_ingredient()])
    repository.referenced.add(IngredientId("ing_tomatoes"))
    with pytest.raises(IngredientInUseError):
        DeleteIngredient(repository).execute(IngredientId("ing_tomatoes"))
