from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from rms.application.dto.requests import (
    CreateIngredientRequest,
    StockAdjustmentRequest,
    StockCheckRequest,
    UpdateIngredientRequest,
    UsageRequest,
    WastageRequest,
)
from rms.application.dto.responses import (
    CategoryStockResponse,
    IngredientResponse,
    StockCheckResponse,
    StockMovementResponse,
    StockShortageResponse,
    StockSummaryResponse,
    StockTransactionResponse,
)
from rms.application.mappers.inventory_mapper import (
    to_ingredient_response,
    to_stock_transaction_response,
)
from rms.application.ports.repositories import (
    DuplicateKeyError,
    InventoryRepository,
    StockChange,
)
from rms.application.use_cases.context import Actor
from rms.domain.common.ids import IngredientId, StockTransactionId, SupplierId, new_id
from rms.domain.common.money import Money, total_of
from rms.domain.inventory.entities import (
    Ingredient,
    InsufficientStockError,
    StockTransaction,
    TransactionType,
)


class IngredientNotFoundError(Exception):
    pass


class DuplicateIngredientError(Exception):
    pass


class IngredientInUseError(Exception):
    pass


class StockLevelError(Exception):
    pass


class InvalidInventoryRequestError(Exception):
    pass


def load_ingredient(
    inventory_repository: InventoryRepository,
    ingredient_id: IngredientId,
) -> Ingredient:
    ingredient = inventory_repository.get(ingredient_id)
    if ingredient is None:
        raise IngredientNotFoundError(f"ingredient {ingredient_id} not found")
    return ingredient


def _adjustment_record(
    ingredient_id: IngredientId,
    previous: Decimal,
    new: Decimal,
    actor: Actor,
    notes: str,
) -> StockTransaction:
    return StockTransaction(
        transaction_id=StockTransactionId(new_id("stx")),
        ingredient_id=ingredient_id,
        transaction_type=TransactionType.ADJUSTMENT,
        quantity=new - previous,
        previous_stock=previous,
        new_stock=new,
        created_at=datetime.now(timezone.utc),
        user_id=actor.user_id,
        notes=notes,
    )


class ListIngredients:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(
        self,
        category: str | None = None,
        search: str | None = None,
        low_stock: bool = False,
    ) -> list[IngredientResponse]:
        ingredients = self._inventory_repository.list(
            category=category,
            search=search.strip() if search else None,
            low_stock_only=low_stock,
        )
        return [to_ingredient_response(i) for i in ingredients]


class GetIngredient:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(self, ingredient_id: IngredientId) -> IngredientResponse:
        return to_ingredient_response(load_ingredient(self._inventory_repository, ingredient_id))


class CreateIngredient:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(self, request_dto: CreateIngredientRequest, actor: Actor) -> IngredientResponse:
        ingredient = Ingredient(
            ingredient_id=IngredientId(new_id("ing")),
            name=request_dto.name.strip(),
            unit=request_dto.unit.strip(),
            current_stock=request_dto.current_stock,
            minimum_stock=request_dto.minimum_stock,
            cost_per_unit=Money.from_decimal(request_dto.cost_per_unit),
            supplier_id=SupplierId(request_dto.supplier_id) if request_dto.supplier_id else None,
            category=request_dto.category,
            notes=request_dto.notes,
        )
        initial = None
        if ingredient.current_stock > 0:
            initial = _adjustment_record(
                ingredient.ingredient_id,
                Decimal(0),
                ingredient.current_stock,
                actor,
                "Initial stock",
            )
        try:
            self._inventory_repository.add(ingredient, initial)
        except DuplicateKeyError as exc:
            raise DuplicateIngredientError(f"ingredient {ingredient.name} already exists") from exc
        return to_ingredient_response(ingredient)


class UpdateIngredient:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(
        self,
        ingredient_id: IngredientId,
        request_dto: UpdateIngredientRequest,
        actor: Actor,
    ) -> IngredientResponse:
        ingredient = load_ingredient(self._inventory_repository, ingredient_id)
        changes = request_dto.model_dump(exclude_unset=True, exclude_none=True)
        if "cost_per_unit" in changes:
            changes["cost_per_unit"] = Money.from_decimal(changes["cost_per_unit"])
        if "supplier_id" in changes:
            changes["supplier_id"] = SupplierId(changes["supplier_id"])
        updated = replace(ingredient, **changes)

        adjustment = None
        if updated.current_stock != ingredient.current_stock:
            adjustment = _adjustment_record(
                ingredient_id,
                ingredient.current_stock,
                updated.current_stock,
                actor,
                "Stock updated via ingredient edit",
            )
        try:
            self._inventory_repository.update(updated, adjustment)
        except DuplicateKeyError as exc:
            raise DuplicateIngredientError(f"ingredient {updated.name} already exists") from exc
        return to_ingredient_response(updated)


class DeleteIngredient:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(self, ingredient_id: IngredientId) -> None:
        load_ingredient(self._inventory_repository, ingredient_id)
        if self._inventory_repository.is_referenced(ingredient_id):
            raise IngredientInUseError(
                f"ingredient {ingredient_id} is referenced by purchase orders or recipes"
            )
        self._inventory_repository.delete(ingredient_id)


class _StockMovement:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def _apply(self, change: StockChange) -> StockMovementResponse:
        load_ingredient(self._inventory_repository, change.ingredient_id)
        try:
            ingredient, transaction = self._inventory_repository.apply_stock_change(
                change,
                now=datetime.now(timezone.utc),
            )
        except InsufficientStockError as exc:
            raise StockLevelError(str(exc)) from exc
        return StockMovementResponse(
            ingredient=to_ingredient_response(ingredient),
            transaction=to_stock_transaction_response(transaction),
        )


class AdjustStock(_StockMovement):
    def execute(
        self,
        ingredient_id: IngredientId,
        request_dto: StockAdjustmentRequest,
        actor: Actor,
    ) -> StockMovementResponse:
        if request_dto.quantity == 0:
            raise InvalidInventoryRequestError("adjustment quantity must not be zero")
        return self._apply(
            StockChange(
                ingredient_id=ingredient_id,
                delta=request_dto.quantity,
                transaction_type=TransactionType.ADJUSTMENT,
                user_id=actor.user_id,
                notes=request_dto.notes,
            )
        )


class RecordWastage(_StockMovement):
    def execute(
        self,
        ingredient_id: IngredientId,
        request_dto: WastageRequest,
        actor: Actor,
    ) -> StockMovementResponse:
        return self._apply(
            StockChange(
                ingredient_id=ingredient_id,
                delta=-request_dto.quantity,
                transaction_type=TransactionType.WASTAGE,
                user_id=actor.user_id,
                notes=request_dto.notes,
            )
        )


class RecordUsage(_StockMovement):
    """Manual consumption; order completion does not deduct stock by itself."""

    def execute(
        self,
        ingredient_id: IngredientId,
        request_dto: UsageRequest,
        actor: Actor,
    ) -> StockMovementResponse:
        return self._apply(
            StockChange(
                ingredient_id=ingredient_id,
                delta=-request_dto.quantity,
                transaction_type=TransactionType.USAGE,
                user_id=actor.user_id,
                notes=request_dto.notes,
                reference_type="order" if request_dto.order_id else None,
                reference_id=request_dto.order_id,
            )
        )


class LowStock:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(self) -> list[IngredientResponse]:
        ingredients = self._inventory_repository.list(low_stock_only=True)
        ingredients.sort(key=lambda ingredient: (ingredient.stock_ratio(), ingredient.name))
        return [to_ingredient_response(i) for i in ingredients]


class StockSummary:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(self, top: int = 5) -> StockSummaryResponse:
        ingredients = self._inventory_repository.list()
        by_category: dict[str | None, list[Ingredient]] = defaultdict(list)
        for ingredient in ingredients:
            by_category[ingredient.category].append(ingredient)

        categories = [
            CategoryStockResponse(
                category=category,
                totalItems=len(members),
                totalValue=total_of([i.stock_value for i in members]).to_decimal(),
                lowStockCount=sum(1 for i in members if i.is_low_stock),
                outOfStockCount=sum(1 for i in members if i.current_stock == 0),
            )
            for category, members in by_category.items()
        ]
        categories.sort(key=lambda summary: summary.totalValue, reverse=True)
        most_valuable = sorted(
            ingredients, key=lambda i: i.stock_value.amount_cents, reverse=True
        )[:top]
        return StockSummaryResponse(
            totalIngredients=len(ingredients),
            totalValue=total_of([i.stock_value for i in ingredients]).to_decimal(),
            lowStockCount=sum(1 for i in ingredients if i.is_low_stock),
            outOfStockCount=sum(1 for i in ingredients if i.current_stock == 0),
            categories=categories,
            mostValuable=[to_ingredient_response(i) for i in most_valuable],
        )


class StockCheck:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(self, request_dto: StockCheckRequest) -> StockCheckResponse:
        required: dict[IngredientId, Decimal] = {}
        for line in request_dto.items:
            key = IngredientId(line.ingredient_id)
            required[key] = required.get(key, Decimal(0)) + line.quantity

        known = self._inventory_repository.get_many(list(required))
        shortages: list[StockShortageResponse] = []
        for ingredient_id, quantity in required.items():
            ingredient = known.get(ingredient_id)
            available = ingredient.current_stock if ingredient else Decimal(0)
            if available < quantity:
                shortages.append(
                    StockShortageResponse(
                        ingredientId=str(ingredient_id),
                        name=ingredient.name if ingredient else None,
                        required=quantity,
                        available=available,
                    )
                )
        return StockCheckResponse(sufficient=not shortages, shortages=shortages)


class ListStockTransactions:
    def __init__(self, inventory_repository: InventoryRepository) -> None:
        self._inventory_repository = inventory_repository

    def execute(
        self,
        ingredient_id: IngredientId | None = None,
        transaction_type: str | None = None,
        limit: int = 100,
    ) -> list[StockTransactionResponse]:
        if limit < 1 or limit > 500:
            raise InvalidInventoryRequestError("limit must be between 1 and 500")
        parsed = None
        if transaction_type:
            try:
                parsed = TransactionType(transaction_type.lower())
            except ValueError as exc:
                raise InvalidInventoryRequestError(
                    f"invalid transaction type: {transaction_type}"
                ) from exc
        transactions = self._inventory_repository.list_transactions(
            ingredient_id=ingredient_id,
            transaction_type=parsed,
            limit=limit,
        )
        return [to_stock_transaction_response(t) for t in transactions]
