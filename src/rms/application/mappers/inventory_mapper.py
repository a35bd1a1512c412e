from __future__ import annotations

from rms.application.dto.responses import IngredientResponse, StockTransactionResponse
from rms.domain.inventory.entities import Ingredient, StockTransaction


def to_ingredient_response(ingredient: Ingredient) -> IngredientResponse:
    return IngredientResponse(
        ingredientId=str(ingredient.ingredient_id),
        name=ingredient.name,
        unit=ingredient.unit,
        currentStock=ingredient.current_stock,
        minimumStock=ingredient.minimum_stock,
        costPerUnit=ingredient.cost_per_unit.to_decimal(),
        supplierId=str(ingredient.supplier_id) if ingredient.supplier_id else None,
        category=ingredient.category,
        notes=ingredient.notes,
        isLowStock=ingredient.is_low_stock,
    )


def to_stock_transaction_response(transaction: StockTransaction) -> StockTransactionResponse:
    return StockTransactionResponse(
        transactionId=str(transaction.transaction_id),
        ingredientId=str(transaction.ingredient_id),
        transactionType=transaction.transaction_type.value,
        quantity=transaction.quantity,
        previousStock=transaction.previous_stock,
        newStock=transaction.new_stock,
        userId=str(transaction.user_id) if transaction.user_id else None,
        referenceType=transaction.reference_type,
        referenceId=transaction.reference_id,
        notes=transaction.notes,
        createdAt=transaction.created_at,
    )
