from __future__ import annotations

from rms.application.dto.responses import (
    RecipeIngredientResponse,
    RecipeResponse,
    ShortageResponse,
)
from rms.domain.common.ids import IngredientId
from rms.domain.inventory.entities import Ingredient
from rms.domain.menu.entities import MenuItem
from rms.domain.menu.recipes import RecipeLine, Shortage, line_cost, profit_margin, recipe_cost


def to_recipe_response(
    item: MenuItem,
    lines: list[RecipeLine],
    ingredients: dict[IngredientId, Ingredient],
) -> RecipeResponse:
    cost = recipe_cost(lines, ingredients)
    entries = [
        _to_ingredient_entry(line, ingredients[line.ingredient_id])
        for line in lines
        if line.ingredient_id in ingredients
    ]
    entries.sort(key=lambda entry: entry.ingredientName)
    return RecipeResponse(
        menuItemId=str(item.item_id),
        menuItemName=item.name,
        sellingPrice=item.price.to_decimal(),
        costPrice=cost.to_decimal(),
        profitMargin=profit_margin(item.price, cost),
        ingredients=entries,
    )


def to_shortage_response(shortage: Shortage) -> ShortageResponse:
    ingredient = shortage.ingredient
    return ShortageResponse(
        ingredientId=str(ingredient.ingredient_id),
        ingredientName=ingredient.name,
        unit=ingredient.unit,
        required=shortage.required,
        available=ingredient.current_stock,
        missing=shortage.missing,
    )


def _to_ingredient_entry(line: RecipeLine, ingredient: Ingredient) -> RecipeIngredientResponse:
    return RecipeIngredientResponse(
        ingredientId=str(ingredient.ingredient_id),
        ingredientName=ingredient.name,
        unit=ingredient.unit,
        quantityRequired=line.quantity_required,
        isOptional=line.is_optional,
        currentStock=ingredient.current_stock,
        costPerUnit=ingredient.cost_per_unit.to_decimal(),
        ingredientCost=line_cost(line, ingredient).to_decimal(),
    )
