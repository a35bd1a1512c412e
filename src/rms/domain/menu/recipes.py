from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from rms.domain.common.ids import IngredientId, MenuItemId
from rms.domain.common.money import Money, total_of
from rms.domain.inventory.entities import Ingredient

_PERCENT = Decimal("0.01")


@dataclass(frozen=True)
class RecipeLine:
    """Quantity of one ingredient consumed by one portion of a menu item."""

    menu_item_id: MenuItemId
    ingredient_id: IngredientId
    quantity_required: Decimal
    is_optional: bool = False

    def __post_init__(self) -> None:
        if self.quantity_required <= 0:
            raise ValueError("quantity_required must be > 0")


@dataclass(frozen=True)
class Shortage:
    ingredient: Ingredient
    required: Decimal

    @property
    def missing(self) -> Decimal:
        return self.required - self.ingredient.current_stock


def line_cost(line: RecipeLine, ingredient: Ingredient) -> Money:
    return ingredient.cost_per_unit.times(line.quantity_required)


def recipe_cost(lines: list[RecipeLine], ingredients: dict[IngredientId, Ingredient]) -> Money:
    return total_of(
        [
            line_cost(line, ingredients[line.ingredient_id])
            for line in lines
            if line.ingredient_id in ingredients
        ]
    )


def profit_margin(price: Money, cost: Money) -> Decimal:
    """Percentage of the selling price left after ingredient cost; may be negative."""
    if price.amount_cents == 0:
        return Decimal(0).quantize(_PERCENT)
    margin = Decimal(price.amount_cents - cost.amount_cents) * 100 / price.amount_cents
    return margin.quantize(_PERCENT, rounding=ROUND_HALF_UP)


def shortages(
    lines: list[RecipeLine],
    ingredients: dict[IngredientId, Ingredient],
    portions: int,
) -> list[Shortage]:
    # optional garnish never blocks a dish
    missing: list[Shortage] = []
    for line in lines:
        if line.is_optional:
            continue
        ingredient = ingredients.get(line.ingredient_id)
        if ingredient is None:
            continue
        required = line.quantity_required * portions
        if ingredient.current_stock < required:
            missing.append(Shortage(ingredient=ingredient, required=required))
    return missing
