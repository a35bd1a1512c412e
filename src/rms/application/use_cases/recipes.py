from __future__ import annotations

from dataclasses import replace

from rms.application.dto.requests import RecipeIngredientRequest, UpdateRecipeIngredientRequest
from rms.application.dto.responses import RecipeAvailabilityResponse, RecipeResponse
from rms.application.mappers.recipe_mapper import to_recipe_response, to_shortage_response
from rms.application.ports.repositories import (
    InventoryRepository,
    MenuRepository,
    RecipeRepository,
)
from rms.application.use_cases.inventory import load_ingredient
from rms.application.use_cases.menu import MenuItemNotFoundError
from rms.domain.common.ids import IngredientId, MenuItemId
from rms.domain.menu.entities import MenuItem
from rms.domain.menu.recipes import RecipeLine, shortages


class RecipeLineNotFoundError(Exception):
    pass


class InvalidRecipeRequestError(Exception):
    pass


class _RecipeUseCase:
    def __init__(
        self,
        menu_repository: MenuRepository,
        recipe_repository: RecipeRepository,
        inventory_repository: InventoryRepository,
    ) -> None:
        self._menu_repository = menu_repository
        self._recipe_repository = recipe_repository
        self._inventory_repository = inventory_repository

    def _load_item(self, item_id: MenuItemId) -> MenuItem:
        item = self._menu_repository.get_item(item_id)
        if item is None:
            raise MenuItemNotFoundError(f"menu item {item_id} not found")
        return item

    def _load_line(self, item_id: MenuItemId, ingredient_id: IngredientId) -> RecipeLine:
        line = self._recipe_repository.get_line(item_id, ingredient_id)
        if line is None:
            raise RecipeLineNotFoundError(
                f"ingredient {ingredient_id} is not part of the recipe for {item_id}"
            )
        return line

    def _recipe(self, item: MenuItem, lines: list[RecipeLine] | None = None) -> RecipeResponse:
        if lines is None:
            lines = self._recipe_repository.list_for_item(item.item_id)
        ingredients = self._inventory_repository.get_many([line.ingredient_id for line in lines])
        return to_recipe_response(item, lines, ingredients)


class GetRecipe(_RecipeUseCase):
    def execute(self, item_id: MenuItemId) -> RecipeResponse:
        return self._recipe(self._load_item(item_id))


class AddRecipeIngredient(_RecipeUseCase):
    """Adding an ingredient that is already listed replaces its quantity."""

    def execute(self, item_id: MenuItemId, request_dto: RecipeIngredientRequest) -> RecipeResponse:
        item = self._load_item(item_id)
        ingredient = load_ingredient(
            self._inventory_repository, IngredientId(request_dto.ingredient_id)
        )
        self._recipe_repository.save_line(
            RecipeLine(
                menu_item_id=item.item_id,
                ingredient_id=ingredient.ingredient_id,
                quantity_required=request_dto.quantity_required,
                is_optional=request_dto.is_optional,
            )
        )
        return self._recipe(item)


class UpdateRecipeIngredient(_RecipeUseCase):
    def execute(
        self,
        item_id: MenuItemId,
        ingredient_id: IngredientId,
        request_dto: UpdateRecipeIngredientRequest,
    ) -> RecipeResponse:
        item = self._load_item(item_id)
        line = self._load_line(item_id, ingredient_id)
        updated = replace(
            line,
            quantity_required=request_dto.quantity_required,
            is_optional=(
                line.is_optional if request_dto.is_optional is None else request_dto.is_optional
            ),
        )
        self._recipe_repository.save_line(updated)
        return self._recipe(item)


class RemoveRecipeIngredient(_RecipeUseCase):
    def execute(self, item_id: MenuItemId, ingredient_id: IngredientId) -> RecipeResponse:
        item = self._load_item(item_id)
        if not self._recipe_repository.delete_line(item_id, ingredient_id):
            raise RecipeLineNotFoundError(
                f"ingredient {ingredient_id} is not part of the recipe for {item_id}"
            )
        return self._recipe(item)


class CheckRecipeAvailability(_RecipeUseCase):
    """Whether current stock covers the given number of portions."""

    def execute(self, item_id: MenuItemId, quantity: int = 1) -> RecipeAvailabilityResponse:
        if quantity < 1:
            raise InvalidRecipeRequestError("quantity must be >= 1")
        item = self._load_item(item_id)
        lines = self._recipe_repository.list_for_item(item.item_id)
        ingredients = self._inventory_repository.get_many([line.ingredient_id for line in lines])
        missing = shortages(lines, ingredients, quantity)
        return RecipeAvailabilityResponse(
            menuItemId=str(item.item_id),
            quantity=quantity,
            canPrepare=not missing,
            shortages=[to_shortage_response(shortage) for shortage in missing],
        )


class MenuItemsWithRecipes(_RecipeUseCase):
    def execute(self) -> list[RecipeResponse]:
        by_item: dict[MenuItemId, list[RecipeLine]] = {}
        for line in self._recipe_repository.list_all():
            by_item.setdefault(line.menu_item_id, []).append(line)
        items = self._menu_repository.get_items(list(by_item))
        return [
            self._recipe(item, by_item[item.item_id])
            for item in sorted(items.values(), key=lambda item: item.name)
        ]
