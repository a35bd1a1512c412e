from __future__ import annotations

from fastapi import APIRouter, Depends, status

from rms.api.security import MANAGEMENT, require_roles
from rms.application.dto.requests import (
    CategoryRequest,
    CreateMenuItemRequest,
    RecipeIngredientRequest,
    UpdateMenuItemRequest,
    UpdateRecipeIngredientRequest,
)
from rms.application.dto.responses import (
    CategoryDetailResponse,
    CategoryResponse,
    Envelope,
    MenuItemResponse,
    MessageResponse,
    RecipeAvailabilityResponse,
    RecipeResponse,
)
from rms.application.use_cases.menu import (
    CreateCategory,
    CreateMenuItem,
    DeleteCategory,
    DeleteMenuItem,
    GetCategory,
    GetMenuItem,
    ListCategories,
    ListMenuItems,
    PopularMenuItems,
    SearchMenuItems,
    ToggleAvailability,
    TogglePopular,
    UpdateCategory,
    UpdateMenuItem,
)
from rms.application.use_cases.recipes import (
    AddRecipeIngredient,
    CheckRecipeAvailability,
    GetRecipe,
    MenuItemsWithRecipes,
    RemoveRecipeIngredient,
    UpdateRecipeIngredient,
)
from rms.domain.common.ids import CategoryId, IngredientId, MenuItemId
from rms.domain.identity.entities import Role, User
from rms.infrastructure.db.repositories.inventory_repo import SqlAlchemyInventoryRepository
from rms.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from rms.infrastructure.db.repositories.recipe_repo import SqlAlchemyRecipeRepository

router = APIRouter(prefix="/api/menu", tags=["menu"])

management = require_roles(*MANAGEMENT)
recipe_readers = require_roles(Role.CHEF, *MANAGEMENT)


def _recipe_repositories() -> dict:
    return {
        "menu_repository": SqlAlchemyMenuRepository(),
        "recipe_repository": SqlAlchemyRecipeRepository(),
        "inventory_repository": SqlAlchemyInventoryRepository(),
    }


@router.get("/items", response_model=Envelope[list[MenuItemResponse]])
def list_items(
    category_id: str | None = None,
    available: bool | None = None,
    popular: bool | None = None,
) -> Envelope[list[MenuItemResponse]]:
    use_case = ListMenuItems(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(
        data=use_case.execute(
            category_id=CategoryId(category_id) if category_id else None,
            available=available,
            popular=popular,
        )
    )


@router.get("/items/popular", response_model=Envelope[list[MenuItemResponse]])
def popular_items() -> Envelope[list[MenuItemResponse]]:
    return Envelope(data=PopularMenuItems(menu_repository=SqlAlchemyMenuRepository()).execute())


@router.get("/items/search", response_model=Envelope[list[MenuItemResponse]])
def search_items(q: str = "", limit: int = 50) -> Envelope[list[MenuItemResponse]]:
    use_case = SearchMenuItems(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(q, limit=limit))


@router.get("/items/{item_id}", response_model=Envelope[MenuItemResponse])
def get_item(item_id: str) -> Envelope[MenuItemResponse]:
    use_case = GetMenuItem(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(MenuItemId(item_id)))


@router.post(
    "/items",
    response_model=Envelope[MenuItemResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_item(
    request_dto: CreateMenuItemRequest,
    _: User = Depends(management),
) -> Envelope[MenuItemResponse]:
    use_case = CreateMenuItem(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(request_dto))


@router.put("/items/{item_id}", response_model=Envelope[MenuItemResponse])
def update_item(
    item_id: str,
    request_dto: UpdateMenuItemRequest,
    _: User = Depends(management),
) -> Envelope[MenuItemResponse]:
    use_case = UpdateMenuItem(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(MenuItemId(item_id), request_dto))


@router.delete("/items/{item_id}", response_model=Envelope[MenuItemResponse])
def delete_item(item_id: str, _: User = Depends(management)) -> Envelope[MenuItemResponse]:
    use_case = DeleteMenuItem(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(MenuItemId(item_id)))


@router.patch("/items/{item_id}/availability", response_model=Envelope[MenuItemResponse])
def toggle_availability(
    item_id: str,
    _: User = Depends(management),
) -> Envelope[MenuItemResponse]:
    use_case = ToggleAvailability(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(MenuItemId(item_id)))


@router.patch("/items/{item_id}/popular", response_model=Envelope[MenuItemResponse])
def toggle_popular(item_id: str, _: User = Depends(management)) -> Envelope[MenuItemResponse]:
    use_case = TogglePopular(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(MenuItemId(item_id)))


@router.get("/categories", response_model=Envelope[list[CategoryResponse]])
def list_categories() -> Envelope[list[CategoryResponse]]:
    return Envelope(data=ListCategories(menu_repository=SqlAlchemyMenuRepository()).execute())


@router.get("/categories/{category_id}", response_model=Envelope[CategoryDetailResponse])
def get_category(category_id: str) -> Envelope[CategoryDetailResponse]:
    use_case = GetCategory(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(CategoryId(category_id)))


@router.post(
    "/categories",
    response_model=Envelope[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    request_dto: CategoryRequest,
    _: User = Depends(management),
) -> Envelope[CategoryResponse]:
    use_case = CreateCategory(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(request_dto))


@router.put("/categories/{category_id}", response_model=Envelope[CategoryResponse])
def update_category(
    category_id: str,
    request_dto: CategoryRequest,
    _: User = Depends(management),
) -> Envelope[CategoryResponse]:
    use_case = UpdateCategory(menu_repository=SqlAlchemyMenuRepository())
    return Envelope(data=use_case.execute(CategoryId(category_id), request_dto))


@router.delete("/categories/{category_id}", response_model=Envelope[MessageResponse])
def delete_category(
    category_id: str,
    _: User = Depends(management),
) -> Envelope[MessageResponse]:
    DeleteCategory(menu_repository=SqlAlchemyMenuRepository()).execute(CategoryId(category_id))
    return Envelope(data=MessageResponse(message=f"category {category_id} deleted"))


@router.get("/items-with-recipes", response_model=Envelope[list[RecipeResponse]])
def items_with_recipes(_: User = Depends(recipe_readers)) -> Envelope[list[RecipeResponse]]:
    return Envelope(data=MenuItemsWithRecipes(**_recipe_repositories()).execute())


@router.get("/items/{item_id}/recipe", response_model=Envelope[RecipeResponse])
def get_recipe(item_id: str, _: User = Depends(recipe_readers)) -> Envelope[RecipeResponse]:
    return Envelope(data=GetRecipe(**_recipe_repositories()).execute(MenuItemId(item_id)))


@router.get(
    "/items/{item_id}/recipe/availability",
    response_model=Envelope[RecipeAvailabilityResponse],
)
def recipe_availability(
    item_id: str,
    quantity: int = 1,
    _: User = Depends(recipe_readers),
) -> Envelope[RecipeAvailabilityResponse]:
    use_case = CheckRecipeAvailability(**_recipe_repositories())
    return Envelope(data=use_case.execute(MenuItemId(item_id), quantity=quantity))


@router.post("/items/{item_id}/recipe/ingredients", response_model=Envelope[RecipeResponse])
def add_recipe_ingredient(
    item_id: str,
    request_dto: RecipeIngredientRequest,
    _: User = Depends(management),
) -> Envelope[RecipeResponse]:
    use_case = AddRecipeIngredient(**_recipe_repositories())
    return Envelope(data=use_case.execute(MenuItemId(item_id), request_dto))


@router.put(
    "/items/{item_id}/recipe/ingredients/{ingredient_id}",
    response_model=Envelope[RecipeResponse],
)
def update_recipe_ingredient(
    item_id: str,
    ingredient_id: str,
    request_dto: UpdateRecipeIngredientRequest,
    _: User = Depends(management),
) -> Envelope[RecipeResponse]:
    use_case = UpdateRecipeIngredient(**_recipe_repositories())
    return Envelope(
        data=use_case.execute(MenuItemId(item_id), IngredientId(ingredient_id), request_dto)
    )


@router.delete(
    "/items/{item_id}/recipe/ingredients/{ingredient_id}",
    response_model=Envelope[RecipeResponse],
)
def remove_recipe_ingredient(
    item_id: str,
    ingredient_id: str,
    _: User = Depends(management),
) -> Envelope[RecipeResponse]:
    use_case = RemoveRecipeIngredient(**_recipe_repositories())
    return Envelope(data=use_case.execute(MenuItemId(item_id), IngredientId(ingredient_id)))
