from __future__ import annotations

from dataclasses import replace

from rms.application.dto.requests import (
    CategoryRequest,
    CreateMenuItemRequest,
    UpdateMenuItemRequest,
)
from rms.application.dto.responses import (
    CategoryDetailResponse,
    CategoryResponse,
    MenuItemResponse,
)
from rms.application.mappers.menu_mapper import (
    to_category_detail_response,
    to_category_response,
    to_menu_item_response,
)
from rms.application.ports.repositories import DuplicateKeyError, MenuRepository
from rms.domain.common.ids import CategoryId, MenuItemId, new_id
from rms.domain.common.money import Money
from rms.domain.menu.entities import Category, MenuItem

MIN_SEARCH_LENGTH = 2


class MenuItemNotFoundError(Exception):
    pass


class CategoryNotFoundError(Exception):
    pass


class DuplicateCategoryError(Exception):
    pass


class CategoryInUseError(Exception):
    pass


class InvalidMenuQueryError(Exception):
    pass


def _load_item(menu_repository: MenuRepository, item_id: MenuItemId) -> MenuItem:
    item = menu_repository.get_item(item_id)
    if item is None:
        raise MenuItemNotFoundError(f"menu item {item_id} not found")
    return item


def _load_category(menu_repository: MenuRepository, category_id: CategoryId) -> Category:
    category = menu_repository.get_category(category_id)
    if category is None:
        raise CategoryNotFoundError(f"category {category_id} not found")
    return category


class ListMenuItems:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(
        self,
        category_id: CategoryId | None = None,
        available: bool | None = None,
        popular: bool | None = None,
    ) -> list[MenuItemResponse]:
        items = self._menu_repository.list_items(
            category_id=category_id,
            available=available,
            popular=popular,
        )
        return [to_menu_item_response(item) for item in items]


class GetMenuItem:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, item_id: MenuItemId) -> MenuItemResponse:
        return to_menu_item_response(_load_item(self._menu_repository, item_id))


class PopularMenuItems:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self) -> list[MenuItemResponse]:
        items = self._menu_repository.list_items(available=True, popular=True)
        return [to_menu_item_response(item) for item in items]


class SearchMenuItems:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, query: str, limit: int = 50) -> list[MenuItemResponse]:
        term = query.strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise InvalidMenuQueryError(
                f"search query must be at least {MIN_SEARCH_LENGTH} characters"
            )
        return [
            to_menu_item_response(item)
            for item in self._menu_repository.search_items(term, limit=limit)
        ]


class CreateMenuItem:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, request_dto: CreateMenuItemRequest) -> MenuItemResponse:
        category_id = None
        if request_dto.category_id:
            category_id = _load_category(
                self._menu_repository, CategoryId(request_dto.category_id)
            ).category_id
        item = MenuItem(
            item_id=MenuItemId(new_id("mit")),
            category_id=category_id,
            name=request_dto.name.strip(),
            price=Money.from_decimal(request_dto.price),
            description=request_dto.description,
            available=request_dto.available,
            popular=request_dto.popular,
            preparation_time=request_dto.preparation_time,
        )
        self._menu_repository.add_item(item)
        return to_menu_item_response(item)


class UpdateMenuItem:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, item_id: MenuItemId, request_dto: UpdateMenuItemRequest) -> MenuItemResponse:
        item = _load_item(self._menu_repository, item_id)
        changes = request_dto.model_dump(exclude_unset=True, exclude_none=True)
        if "category_id" in changes:
            _load_category(self._menu_repository, CategoryId(changes["category_id"]))
            changes["category_id"] = CategoryId(changes["category_id"])
        if "price" in changes:
            changes["price"] = Money.from_decimal(changes["price"])
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        updated = replace(item, **changes)
        self._menu_repository.update_item(updated)
        return to_menu_item_response(updated)


class DeleteMenuItem:
    """Menu items are retired, not removed: past orders keep their reference."""

    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, item_id: MenuItemId) -> MenuItemResponse:
        item = _load_item(self._menu_repository, item_id)
        retired = replace(item, available=False)
        self._menu_repository.update_item(retired)
        return to_menu_item_response(retired)


class ToggleAvailability:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, item_id: MenuItemId) -> MenuItemResponse:
        toggled = _load_item(self._menu_repository, item_id).toggle_availability()
        self._menu_repository.update_item(toggled)
        return to_menu_item_response(toggled)


class TogglePopular:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, item_id: MenuItemId) -> MenuItemResponse:
        toggled = _load_item(self._menu_repository, item_id).toggle_popular()
        self._menu_repository.update_item(toggled)
        return to_menu_item_response(toggled)


class ListCategories:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self) -> list[CategoryResponse]:
        return [to_category_response(c) for c in self._menu_repository.list_categories()]


class GetCategory:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, category_id: CategoryId) -> CategoryDetailResponse:
        category = _load_category(self._menu_repository, category_id)
        items = self._menu_repository.list_items(category_id=category_id, available=True)
        return to_category_detail_response(category, items)


class CreateCategory:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, request_dto: CategoryRequest) -> CategoryResponse:
        category = Category(
            category_id=CategoryId(new_id("cat")),
            name=request_dto.name.strip(),
            description=request_dto.description,
        )
        try:
            self._menu_repository.add_category(category)
        except DuplicateKeyError as exc:
            raise DuplicateCategoryError(f"category {category.name} already exists") from exc
        return to_category_response(category)


class UpdateCategory:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, category_id: CategoryId, request_dto: CategoryRequest) -> CategoryResponse:
        category = _load_category(self._menu_repository, category_id)
        updated = replace(
            category,
            name=request_dto.name.strip(),
            description=request_dto.description,
        )
        try:
            self._menu_repository.update_category(updated)
        except DuplicateKeyError as exc:
            raise DuplicateCategoryError(f"category {updated.name} already exists") from exc
        return to_category_response(updated)


class DeleteCategory:
    def __init__(self, menu_repository: MenuRepository) -> None:
        self._menu_repository = menu_repository

    def execute(self, category_id: CategoryId) -> None:
        _load_category(self._menu_repository, category_id)
        in_use = self._menu_repository.count_items_in_category(category_id)
        if in_use:
            raise CategoryInUseError(
                f"category {category_id} still has {in_use} menu item(s)"
            )
        self._menu_repository.delete_category(category_id)
