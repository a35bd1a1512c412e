from __future__ import annotations

from rms.application.dto.responses import (
    CategoryDetailResponse,
    CategoryResponse,
    MenuItemResponse,
)
from rms.domain.menu.entities import Category, MenuItem


def to_category_response(category: Category) -> CategoryResponse:
    return CategoryResponse(
        categoryId=str(category.category_id),
        name=category.name,
        description=category.description,
    )


def to_menu_item_response(item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        itemId=str(item.item_id),
        categoryId=str(item.category_id) if item.category_id else None,
        name=item.name,
        description=item.description,
        price=item.price.to_decimal(),
        available=item.available,
        popular=item.popular,
        preparationTime=item.preparation_time,
    )


def to_category_detail_response(
    category: Category,
    items: list[MenuItem],
) -> CategoryDetailResponse:
    return CategoryDetailResponse(
        categoryId=str(category.category_id),
        name=category.name,
        description=category.description,
        items=[to_menu_item_response(item) for item in items],
    )
