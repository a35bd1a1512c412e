from __future__ import annotations

from dataclasses import dataclass, replace

from rms.domain.common.ids import CategoryId, MenuItemId
from rms.domain.common.money import Money


@dataclass(frozen=True)
class Category:
    category_id: CategoryId
    name: str
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("category name must not be empty")


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    category_id: CategoryId | None
    name: str
    price: Money
    description: str | None = None
    available: bool = True
    popular: bool = False
    preparation_time: int = 15

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("menu item name must not be empty")
        if self.preparation_time < 0:
            raise ValueError("preparation_time must be >= 0")

    def toggle_availability(self) -> MenuItem:
        return replace(self, available=not self.available)

    def toggle_popular(self) -> MenuItem:
        return replace(self, popular=not self.popular)
