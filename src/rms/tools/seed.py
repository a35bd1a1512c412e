"""Idempotent seed data: staff accounts, floor, pagers and a starter menu.

Rows that already exist (matched by email, table number, pager number or
name) are left untouched, so the script is safe to re-run.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from rms.domain.common.ids import (
    CategoryId,
    IngredientId,
    MenuItemId,
    PagerId,
    TableId,
    UserId,
    new_id,
)
from rms.domain.common.money import Money
from rms.domain.identity.entities import Role, User, UserStatus
from rms.domain.inventory.entities import Ingredient
from rms.domain.menu.entities import Category, MenuItem
from rms.domain.pager.entities import Pager, PagerStatus
from rms.domain.table.entities import Table, TableStatus
from rms.infrastructure.db.repositories.inventory_repo import SqlAlchemyInventoryRepository
from rms.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from rms.infrastructure.db.repositories.pager_repo import SqlAlchemyPagerRepository
from rms.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from rms.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository
from rms.infrastructure.db.schema import create_schema
from rms.infrastructure.db.session import get_engine
from rms.infrastructure.security.passwords import BcryptPasswordHasher

STAFF = [
    ("admin", "admin@restaurant.com", Role.ADMIN, "System", "Admin"),
    ("manager1", "manager@restaurant.com", Role.MANAGER, "John", "Manager"),
    ("cashier1", "cashier1@restaurant.com", Role.CASHIER, "Sarah", "Cashier"),
    ("waiter1", "waiter1@restaurant.com", Role.WAITER, "Emma", "Davis"),
    ("waiter2", "waiter2@restaurant.com", Role.WAITER, "David", "Wilson"),
    ("chef1", "chef1@restaurant.com", Role.CHEF, "Julia", "Child"),
]

TABLES = [
    ("T1", 2, "Main Hall"),
    ("T2", 2, "Main Hall"),
    ("T3", 4, "Main Hall"),
    ("T4", 4, "Main Hall"),
    ("T5", 4, "Window"),
    ("T6", 6, "Window"),
    ("T7", 8, "Terrace"),
    ("T8", 8, "Terrace"),
]

PAGER_COUNT = 10

MENU = {
    "Starters": [
        ("Garlic Bread", "8.50", 10, True),
        ("Caesar Salad", "12.00", 10, False),
    ],
    "Mains": [
        ("Margherita Pizza", "18.50", 20, True),
        ("Chicken Alfredo", "22.00", 25, False),
        ("Beef Burger", "19.00", 20, True),
    ],
    "Desserts": [
        ("Tiramisu", "9.50", 5, False),
    ],
    "Beverages": [
        ("Espresso", "3.50", 3, False),
        ("Fresh Lemonade", "4.50", 3, False),
    ],
}

INGREDIENTS = [
    ("Wheat Flour", "kg", "100", "20", "45.50", "Dry Goods"),
    ("Chicken Breast", "kg", "30", "8", "280.00", "Meat"),
    ("Tomatoes", "kg", "40", "10", "45.00", "Vegetables"),
    ("Milk", "liter", "30", "6", "65.00", "Dairy"),
    ("Coffee Beans", "kg", "25", "5", "550.00", "Beverages"),
]


def _seed_users(engine: Engine, password: str, now: datetime) -> int:
    users = SqlAlchemyUserRepository(engine)
    hasher = BcryptPasswordHasher()
    created = 0
    for username, email, role, first_name, last_name in STAFF:
        if users.get_by_email(email) is not None:
            continue
        users.add(
            User(
                user_id=UserId(new_id("usr")),
                username=username,
                email=email,
                password_hash=hasher.hash(password),
                role=role,
                first_name=first_name,
                last_name=last_name,
                phone=None,
                status=UserStatus.ACTIVE,
                token_version=0,
                created_at=now,
            )
        )
        created += 1
    return created


def _seed_floor(engine: Engine) -> tuple[int, int]:
    tables = SqlAlchemyTableRepository(engine)
    pagers = SqlAlchemyPagerRepository(engine)
    tables_created = 0
    for number, capacity, section in TABLES:
        if tables.get_by_number(number) is not None:
            continue
        tables.add(
            Table(
                table_id=TableId(new_id("tbl")),
                table_number=number,
                capacity=capacity,
                status=TableStatus.AVAILABLE,
                section=section,
            )
        )
        tables_created += 1

    pagers_created = 0
    for number in range(1, PAGER_COUNT + 1):
        if pagers.get_by_number(number) is not None:
            continue
        pagers.add(
            Pager(
                pager_id=PagerId(new_id("pgr")),
                pager_number=number,
                status=PagerStatus.AVAILABLE,
            )
        )
        pagers_created += 1
    return tables_created, pagers_created


def _seed_menu(engine: Engine) -> int:
    menu = SqlAlchemyMenuRepository(engine)
    categories = {category.name: category for category in menu.list_categories()}
    existing_items = {item.name for item in menu.list_items()}
    created = 0
    for category_name, items in MENU.items():
        category = categories.get(category_name)
        if category is None:
            category = Category(category_id=CategoryId(new_id("cat")), name=category_name)
            menu.add_category(category)
        for name, price, preparation_time, popular in items:
            if name in existing_items:
                continue
            menu.add_item(
                MenuItem(
                    item_id=MenuItemId(new_id("itm")),
                    category_id=category.category_id,
                    name=name,
                    price=Money.from_decimal(price),
                    popular=popular,
                    preparation_time=preparation_time,
                )
            )
            created += 1
    return created


def _seed_inventory(engine: Engine) -> int:
    inventory = SqlAlchemyInventoryRepository(engine)
    created = 0
    for name, unit, stock, minimum, cost, category in INGREDIENTS:
        if inventory.get_by_name(name) is not None:
            continue
        inventory.add(
            Ingredient(
                ingredient_id=IngredientId(new_id("ing")),
                name=name,
                unit=unit,
                current_stock=Decimal(stock),
                minimum_stock=Decimal(minimum),
                cost_per_unit=Money.from_decimal(cost),
                category=category,
            ),
            initial=None,
        )
        created += 1
    return created


def seed(engine: Engine, password: str = "password123") -> dict[str, int]:
    now = datetime.now(timezone.utc)
    tables_created, pagers_created = _seed_floor(engine)
    return {
        "users": _seed_users(engine, password, now),
        "tables": tables_created,
        "pagers": pagers_created,
        "menu_items": _seed_menu(engine),
        "ingredients": _seed_inventory(engine),
    }


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    if engine.dialect.name == "sqlite":
        create_schema(engine)
    elif "users" not in inspect(engine).get_table_names():
        print("no schema yet; run `alembic upgrade head` first")
        return

    counts = seed(engine, password=os.getenv("SEED_PASSWORD", "password123"))
    summary = ", ".join(f"{name}={count}" for name, count in counts.items())
    print(f"seed complete ({summary})")


if __name__ == "__main__":
    main()
