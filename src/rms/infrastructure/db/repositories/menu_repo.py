from __future__ import annotations

from sqlalchemy import Engine, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.application.ports.repositories import DuplicateKeyError, MenuRepository
from rms.domain.common.ids import CategoryId, MenuItemId
from rms.domain.common.money import Money
from rms.domain.menu.entities import Category, MenuItem
from rms.infrastructure.db.models.menu import CategoryModel, MenuItemModel
from rms.infrastructure.db.session import get_engine


class SqlAlchemyMenuRepository(MenuRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add_category(self, category: Category) -> None:
        with Session(self._engine) as session:
            session.add(
                CategoryModel(
                    id=str(category.category_id),
                    name=category.name,
                    description=category.description,
                )
            )
            self._commit(session, f"category {category.name}")

    def get_category(self, category_id: CategoryId) -> Category | None:
        with Session(self._engine) as session:
            model = session.get(CategoryModel, str(category_id))
            return _category_to_domain(model) if model else None

    def update_category(self, category: Category) -> None:
        with Session(self._engine) as session:
            model = session.get(CategoryModel, str(category.category_id))
            if model is None:
                raise LookupError(f"category {category.category_id} not found")
            model.name = category.name
            model.description = category.description
            self._commit(session, f"category {category.name}")

    def delete_category(self, category_id: CategoryId) -> None:
        with Session(self._engine) as session:
            model = session.get(CategoryModel, str(category_id))
            if model is not None:
                session.delete(model)
                session.commit()

    def list_categories(self) -> list[Category]:
        statement = select(CategoryModel).order_by(CategoryModel.name)
        with Session(self._engine) as session:
            return [_category_to_domain(model) for model in session.execute(statement).scalars()]

    def count_items_in_category(self, category_id: CategoryId) -> int:
        statement = select(func.count(MenuItemModel.id)).where(
            MenuItemModel.category_id == str(category_id)
        )
        with Session(self._engine) as session:
            return int(session.execute(statement).scalar_one())

    def add_item(self, item: MenuItem) -> None:
        with Session(self._engine) as session:
            session.add(
                MenuItemModel(
                    id=str(item.item_id),
                    category_id=str(item.category_id) if item.category_id else None,
                    name=item.name,
                    description=item.description,
                    price_cents=item.price.amount_cents,
                    available=item.available,
                    popular=item.popular,
                    preparation_time=item.preparation_time,
                )
            )
            session.commit()

    def get_item(self, item_id: MenuItemId) -> MenuItem | None:
        with Session(self._engine) as session:
            model = session.get(MenuItemModel, str(item_id))
            return _item_to_domain(model) if model else None

    def get_items(self, item_ids: list[MenuItemId]) -> dict[MenuItemId, MenuItem]:
        if not item_ids:
            return {}
        statement = select(MenuItemModel).where(MenuItemModel.id.in_([str(i) for i in item_ids]))
        with Session(self._engine) as session:
            items = [_item_to_domain(model) for model in session.execute(statement).scalars()]
        return {item.item_id: item for item in items}

    def update_item(self, item: MenuItem) -> None:
        with Session(self._engine) as session:
            model = session.get(MenuItemModel, str(item.item_id))
            if model is None:
                raise LookupError(f"menu item {item.item_id} not found")
            model.category_id = str(item.category_id) if item.category_id else None
            model.name = item.name
            model.description = item.description
            model.price_cents = item.price.amount_cents
            model.available = item.available
            model.popular = item.popular
            model.preparation_time = item.preparation_time
            session.commit()

    def list_items(
        self,
        category_id: CategoryId | None = None,
        available: bool | None = None,
        popular: bool | None = None,
    ) -> list[MenuItem]:
        statement = select(MenuItemModel).order_by(MenuItemModel.name, MenuItemModel.id)
        if category_id is not None:
            statement = statement.where(MenuItemModel.category_id == str(category_id))
        if available is not None:
            statement = statement.where(MenuItemModel.available.is_(available))
        if popular is not None:
            statement = statement.where(MenuItemModel.popular.is_(popular))
        with Session(self._engine) as session:
            return [_item_to_domain(model) for model in session.execute(statement).scalars()]

    def search_items(self, query: str, limit: int = 50) -> list[MenuItem]:
        pattern = f"%{query.lower()}%"
        statement = (
            select(MenuItemModel)
            .where(
                MenuItemModel.available.is_(True),
                or_(
                    func.lower(MenuItemModel.name).like(pattern),
                    func.lower(MenuItemModel.description).like(pattern),
                ),
            )
            .order_by(MenuItemModel.popular.desc(), MenuItemModel.name)
            .limit(limit)
        )
        with Session(self._engine) as session:
            return [_item_to_domain(model) for model in session.execute(statement).scalars()]

    def _commit(self, session: Session, label: str) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateKeyError(f"{label} already exists") from exc


def _category_to_domain(model: CategoryModel) -> Category:
    return Category(
        category_id=CategoryId(model.id),
        name=model.name,
        description=model.description,
    )


def _item_to_domain(model: MenuItemModel) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(model.id),
        category_id=CategoryId(model.category_id) if model.category_id else None,
        name=model.name,
        price=Money(amount_cents=model.price_cents),
        description=model.description,
        available=model.available,
        popular=model.popular,
        preparation_time=model.preparation_time,
    )
