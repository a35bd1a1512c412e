from __future__ import annotations

from sqlalchemy import Engine, delete, select
from sqlalchemy.orm import Session

from rms.application.ports.repositories import RecipeRepository
from rms.domain.common.ids import IngredientId, MenuItemId
from rms.domain.menu.recipes import RecipeLine
from rms.infrastructure.db.models.menu import RecipeLineModel
from rms.infrastructure.db.session import get_engine


class SqlAlchemyRecipeRepository(RecipeRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list_for_item(self, menu_item_id: MenuItemId) -> list[RecipeLine]:
        statement = (
            select(RecipeLineModel)
            .where(RecipeLineModel.menu_item_id == str(menu_item_id))
            .order_by(RecipeLineModel.ingredient_id)
        )
        with Session(self._engine) as session:
            return [_to_domain(model) for model in session.execute(statement).scalars()]

    def list_all(self) -> list[RecipeLine]:
        statement = select(RecipeLineModel).order_by(
            RecipeLineModel.menu_item_id, RecipeLineModel.ingredient_id
        )
        with Session(self._engine) as session:
            return [_to_domain(model) for model in session.execute(statement).scalars()]

    def get_line(
        self,
        menu_item_id: MenuItemId,
        ingredient_id: IngredientId,
    ) -> RecipeLine | None:
        with Session(self._engine) as session:
            model = session.get(RecipeLineModel, (str(menu_item_id), str(ingredient_id)))
            return _to_domain(model) if model else None

    def save_line(self, line: RecipeLine) -> None:
        # one row per (menu item, ingredient); saving again replaces the quantity
        with Session(self._engine) as session, session.begin():
            model = session.get(
                RecipeLineModel, (str(line.menu_item_id), str(line.ingredient_id))
            )
            if model is None:
                session.add(
                    RecipeLineModel(
                        menu_item_id=str(line.menu_item_id),
                        ingredient_id=str(line.ingredient_id),
                        quantity_required=line.quantity_required,
                        is_optional=line.is_optional,
                    )
                )
                return
            model.quantity_required = line.quantity_required
            model.is_optional = line.is_optional

    def delete_line(self, menu_item_id: MenuItemId, ingredient_id: IngredientId) -> bool:
        statement = delete(RecipeLineModel).where(
            RecipeLineModel.menu_item_id == str(menu_item_id),
            RecipeLineModel.ingredient_id == str(ingredient_id),
        )
        with Session(self._engine) as session, session.begin():
            return session.execute(statement).rowcount == 1


def _to_domain(model: RecipeLineModel) -> RecipeLine:
    return RecipeLine(
        menu_item_id=MenuItemId(model.menu_item_id),
        ingredient_id=IngredientId(model.ingredient_id),
        quantity_required=model.quantity_required,
        is_optional=model.is_optional,
    )
