from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Engine, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.application.ports.repositories import (
    DuplicateKeyError,
    InventoryRepository,
    StockChange,
)
from rms.domain.common.ids import IngredientId, StockTransactionId, SupplierId, UserId, new_id
from rms.domain.common.money import Money
from rms.domain.inventory.entities import Ingredient, StockTransaction, TransactionType
from rms.infrastructure.db.models.inventory import IngredientModel, StockTransactionModel
from rms.infrastructure.db.models.menu import RecipeLineModel
from rms.infrastructure.db.models.procurement import PurchaseOrderItemModel
from rms.infrastructure.db.session import get_engine
from rms.infrastructure.db.timestamps import as_utc


def increment_stock(
    session: Session,
    change: StockChange,
    now: datetime,
) -> tuple[Ingredient, StockTransaction]:
    """Apply a stock delta to a locked ingredient row and journal it."""
    model = session.execute(
        select(IngredientModel)
        .where(IngredientModel.id == str(change.ingredient_id))
        .with_for_update()
    ).scalar_one_or_none()
    if model is None:
        raise LookupError(f"ingredient {change.ingredient_id} not found")

    current = ingredient_to_domain(model)
    updated = current.adjusted(change.delta)
    model.current_stock = updated.current_stock

    transaction = StockTransaction(
        transaction_id=StockTransactionId(new_id("stx")),
        ingredient_id=change.ingredient_id,
        transaction_type=change.transaction_type,
        quantity=change.delta,
        previous_stock=current.current_stock,
        new_stock=updated.current_stock,
        created_at=now,
        user_id=change.user_id,
        reference_type=change.reference_type,
        reference_id=change.reference_id,
        notes=change.notes,
    )
    session.add(_transaction_to_model(transaction))
    return updated, transaction


class SqlAlchemyInventoryRepository(InventoryRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, ingredient: Ingredient, initial: StockTransaction | None) -> None:
        with Session(self._engine) as session:
            session.add(
                IngredientModel(
                    id=str(ingredient.ingredient_id),
                    name=ingredient.name,
                    unit=ingredient.unit,
                    current_stock=ingredient.current_stock,
                    minimum_stock=ingredient.minimum_stock,
                    cost_per_unit_cents=ingredient.cost_per_unit.amount_cents,
                    supplier_id=str(ingredient.supplier_id) if ingredient.supplier_id else None,
                    category=ingredient.category,
                    notes=ingredient.notes,
                )
            )
            if initial is not None:
                session.flush()
                session.add(_transaction_to_model(initial))
            self._commit(session, ingredient.name)

    def get(self, ingredient_id: IngredientId) -> Ingredient | None:
        with Session(self._engine) as session:
            model = session.get(IngredientModel, str(ingredient_id))
            return ingredient_to_domain(model) if model else None

    def get_by_name(self, name: str) -> Ingredient | None:
        statement = (
            select(IngredientModel)
            .where(func.lower(IngredientModel.name) == name.lower())
            .limit(1)
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            return ingredient_to_domain(model) if model else None

    def update(self, ingredient: Ingredient, adjustment: StockTransaction | None) -> None:
        with Session(self._engine) as session:
            model = session.get(IngredientModel, str(ingredient.ingredient_id))
            if model is None:
                raise LookupError(f"ingredient {ingredient.ingredient_id} not found")
            model.name = ingredient.name
            model.unit = ingredient.unit
            model.current_stock = ingredient.current_stock
            model.minimum_stock = ingredient.minimum_stock
            model.cost_per_unit_cents = ingredient.cost_per_unit.amount_cents
            model.supplier_id = str(ingredient.supplier_id) if ingredient.supplier_id else None
            model.category = ingredient.category
            model.notes = ingredient.notes
            if adjustment is not None:
                session.add(_transaction_to_model(adjustment))
            self._commit(session, ingredient.name)

    def delete(self, ingredient_id: IngredientId) -> None:
        with Session(self._engine) as session:
            model = session.get(IngredientModel, str(ingredient_id))
            if model is not None:
                session.delete(model)
                session.commit()

    def list(
        self,
        category: str | None = None,
        search: str | None = None,
        low_stock_only: bool = False,
    ) -> list[Ingredient]:
        statement = select(IngredientModel).order_by(IngredientModel.name)
        if category is not None:
            statement = statement.where(IngredientModel.category == category)
        if search:
            pattern = f"%{search.lower()}%"
            statement = statement.where(
                or_(
                    func.lower(IngredientModel.name).like(pattern),
                    func.lower(IngredientModel.category).like(pattern),
                )
            )
        if low_stock_only:
            statement = statement.where(
                IngredientModel.current_stock <= IngredientModel.minimum_stock
            )
        with Session(self._engine) as session:
            return [ingredient_to_domain(m) for m in session.execute(statement).scalars()]

    def get_many(self, ingredient_ids: list[IngredientId]) -> dict[IngredientId, Ingredient]:
        if not ingredient_ids:
            return {}
        statement = select(IngredientModel).where(
            IngredientModel.id.in_([str(i) for i in ingredient_ids])
        )
        with Session(self._engine) as session:
            return {
                IngredientId(model.id): ingredient_to_domain(model)
                for model in session.execute(statement).scalars()
            }

    def apply_stock_change(
        self,
        change: StockChange,
        now: datetime,
    ) -> tuple[Ingredient, StockTransaction]:
        with Session(self._engine) as session, session.begin():
            return increment_stock(session, change, now)

    def list_transactions(
        self,
        ingredient_id: IngredientId | None,
        transaction_type: TransactionType | None,
        limit: int,
    ) -> list[StockTransaction]:
        statement = (
            select(StockTransactionModel)
            .order_by(StockTransactionModel.created_at.desc(), StockTransactionModel.id.desc())
            .limit(limit)
        )
        if ingredient_id is not None:
            statement = statement.where(StockTransactionModel.ingredient_id == str(ingredient_id))
        if transaction_type is not None:
            statement = statement.where(
                StockTransactionModel.transaction_type == transaction_type.value
            )
        with Session(self._engine) as session:
            return [_transaction_to_domain(m) for m in session.execute(statement).scalars()]

    def is_referenced(self, ingredient_id: IngredientId) -> bool:
        """Purchase-order lines and recipes both pin an ingredient."""
        statements = (
            select(PurchaseOrderItemModel.id)
            .where(PurchaseOrderItemModel.ingredient_id == str(ingredient_id))
            .limit(1),
            select(RecipeLineModel.menu_item_id)
            .where(RecipeLineModel.ingredient_id == str(ingredient_id))
            .limit(1),
        )
        with Session(self._engine) as session:
            return any(session.execute(statement).first() is not None for statement in statements)

    def _commit(self, session: Session, name: str) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateKeyError(f"ingredient {name} already exists") from exc


def ingredient_to_domain(model: IngredientModel) -> Ingredient:
    return Ingredient(
        ingredient_id=IngredientId(model.id),
        name=model.name,
        unit=model.unit,
        current_stock=Decimal(model.current_stock),
        minimum_stock=Decimal(model.minimum_stock),
        cost_per_unit=Money(amount_cents=model.cost_per_unit_cents),
        supplier_id=SupplierId(model.supplier_id) if model.supplier_id else None,
        category=model.category,
        notes=model.notes,
    )


def _transaction_to_model(transaction: StockTransaction) -> StockTransactionModel:
    return StockTransactionModel(
        id=str(transaction.transaction_id),
        ingredient_id=str(transaction.ingredient_id),
        transaction_type=transaction.transaction_type.value,
        quantity=transaction.quantity,
        previous_stock=transaction.previous_stock,
        new_stock=transaction.new_stock,
        reference_type=transaction.reference_type,
        reference_id=transaction.reference_id,
        notes=transaction.notes,
        user_id=str(transaction.user_id) if transaction.user_id else None,
        created_at=transaction.created_at,
    )


def _transaction_to_domain(model: StockTransactionModel) -> StockTransaction:
    return StockTransaction(
        transaction_id=StockTransactionId(model.id),
        ingredient_id=IngredientId(model.ingredient_id),
        transaction_type=TransactionType(model.transaction_type),
        quantity=Decimal(model.quantity),
        previous_stock=Decimal(model.previous_stock),
        new_stock=Decimal(model.new_stock),
        created_at=as_utc(model.created_at),
        user_id=UserId(model.user_id) if model.user_id else None,
        reference_type=model.reference_type,
        reference_id=model.reference_id,
        notes=model.notes,
    )
