from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.application.ports.repositories import DuplicateKeyError, TableRepository
from rms.domain.common.ids import TableId
from rms.domain.table.entities import Table, TableStatus
from rms.infrastructure.db.models.table import TableModel
from rms.infrastructure.db.session import get_engine


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, table: Table) -> None:
        with Session(self._engine) as session:
            session.add(
                TableModel(
                    id=str(table.table_id),
                    table_number=table.table_number,
                    capacity=table.capacity,
                    status=table.status.value,
                    customer_count=table.customer_count,
                    section=table.section,
                    notes=table.notes,
                )
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"table {table.table_number} already exists") from exc

    def get(self, table_id: TableId) -> Table | None:
        with Session(self._engine) as session:
            model = session.get(TableModel, str(table_id))
            return table_to_domain(model) if model else None

    def get_by_number(self, table_number: str) -> Table | None:
        statement = select(TableModel).where(TableModel.table_number == table_number).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            return table_to_domain(model) if model else None

    def update(self, table: Table) -> None:
        with Session(self._engine) as session:
            model = session.get(TableModel, str(table.table_id))
            if model is None:
                raise LookupError(f"table {table.table_id} not found")
            model.table_number = table.table_number
            model.capacity = table.capacity
            model.status = table.status.value
            model.customer_count = table.customer_count
            model.section = table.section
            model.notes = table.notes
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"table {table.table_number} already exists") from exc

    def delete(self, table_id: TableId) -> None:
        with Session(self._engine) as session:
            model = session.get(TableModel, str(table_id))
            if model is not None:
                session.delete(model)
                session.commit()

    def list(self, status: TableStatus | None = None, section: str | None = None) -> list[Table]:
        statement = select(TableModel).order_by(TableModel.table_number)
        if status is not None:
            statement = statement.where(TableModel.status == status.value)
        if section is not None:
            statement = statement.where(TableModel.section == section)
        with Session(self._engine) as session:
            return [table_to_domain(model) for model in session.execute(statement).scalars()]

    def list_available(self, min_capacity: int | None = None) -> list[Table]:
        statement = (
            select(TableModel)
            .where(TableModel.status == TableStatus.AVAILABLE.value)
            .order_by(TableModel.capacity, TableModel.table_number)
        )
        if min_capacity is not None:
            statement = statement.where(TableModel.capacity >= min_capacity)
        with Session(self._engine) as session:
            return [table_to_domain(model) for model in session.execute(statement).scalars()]


def table_to_domain(model: TableModel) -> Table:
    return Table(
        table_id=TableId(model.id),
        table_number=model.table_number,
        capacity=model.capacity,
        status=TableStatus(model.status),
        customer_count=model.customer_count,
        section=model.section,
        notes=model.notes,
    )
