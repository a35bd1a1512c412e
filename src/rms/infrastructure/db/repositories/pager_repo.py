from __future__ import annotations

from datetime import datetime

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.application.ports.repositories import DuplicateKeyError, PagerRepository
from rms.domain.common.ids import OrderId, PagerId
from rms.domain.pager.entities import Pager, PagerStatus
from rms.infrastructure.db.models.order import OrderModel
from rms.infrastructure.db.models.table import PagerModel
from rms.infrastructure.db.session import get_engine
from rms.infrastructure.db.timestamps import as_utc


def claim_pager(session: Session, pager_number: int, order_id: OrderId, now: datetime) -> bool:
    """Compare-and-swap: only an available pager can be claimed."""
    result = session.execute(
        update(PagerModel)
        .where(
            PagerModel.pager_number == pager_number,
            PagerModel.status == PagerStatus.AVAILABLE.value,
        )
        .values(
            status=PagerStatus.ASSIGNED.value,
            order_id=str(order_id),
            assigned_at=now,
        )
    )
    return result.rowcount == 1


def activate_pager(session: Session, pager_number: int) -> bool:
    result = session.execute(
        update(PagerModel)
        .where(
            PagerModel.pager_number == pager_number,
            PagerModel.status == PagerStatus.ASSIGNED.value,
        )
        .values(status=PagerStatus.ACTIVE.value)
    )
    return result.rowcount == 1


def release_pager(session: Session, pager_number: int, order_id: OrderId | None = None) -> bool:
    statement = update(PagerModel).where(PagerModel.pager_number == pager_number)
    if order_id is not None:
        # never release a pager that was handed to another order meanwhile
        statement = statement.where(PagerModel.order_id == str(order_id))
    result = session.execute(
        statement.values(status=PagerStatus.AVAILABLE.value, order_id=None, assigned_at=None)
    )
    return result.rowcount == 1


class SqlAlchemyPagerRepository(PagerRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, pager: Pager) -> None:
        with Session(self._engine) as session:
            session.add(
                PagerModel(
                    id=str(pager.pager_id),
                    pager_number=pager.pager_number,
                    status=pager.status.value,
                    order_id=str(pager.order_id) if pager.order_id else None,
                    assigned_at=pager.assigned_at,
                )
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"pager {pager.pager_number} already exists") from exc

    def get_by_number(self, pager_number: int) -> Pager | None:
        statement = select(PagerModel).where(PagerModel.pager_number == pager_number).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            return self._to_domain(model) if model else None

    def delete(self, pager_number: int) -> None:
        statement = select(PagerModel).where(PagerModel.pager_number == pager_number)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is not None:
                session.delete(model)
                session.commit()

    def list(self, status: PagerStatus | None = None) -> list[Pager]:
        statement = select(PagerModel).order_by(PagerModel.pager_number)
        if status is not None:
            statement = statement.where(PagerModel.status == status.value)
        with Session(self._engine) as session:
            return [self._to_domain(model) for model in session.execute(statement).scalars()]

    def first_available(self) -> Pager | None:
        statement = (
            select(PagerModel)
            .where(PagerModel.status == PagerStatus.AVAILABLE.value)
            .order_by(PagerModel.pager_number)
            .limit(1)
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            return self._to_domain(model) if model else None

    def assign_to_order(self, pager_number: int, order_id: OrderId, now: datetime) -> bool:
        with Session(self._engine) as session, session.begin():
            if not claim_pager(session, pager_number, order_id, now):
                return False
            session.execute(
                update(OrderModel)
                .where(OrderModel.id == str(order_id))
                .values(pager_number=pager_number, version=OrderModel.version + 1)
            )
            return True

    def activate(self, pager_number: int) -> bool:
        with Session(self._engine) as session, session.begin():
            return activate_pager(session, pager_number)

    def release(self, pager_number: int) -> bool:
        """Frees the pager and detaches it from the order that held it."""
        holder = select(PagerModel.order_id).where(PagerModel.pager_number == pager_number)
        with Session(self._engine) as session, session.begin():
            order_id = session.execute(holder).scalar_one_or_none()
            held_by = OrderId(order_id) if order_id is not None else None
            if not release_pager(session, pager_number, order_id=held_by):
                return False
            if order_id is not None:
                session.execute(
                    update(OrderModel)
                    .where(
                        OrderModel.id == order_id,
                        OrderModel.pager_number == pager_number,
                    )
                    .values(pager_number=None, version=OrderModel.version + 1)
                )
            return True

    def _to_domain(self, model: PagerModel) -> Pager:
        return Pager(
            pager_id=PagerId(model.id),
            pager_number=model.pager_number,
            status=PagerStatus(model.status),
            order_id=OrderId(model.order_id) if model.order_id else None,
            assigned_at=as_utc(model.assigned_at),
        )
