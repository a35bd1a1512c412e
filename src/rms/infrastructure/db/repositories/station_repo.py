from __future__ import annotations

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.application.ports.repositories import DuplicateKeyError, StationRepository
from rms.domain.common.ids import CategoryId, StationId, UserId
from rms.domain.station.entities import Station, StationStatus
from rms.infrastructure.db.models.menu import CategoryModel
from rms.infrastructure.db.models.station import StationModel
from rms.infrastructure.db.session import get_engine


class SqlAlchemyStationRepository(StationRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, station: Station) -> None:
        with Session(self._engine) as session:
            session.add(
                StationModel(
                    id=str(station.station_id),
                    name=station.name,
                    description=station.description,
                    status=station.status.value,
                    color=station.color,
                    assigned_chef_id=_optional(station.assigned_chef_id),
                )
            )
            self._commit(session, station.name)

    def get(self, station_id: StationId) -> Station | None:
        with Session(self._engine) as session:
            model = session.get(StationModel, str(station_id))
            return self._to_domain(model) if model else None

    def update(self, station: Station) -> None:
        with Session(self._engine) as session:
            model = session.get(StationModel, str(station.station_id))
            if model is None:
                raise LookupError(f"station {station.station_id} not found")
            model.name = station.name
            model.description = station.description
            model.status = station.status.value
            model.color = station.color
            model.assigned_chef_id = _optional(station.assigned_chef_id)
            self._commit(session, station.name)

    def delete(self, station_id: StationId) -> None:
        with Session(self._engine) as session:
            model = session.get(StationModel, str(station_id))
            if model is not None:
                session.delete(model)
                session.commit()

    def list(self, status: StationStatus | None = None) -> list[Station]:
        statement = select(StationModel).order_by(StationModel.name)
        if status is not None:
            statement = statement.where(StationModel.status == status.value)
        with Session(self._engine) as session:
            return [self._to_domain(model) for model in session.execute(statement).scalars()]

    def category_ids(self, station_id: StationId) -> list[CategoryId]:
        statement = (
            select(CategoryModel.id)
            .where(CategoryModel.station_id == str(station_id))
            .order_by(CategoryModel.name)
        )
        with Session(self._engine) as session:
            return [CategoryId(value) for value in session.execute(statement).scalars()]

    def assign_categories(self, station_id: StationId, category_ids: list[CategoryId]) -> None:
        """A category is prepared at one station; assigning moves it here."""
        if not category_ids:
            return
        with Session(self._engine) as session, session.begin():
            session.execute(
                update(CategoryModel)
                .where(CategoryModel.id.in_([str(c) for c in category_ids]))
                .values(station_id=str(station_id))
            )

    def count_for_chef(self, chef_id: UserId) -> int:
        statement = select(func.count(StationModel.id)).where(
            StationModel.assigned_chef_id == str(chef_id)
        )
        with Session(self._engine) as session:
            return int(session.execute(statement).scalar_one())

    def _commit(self, session: Session, name: str) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateKeyError(f"station {name} already exists") from exc

    def _to_domain(self, model: StationModel) -> Station:
        return Station(
            station_id=StationId(model.id),
            name=model.name,
            description=model.description,
            status=StationStatus(model.status),
            color=model.color,
            assigned_chef_id=UserId(model.assigned_chef_id) if model.assigned_chef_id else None,
        )


def _optional(value: str | None) -> str | None:
    return str(value) if value else None
