from __future__ import annotations

from sqlalchemy.engine import Engine

from rms.infrastructure.db.models import (
    identity,
    inventory,
    menu,
    order,
    procurement,
    station,
    table,
)
from rms.infrastructure.db.models.base import Base

__all__ = ["Base", "MODEL_MODULES", "create_schema", "drop_schema"]

MODEL_MODULES = (identity, station, menu, table, order, inventory, procurement)


def create_schema(engine: Engine) -> None:
    """Creates every table from the models; used for SQLite runs and tests."""
    Base.metadata.create_all(engine)


def drop_schema(engine: Engine) -> None:
    Base.metadata.drop_all(engine)
