from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rms.infrastructure.db.models.base import Base


class TableModel(Base):
    __tablename__ = "tables"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    table_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, server_default="2")
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="available")
    customer_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    section: Mapped[str] = mapped_column(String(50), nullable=False, server_default="Main Hall")
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)


class PagerModel(Base):
    __tablename__ = "pagers"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    pager_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="available")
    order_id: Mapped[str | None] = mapped_column(
        String(50),
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
