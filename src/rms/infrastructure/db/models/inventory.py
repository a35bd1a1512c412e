from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rms.infrastructure.db.models.base import Base

Quantity = Numeric(12, 3)


class IngredientModel(Base):
    __tablename__ = "ingredients"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    current_stock: Mapped[Decimal] = mapped_column(Quantity, nullable=False, server_default="0")
    minimum_stock: Mapped[Decimal] = mapped_column(Quantity, nullable=False, server_default="10")
    cost_per_unit_cents: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    supplier_id: Mapped[str | None] = mapped_column(
        String(50),
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
    )
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)


class StockTransactionModel(Base):
    __tablename__ = "stock_transactions"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    ingredient_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("ingredients.id", ondelete="CASCADE"),
        nullable=False,
    )
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    previous_stock: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    new_stock: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    reference_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    user_id: Mapped[str | None] = mapped_column(
        String(50),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_stock_transactions_ingredient_created_at", "ingredient_id", "created_at"),
    )
