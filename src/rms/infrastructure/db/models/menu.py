from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, false, true
from sqlalchemy.orm import Mapped, mapped_column

from rms.infrastructure.db.models.base import Base


class CategoryModel(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    station_id: Mapped[str | None] = mapped_column(
        String(50),
        ForeignKey("kitchen_stations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )


class MenuItemModel(Base):
    __tablename__ = "menu_items"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    category_id: Mapped[str | None] = mapped_column(
        String(50),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    popular: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    preparation_time: Mapped[int] = mapped_column(Integer, nullable=False, server_default="15")


class RecipeLineModel(Base):
    __tablename__ = "menu_item_ingredients"

    menu_item_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("menu_items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    ingredient_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("ingredients.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    )
    quantity_required: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
