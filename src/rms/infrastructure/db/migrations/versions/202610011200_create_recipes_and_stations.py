"""create recipes and kitchen stations

Revision ID: 202610011200
Revises: 202610011100
Create Date: 2026-10-01 12:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "202610011200"
down_revision = "202610011100"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "kitchen_stations",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#4CAF50"),
        sa.Column("assigned_chef_id", sa.String(length=50), nullable=True),
        sa.ForeignKeyConstraint(["assigned_chef_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index(
        "ix_kitchen_stations_assigned_chef_id",
        "kitchen_stations",
        ["assigned_chef_id"],
        unique=False,
    )

    # batch mode so SQLite can take the new foreign key
    with op.batch_alter_table("categories") as batch_op:
        batch_op.add_column(sa.Column("station_id", sa.String(length=50), nullable=True))
        batch_op.create_foreign_key(
            "fk_categories_station_id",
            "kitchen_stations",
            ["station_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch_op.create_index("ix_categories_station_id", ["station_id"], unique=False)

    op.create_table(
        "menu_item_ingredients",
        sa.Column("menu_item_id", sa.String(length=50), nullable=False),
        sa.Column("ingredient_id", sa.String(length=50), nullable=False),
        sa.Column("quantity_required", sa.Numeric(12, 3), nullable=False),
        sa.Column("is_optional", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["menu_item_id"], ["menu_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("menu_item_id", "ingredient_id"),
    )
    op.create_index(
        "ix_menu_item_ingredients_ingredient_id",
        "menu_item_ingredients",
        ["ingredient_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_menu_item_ingredients_ingredient_id", table_name="menu_item_ingredients")
    op.drop_table("menu_item_ingredients")
    with op.batch_alter_table("categories") as batch_op:
        batch_op.drop_index("ix_categories_station_id")
        batch_op.drop_constraint("fk_categories_station_id", type_="foreignkey")
        batch_op.drop_column("station_id")
    op.drop_index("ix_kitchen_stations_assigned_chef_id", table_name="kitchen_stations")
    op.drop_table("kitchen_stations")
