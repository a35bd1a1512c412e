"""create inventory and procurement

Revision ID: 202610011100
Revises: 202610011000
Create Date: 2026-10-01 11:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "202610011100"
down_revision = "202610011000"
branch_labels = None
depends_on = None

QUANTITY = sa.Numeric(12, 3)


def upgrade() -> None:
    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("contact_person", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.String(length=1000), nullable=True),
        sa.Column("payment_terms", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "ingredients",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False),
        sa.Column("current_stock", QUANTITY, nullable=False, server_default="0"),
        sa.Column("minimum_stock", QUANTITY, nullable=False, server_default="10"),
        sa.Column("cost_per_unit_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("supplier_id", sa.String(length=50), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_ingredients_category", "ingredients", ["category"], unique=False)

    op.create_table(
        "stock_transactions",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("ingredient_id", sa.String(length=50), nullable=False),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column("quantity", QUANTITY, nullable=False),
        sa.Column("previous_stock", QUANTITY, nullable=False),
        sa.Column("new_stock", QUANTITY, nullable=False),
        sa.Column("reference_type", sa.String(length=30), nullable=True),
        sa.Column("reference_id", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("user_id", sa.String(length=50), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_stock_transactions_ingredient_created_at",
        "stock_transactions",
        ["ingredient_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("order_number", sa.String(length=30), nullable=False),
        sa.Column("supplier_id", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("expected_delivery", sa.Date(), nullable=True),
        sa.Column("received_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_by", sa.String(length=50), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_number"),
    )
    op.create_index(
        "ix_purchase_orders_supplier_id", "purchase_orders", ["supplier_id"], unique=False
    )
    op.create_index("ix_purchase_orders_status", "purchase_orders", ["status"], unique=False)

    op.create_table(
        "purchase_order_items",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("purchase_order_id", sa.String(length=50), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ingredient_id", sa.String(length=50), nullable=False),
        sa.Column("quantity", QUANTITY, nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.Column("received_quantity", QUANTITY, nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(
            ["purchase_order_id"], ["purchase_orders.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_purchase_order_items_purchase_order_id",
        "purchase_order_items",
        ["purchase_order_id"],
        unique=False,
    )
    op.create_index(
        "ix_purchase_order_items_ingredient_id",
        "purchase_order_items",
        ["ingredient_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_purchase_order_items_ingredient_id", table_name="purchase_order_items")
    op.drop_index("ix_purchase_order_items_purchase_order_id", table_name="purchase_order_items")
    op.drop_table("purchase_order_items")
    op.drop_index("ix_purchase_orders_status", table_name="purchase_orders")
    op.drop_index("ix_purchase_orders_supplier_id", table_name="purchase_orders")
    op.drop_table("purchase_orders")
    op.drop_index("ix_stock_transactions_ingredient_created_at", table_name="stock_transactions")
    op.drop_table("stock_transactions")
    op.drop_index("ix_ingredients_category", table_name="ingredients")
    op.drop_table("ingredients")
    op.drop_table("suppliers")
