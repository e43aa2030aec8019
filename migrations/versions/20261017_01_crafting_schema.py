"""Item catalog, purses, reagents and crafted item holdings."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261017_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "items",
        sa.Column("item_id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("img", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.Text(), nullable=False, server_default="0 gp"),
        sa.Column("price_per", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "purses",
        sa.Column("owner_scope", sa.Text(), primary_key=True),
        sa.Column("copper", sa.BigInteger(), nullable=False, server_default="0"),
        sa.CheckConstraint("copper >= 0", name="ck_purses_copper_non_negative"),
    )
    op.create_table(
        "reagents",
        sa.Column("reagent_id", sa.Text(), primary_key=True),
        sa.Column("owner_scope", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("leftovers", sa.Text(), nullable=False, server_default="0 gp"),
        sa.CheckConstraint("quantity >= 0", name="ck_reagents_quantity_non_negative"),
    )
    op.create_index("ix_reagents_owner", "reagents", ["owner_scope"])
    op.create_table(
        "owned_items",
        sa.Column("owner_scope", sa.Text(), nullable=False),
        sa.Column("item_id", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("owner_scope", "item_id"),
    )
    op.create_table(
        "owner_users",
        sa.Column("owner_scope", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("owner_scope", "user_id"),
    )


def downgrade() -> None:
    op.drop_table("owner_users")
    op.drop_table("owned_items")
    op.drop_index("ix_reagents_owner", table_name="reagents")
    op.drop_table("reagents")
    op.drop_table("purses")
    op.drop_table("items")
