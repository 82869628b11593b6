"""create versioned record store

Revision ID: 0001_create_kv_records
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_create_kv_records"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "kv_records",
        sa.Column("collection", sa.String(length=64), primary_key=True),
        sa.Column("key", sa.String(length=255), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_kv_records_collection", "kv_records", ["collection"])


def downgrade():
    op.drop_index("ix_kv_records_collection", table_name="kv_records")
    op.drop_table("kv_records")
