"""Create captured webhooks table.

Revision ID: 3b9d2f6a1c70
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3b9d2f6a1c70"
down_revision = None
branch_labels = None
depends_on = None


def _index_names(inspector: sa.Inspector, table_name: str) -> set[str]:
    return {item["name"] for item in inspector.get_indexes(table_name)}


def upgrade() -> None:
    """Create the webhooks table and its created_at index."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("webhooks"):
        op.create_table(
            "webhooks",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("method", sa.String(), nullable=False),
            sa.Column("path_name", sa.String(), nullable=False),
            sa.Column("ip", sa.String(), nullable=True),
            sa.Column("status_code", sa.Integer(), nullable=False),
            sa.Column("content_type", sa.String(), nullable=True),
            sa.Column("content_length", sa.Integer(), nullable=False),
            sa.Column("query_params", sa.JSON(), nullable=True),
            sa.Column("headers", sa.JSON(), nullable=False),
            sa.Column("body", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    inspector = sa.inspect(bind)
    if "ix_webhooks_created_at" not in _index_names(inspector, "webhooks"):
        op.create_index("ix_webhooks_created_at", "webhooks", ["created_at"])


def downgrade() -> None:
    """Drop the webhooks table."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table("webhooks"):
        if "ix_webhooks_created_at" in _index_names(inspector, "webhooks"):
            op.drop_index("ix_webhooks_created_at", table_name="webhooks")
        op.drop_table("webhooks")
