"""Create push subscriptions table.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

WHAT: Creates the table for web push subscriptions.

HOW: Creates push_subscriptions with:
- Web Push endpoint (unique index) and encryption keys
- Creation timestamp
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create push_subscriptions table."""

    op.create_table(
        "push_subscriptions",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),
        # Subscription endpoint (unique URL for this subscription)
        sa.Column("endpoint", sa.Text(), nullable=False),
        # Encryption keys
        sa.Column("p256dh_key", sa.Text(), nullable=False),
        sa.Column("auth_key", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_index(
        "ix_push_subscriptions_endpoint",
        "push_subscriptions",
        ["endpoint"],
        unique=True,
    )


def downgrade() -> None:
    """Drop push_subscriptions table."""
    op.drop_index("ix_push_subscriptions_endpoint", table_name="push_subscriptions")
    op.drop_table("push_subscriptions")
