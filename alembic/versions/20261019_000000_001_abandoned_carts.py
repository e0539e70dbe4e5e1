"""Abandoned carts table.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute(
        "CREATE TYPE cart_step AS ENUM ('cart_page', 'shipping_info', 'payment_selection')"
    )

    op.create_table(
        "abandoned_carts",
        sa.Column("id", sa.String(128), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("items", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "last_step_reached",
            postgresql.ENUM(
                "cart_page",
                "shipping_info",
                "payment_selection",
                name="cart_step",
                create_type=False,
            ),
            nullable=True,
        ),
        sa.Column("email_sent", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recovery_token", sa.String(64), nullable=True),
        sa.Column("recovered", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("recovered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(64), nullable=True),
        sa.Column("last_error", sa.String(500), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_abandoned_carts")),
        sa.UniqueConstraint("recovery_token", name=op.f("uq_abandoned_carts_recovery_token")),
    )
    op.create_index(
        op.f("ix_abandoned_carts_last_modified"),
        "abandoned_carts",
        ["last_modified"],
        unique=False,
    )
    op.create_index(
        op.f("ix_abandoned_carts_email_sent"),
        "abandoned_carts",
        ["email_sent"],
        unique=False,
    )
    # Matches the detector query: unclaimed, unrecovered carts by age
    op.create_index(
        "ix_abandoned_carts_recovery_candidates",
        "abandoned_carts",
        ["last_modified"],
        unique=False,
        postgresql_where=sa.text("email_sent = false AND recovered = false"),
    )


def downgrade() -> None:
    op.drop_index("ix_abandoned_carts_recovery_candidates", table_name="abandoned_carts")
    op.drop_index(op.f("ix_abandoned_carts_email_sent"), table_name="abandoned_carts")
    op.drop_index(op.f("ix_abandoned_carts_last_modified"), table_name="abandoned_carts")
    op.drop_table("abandoned_carts")
    op.execute("DROP TYPE cart_step")
