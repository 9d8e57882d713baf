"""Initial schema: agreements, value transfers and lease events.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
    ]


def upgrade() -> None:
    # Create agreements table
    op.create_table(
        "agreements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("landlord", sa.String(length=255), nullable=False, comment="Landlord account identifier"),
        sa.Column("tenant", sa.String(length=255), nullable=False, comment="Tenant account identifier"),
        sa.Column("rent_amount", sa.String(length=80), nullable=False),
        sa.Column("deposit_amount", sa.String(length=80), nullable=False),
        sa.Column("utility_amount", sa.String(length=80), nullable=False, server_default="0"),
        sa.Column("started_at", sa.BigInteger(), nullable=False),
        sa.Column("rent_due_date", sa.BigInteger(), nullable=False),
        sa.Column("lease_end_date", sa.BigInteger(), nullable=False),
        sa.Column("deposit_paid", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("deposit_refunded", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("contract_terminated", sa.Boolean(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("idx_agreement_landlord", "landlord"),
        sa.Index("idx_agreement_tenant", "tenant"),
    )

    # Create value_transfers table
    op.create_table(
        "value_transfers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("agreement_id", sa.Integer(), nullable=False),
        sa.Column("direction", sa.String(length=10), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("counterparty", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.String(length=80), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agreement_id"], ["agreements.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("idx_transfer_agreement", "agreement_id"),
        sa.Index("idx_transfer_agreement_direction", "agreement_id", "direction"),
    )

    # Create lease_events table
    op.create_table(
        "lease_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("agreement_id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.String(length=80), nullable=True),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("occurred_at", sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agreement_id"], ["agreements.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("idx_lease_event_agreement", "agreement_id", "id"),
    )


def downgrade() -> None:
    op.drop_table("lease_events")
    op.drop_table("value_transfers")
    op.drop_table("agreements")
