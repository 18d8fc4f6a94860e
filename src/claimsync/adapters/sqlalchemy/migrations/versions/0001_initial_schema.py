"""Initial schema: account directory, claim cache and claim store.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from claimsync.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "integration_account",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("account_identifier", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("organization_id", sa.String(36), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_integration_account")),
    )
    op.create_index(
        op.f("ix_integration_account_organization_id"),
        "integration_account",
        ["organization_id"],
    )

    op.create_table(
        "integration_secret",
        sa.Column("integration_account_id", sa.String(36), nullable=False),
        sa.Column("provider", sa.String(64), nullable=False),
        sa.Column("simple_tokens", sa.Text(), nullable=True),
        sa.Column("use_simple", sa.Boolean(), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint(
            "integration_account_id", "provider", name=op.f("pk_integration_secret")
        ),
    )

    op.create_table(
        "profile",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("organization_id", sa.String(36), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_profile")),
    )

    op.create_table(
        "claim_cache",
        sa.Column("organization_id", sa.String(36), nullable=False),
        sa.Column("integration_account_id", sa.String(36), nullable=False),
        sa.Column("claim_id", sa.String(64), nullable=False),
        sa.Column("claim_data", sa.JSON(), nullable=False),
        sa.Column("cached_at", UTCDateTime(), nullable=False),
        sa.Column("ttl_expires_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint(
            "organization_id",
            "integration_account_id",
            "claim_id",
            name=op.f("pk_claim_cache"),
        ),
    )
    op.create_index("ix_claim_cache_ttl_expires_at", "claim_cache", ["ttl_expires_at"])

    op.create_table(
        "claim",
        sa.Column("organization_id", sa.String(36), nullable=False),
        sa.Column("integration_account_id", sa.String(36), nullable=False),
        sa.Column("claim_id", sa.String(64), nullable=False),
        sa.Column("order_id", sa.String(64), nullable=True),
        sa.Column("return_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(64), nullable=True),
        sa.Column("stage", sa.String(64), nullable=True),
        sa.Column("reason_id", sa.String(64), nullable=True),
        sa.Column("date_created", UTCDateTime(), nullable=True),
        sa.Column("date_closed", UTCDateTime(), nullable=True),
        sa.Column("last_updated", UTCDateTime(), nullable=True),
        sa.Column("claimed_amount", sa.Float(), nullable=True),
        sa.Column("refunded_amount", sa.Float(), nullable=True),
        sa.Column("currency_id", sa.String(8), nullable=True),
        sa.Column("buyer_id", sa.String(64), nullable=True),
        sa.Column("buyer_nickname", sa.String(255), nullable=True),
        sa.Column("claim_data", sa.JSON(), nullable=False),
        sa.Column("last_synced_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint(
            "organization_id", "integration_account_id", "claim_id", name=op.f("pk_claim")
        ),
    )
    op.create_index(op.f("ix_claim_order_id"), "claim", ["order_id"])
    op.create_index(op.f("ix_claim_date_created"), "claim", ["date_created"])


def downgrade() -> None:
    op.drop_index(op.f("ix_claim_date_created"), table_name="claim")
    op.drop_index(op.f("ix_claim_order_id"), table_name="claim")
    op.drop_table("claim")
    op.drop_index("ix_claim_cache_ttl_expires_at", table_name="claim_cache")
    op.drop_table("claim_cache")
    op.drop_table("profile")
    op.drop_table("integration_secret")
    op.drop_index(op.f("ix_integration_account_organization_id"), table_name="integration_account")
    op.drop_table("integration_account")
