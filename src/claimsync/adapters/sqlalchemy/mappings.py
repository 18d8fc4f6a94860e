"""SQLAlchemy table metadata for accounts, secrets, profiles and claims."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Float,
    Index,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Account directory -----------------------------------------------------------

integration_account_table = Table(
    "integration_account",
    mapper_registry.metadata,
    Column("id", String(36), primary_key=True),
    Column("account_identifier", String(64), nullable=False),
    Column("name", String(255), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("organization_id", String(36), nullable=False, index=True),
)

integration_secret_table = Table(
    "integration_secret",
    mapper_registry.metadata,
    Column("integration_account_id", String(36), primary_key=True),
    Column("provider", String(64), primary_key=True),
    Column("simple_tokens", Text, nullable=True),
    Column("use_simple", Boolean, nullable=False, default=False),
    Column("access_token", Text, nullable=True),
)

profile_table = Table(
    "profile",
    mapper_registry.metadata,
    Column("id", String(36), primary_key=True),
    Column("organization_id", String(36), nullable=True),
)

# Claims ----------------------------------------------------------------------

claim_cache_table = Table(
    "claim_cache",
    mapper_registry.metadata,
    Column("organization_id", String(36), primary_key=True),
    Column("integration_account_id", String(36), primary_key=True),
    Column("claim_id", String(64), primary_key=True),
    Column("claim_data", JSON, nullable=False),
    Column("cached_at", UTCDateTime(), nullable=False),
    Column("ttl_expires_at", UTCDateTime(), nullable=False),
    Index("ix_claim_cache_ttl_expires_at", "ttl_expires_at"),
)

claim_table = Table(
    "claim",
    mapper_registry.metadata,
    Column("organization_id", String(36), primary_key=True),
    Column("integration_account_id", String(36), primary_key=True),
    Column("claim_id", String(64), primary_key=True),
    Column("order_id", String(64), nullable=True, index=True),
    Column("return_id", String(64), nullable=True),
    Column("status", String(64), nullable=True),
    Column("stage", String(64), nullable=True),
    Column("reason_id", String(64), nullable=True),
    Column("date_created", UTCDateTime(), nullable=True, index=True),
    Column("date_closed", UTCDateTime(), nullable=True),
    Column("last_updated", UTCDateTime(), nullable=True),
    Column("claimed_amount", Float, nullable=True),
    Column("refunded_amount", Float, nullable=True),
    Column("currency_id", String(8), nullable=True),
    Column("buyer_id", String(64), nullable=True),
    Column("buyer_nickname", String(255), nullable=True),
    Column("claim_data", JSON, nullable=False),
    Column("last_synced_at", UTCDateTime(), nullable=False),
)

