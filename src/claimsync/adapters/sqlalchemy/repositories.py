"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import and_, delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from claimsync.adapters.serialization import claim_from_payload, claim_to_payload
from claimsync.adapters.sqlalchemy.mappings import (
    claim_cache_table,
    claim_table,
    integration_account_table,
    integration_secret_table,
    profile_table,
)
from claimsync.domain.errors import PersistenceError
from claimsync.domain.model import CacheEntry, IntegrationAccount, StoredSecret

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import datetime

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from claimsync.domain.model import Claim

log = getLogger(__name__)

CLAIM_KEY_COLUMNS = ("organization_id", "integration_account_id", "claim_id")
UPSERT_CHUNK_SIZE = 500


def _chunks(rows: Sequence[dict[str, Any]], size: int) -> Iterator[Sequence[dict[str, Any]]]:
    for offset in range(0, len(rows), size):
        yield rows[offset : offset + size]


def _upsert_rows(
    session: Session, table: Table, rows: Sequence[dict[str, Any]], keys: Sequence[str]
) -> None:
    """Insert rows, updating every non-key column when the composite key already exists."""

    if not rows:
        return
    dialect = session.get_bind().dialect.name
    for chunk in _chunks(rows, UPSERT_CHUNK_SIZE):
        if dialect in {"sqlite", "postgresql"}:
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = insert(table).values(list(chunk))
            stmt = stmt.on_conflict_do_update(
                index_elements=list(keys),
                set_={
                    column.name: stmt.excluded[column.name]
                    for column in table.columns
                    if column.name not in keys
                },
            )
            session.execute(stmt)
            continue
        for row in chunk:
            session.execute(
                delete(table).where(and_(*(table.c[key] == row[key] for key in keys)))
            )
        session.execute(table.insert(), list(chunk))


class SqlAlchemyAccountRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, account_id: str) -> IntegrationAccount | None:
        stmt = select(integration_account_table).where(
            integration_account_table.c.id == account_id
        )
        try:
            row = self.session.execute(stmt).mappings().one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Reading account {account_id} failed") from exc
        if row is None:
            return None
        return IntegrationAccount(
            id=row["id"],
            seller_id=row["account_identifier"],
            name=row["name"],
            is_active=bool(row["is_active"]),
            organization_id=row["organization_id"],
        )


class SqlAlchemySecretRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, account_id: str, provider: str) -> StoredSecret | None:
        stmt = (
            select(integration_secret_table)
            .where(integration_secret_table.c.integration_account_id == account_id)
            .where(integration_secret_table.c.provider == provider)
        )
        try:
            row = self.session.execute(stmt).mappings().one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Reading secret for account {account_id} failed") from exc
        if row is None:
            return None
        return StoredSecret(
            access_token=row["access_token"],
            simple_tokens=row["simple_tokens"],
            use_simple=bool(row["use_simple"]),
        )


class SqlAlchemyProfileRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def organization_for_user(self, user_id: str) -> str | None:
        stmt = select(profile_table.c.organization_id).where(profile_table.c.id == user_id)
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Reading profile {user_id} failed") from exc


class SqlAlchemyClaimCacheRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def entries(self, organization_id: str, account_ids: Sequence[str]) -> list[CacheEntry]:
        table = claim_cache_table
        stmt = (
            select(table.c.claim_data, table.c.cached_at, table.c.ttl_expires_at)
            .where(table.c.organization_id == organization_id)
            .where(table.c.integration_account_id.in_(list(account_ids)))
        )
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise PersistenceError("Reading the claim cache failed") from exc

        entries: list[CacheEntry] = []
        for claim_data, cached_at, expires_at in rows:
            try:
                claim = claim_from_payload(claim_data)
            except PydanticValidationError:
                log.warning("Skipping unreadable claim cache row")
                continue
            entries.append(CacheEntry(claim=claim, cached_at=cached_at, ttl_expires_at=expires_at))
        return entries

    def put(
        self,
        organization_id: str,
        account_id: str,
        claims: Sequence[Claim],
        *,
        cached_at: datetime,
        expires_at: datetime,
    ) -> None:
        table = claim_cache_table
        # Rows of this account not written now belong to an older sync.
        stale = (
            delete(table)
            .where(table.c.organization_id == organization_id)
            .where(table.c.integration_account_id == account_id)
        )
        if claims:
            stale = stale.where(table.c.claim_id.not_in([claim.claim_id for claim in claims]))
        try:
            rows = [
                {
                    "organization_id": organization_id,
                    "integration_account_id": account_id,
                    "claim_id": claim.claim_id,
                    "claim_data": claim_to_payload(claim),
                    "cached_at": cached_at,
                    "ttl_expires_at": expires_at,
                }
                for claim in claims
            ]
            _upsert_rows(self.session, table, rows, CLAIM_KEY_COLUMNS)
            self.session.execute(stale)
        # pydantic serialization errors are ValueErrors
        except (SQLAlchemyError, ValueError) as exc:
            raise PersistenceError(f"Caching claims for account {account_id} failed") from exc

    def invalidate(self, organization_id: str, account_ids: Sequence[str]) -> int:
        table = claim_cache_table
        stmt = (
            delete(table)
            .where(table.c.organization_id == organization_id)
            .where(table.c.integration_account_id.in_(list(account_ids)))
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError("Invalidating the claim cache failed") from exc
        return int(getattr(result, "rowcount", 0) or 0)


def _claim_row(claim: Claim, synced_at: datetime) -> dict[str, Any]:
    identity = claim.identity
    financial = claim.financial
    return {
        "organization_id": claim.organization_id,
        "integration_account_id": claim.integration_account_id,
        "claim_id": claim.claim_id,
        "order_id": identity.order_id,
        "return_id": identity.return_id,
        "status": identity.status,
        "stage": identity.stage,
        "reason_id": identity.reason_id,
        "date_created": identity.date_created,
        "date_closed": identity.date_closed,
        "last_updated": identity.last_updated,
        "claimed_amount": financial.claimed_amount,
        "refunded_amount": financial.refunded_amount,
        "currency_id": financial.currency_id,
        "buyer_id": claim.contextual.buyer_id,
        "buyer_nickname": claim.contextual.buyer_nickname,
        "claim_data": claim_to_payload(claim),
        "last_synced_at": synced_at,
    }


class SqlAlchemyClaimRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(self, claims: Sequence[Claim], *, synced_at: datetime) -> int:
        latest: dict[tuple[str, str, str], Claim] = {claim.key: claim for claim in claims}
        try:
            rows = [_claim_row(claim, synced_at) for claim in latest.values()]
            _upsert_rows(self.session, claim_table, rows, CLAIM_KEY_COLUMNS)
        except (SQLAlchemyError, ValueError) as exc:
            raise PersistenceError(f"Upserting {len(latest)} claims failed") from exc
        return len(rows)

    def get(self, organization_id: str, account_id: str, claim_id: str) -> Claim | None:
        stmt = (
            select(claim_table.c.claim_data)
            .where(claim_table.c.organization_id == organization_id)
            .where(claim_table.c.integration_account_id == account_id)
            .where(claim_table.c.claim_id == claim_id)
        )
        try:
            payload = self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Reading claim {claim_id} failed") from exc
        return claim_from_payload(payload) if payload is not None else None


__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemyClaimCacheRepository",
    "SqlAlchemyClaimRepository",
    "SqlAlchemyProfileRepository",
    "SqlAlchemySecretRepository",
]
