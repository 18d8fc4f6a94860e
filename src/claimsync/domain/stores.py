"""TTL cache and durable store services over the claim repositories."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from claimsync.config.sync import DEFAULT_CACHE_TTL
from claimsync.domain.errors import PersistenceError
from claimsync.domain.time_windows import Clock, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime, timedelta

    from claimsync.domain.model import Claim
    from claimsync.domain.ports.unit_of_work import ClaimUnitOfWork

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CacheHit:
    claims: list[Claim]
    cached_at: datetime
    expires_at: datetime


@dataclass(slots=True)
class ClaimCacheStore:
    """Short-lived claim cache.

    Staleness is decided at read time; expired rows stay in the table until the next
    write for their account supersedes them.
    """

    unit_of_work_factory: Callable[[], ClaimUnitOfWork]
    ttl: timedelta = DEFAULT_CACHE_TTL
    clock: Clock = field(default=utcnow)

    def get(
        self,
        organization_id: str,
        account_ids: Sequence[str],
        date_from: datetime,
        date_to: datetime,
    ) -> CacheHit | None:
        """Return fresh cached claims inside the date range, or ``None`` on a miss."""

        now = self.clock()
        with self.unit_of_work_factory() as uow:
            entries = uow.repositories.claim_cache.entries(organization_id, account_ids)
        fresh = [entry for entry in entries if entry.is_fresh(now)]
        if not fresh:
            log.debug(f"Claim cache miss for organization {organization_id}")
            return None

        claims = [
            entry.claim
            for entry in fresh
            if entry.claim.date_created is None or date_from <= entry.claim.date_created <= date_to
        ]
        log.info(
            f"Claim cache hit for organization {organization_id}: "
            f"{len(fresh)} fresh entries, {len(claims)} in range"
        )
        return CacheHit(
            claims=claims,
            cached_at=min(entry.cached_at for entry in fresh),
            expires_at=min(entry.ttl_expires_at for entry in fresh),
        )

    def put(
        self, organization_id: str, account_id: str, claims: Sequence[Claim]
    ) -> tuple[datetime, datetime]:
        """Replace the account's cached claims; return ``(cached_at, expires_at)``."""

        cached_at = self.clock()
        expires_at = cached_at + self.ttl
        with self.unit_of_work_factory() as uow:
            uow.repositories.claim_cache.put(
                organization_id,
                account_id,
                claims,
                cached_at=cached_at,
                expires_at=expires_at,
            )
            uow.commit()
        return cached_at, expires_at

    def invalidate(self, organization_id: str, account_ids: Sequence[str]) -> int:
        with self.unit_of_work_factory() as uow:
            removed = uow.repositories.claim_cache.invalidate(organization_id, account_ids)
            uow.commit()
        log.info(f"Invalidated {removed} cached claims for organization {organization_id}")
        return removed


@dataclass(slots=True)
class DurableClaimStore:
    """Best-effort system of record; write failures are logged, never raised."""

    unit_of_work_factory: Callable[[], ClaimUnitOfWork]
    clock: Clock = field(default=utcnow)

    def upsert(self, claims: Sequence[Claim]) -> int:
        if not claims:
            return 0
        try:
            with self.unit_of_work_factory() as uow:
                written = uow.repositories.claims.upsert(claims, synced_at=self.clock())
                uow.commit()
        except PersistenceError:
            log.exception(f"Durable upsert of {len(claims)} claims failed")
            return 0
        return written


__all__ = ["CacheHit", "ClaimCacheStore", "DurableClaimStore"]
