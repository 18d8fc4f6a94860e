"""Claims synchronisation service.

A sync moves through ``VALIDATE -> RESOLVE_IDENTITY -> (CACHE_CHECK | FORCE_INVALIDATE)``
and, on a miss, ``LIST -> ENRICH -> MAP -> PERSIST`` per account before responding.
Validation happens when the request is built; everything after it lives in
``ClaimSyncService.sync``.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from claimsync.config.sync import SyncConfig
from claimsync.domain.errors import (
    AuthError,
    ClaimSyncError,
    CredentialError,
    PersistenceError,
    SyncTimeoutError,
    ValidationError,
)
from claimsync.domain.model import ClaimSource
from claimsync.domain.stores import ClaimCacheStore, DurableClaimStore
from claimsync.domain.time_windows import Clock, TimeWindow, parse_iso_datetime, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from claimsync.domain.model import Claim, Payload
    from claimsync.domain.ports.credentials import CredentialResolver
    from claimsync.domain.ports.fetching import ClaimEnricher, ClaimMapper, ClaimsLister
    from claimsync.domain.ports.unit_of_work import ClaimUnitOfWork

log = getLogger(__name__)

ACCOUNT_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass(slots=True, frozen=True)
class SyncRequest:
    account_ids: tuple[str, ...]
    date_from: datetime | None = None
    date_to: datetime | None = None
    force_refresh: bool = False

    @classmethod
    def from_input(
        cls,
        account_ids: Sequence[object] | None,
        *,
        date_from: str | None = None,
        date_to: str | None = None,
        force_refresh: bool = False,
    ) -> SyncRequest:
        """Validate raw caller input; raises ``ValidationError`` on the first problem."""

        if not account_ids:
            raise ValidationError("At least one account id is required")
        normalized: list[str] = []
        for value in account_ids:
            if not isinstance(value, str) or not ACCOUNT_ID_PATTERN.match(value.strip()):
                raise ValidationError(f"Malformed account id: {value!r}")
            candidate = value.strip().lower()
            if candidate not in normalized:
                normalized.append(candidate)

        try:
            start = parse_iso_datetime(date_from) if date_from else None
            end = parse_iso_datetime(date_to) if date_to else None
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if start is not None and end is not None and start > end:
            raise ValidationError("dateFrom must not be after dateTo")

        return cls(
            account_ids=tuple(normalized),
            date_from=start,
            date_to=end,
            force_refresh=force_refresh,
        )


@dataclass(slots=True, frozen=True)
class CallerIdentity:
    """Who is asking: a session user, or a trusted background caller."""

    user_id: str | None = None
    trusted: bool = False


@dataclass(slots=True, frozen=True)
class AccountWarning:
    account_id: str
    error: str


@dataclass(slots=True, frozen=True)
class AccountStats:
    listed: int
    retained: int

    @property
    def filtered(self) -> int:
        return self.listed - self.retained


@dataclass(slots=True)
class SyncResult:
    claims: list[Claim]
    source: ClaimSource
    cached_at: datetime
    expires_at: datetime
    warnings: list[AccountWarning] = field(default_factory=list)
    stats: dict[str, AccountStats] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.claims)


@dataclass(slots=True)
class _AccountOutcome:
    claims: list[Claim]
    stats: AccountStats


@dataclass(slots=True)
class ClaimSyncService:
    unit_of_work_factory: Callable[[], ClaimUnitOfWork]
    credentials: CredentialResolver
    lister: ClaimsLister
    enricher: ClaimEnricher
    mapper: ClaimMapper
    config: SyncConfig = field(default_factory=SyncConfig)
    clock: Clock = field(default=utcnow)
    cache: ClaimCacheStore = field(init=False)
    durable: DurableClaimStore = field(init=False)

    def __post_init__(self) -> None:
        self.cache = ClaimCacheStore(
            self.unit_of_work_factory, ttl=self.config.cache_ttl, clock=self.clock
        )
        self.durable = DurableClaimStore(self.unit_of_work_factory, clock=self.clock)

    def resolve_organization(self, caller: CallerIdentity, request: SyncRequest) -> str:
        with self.unit_of_work_factory() as uow:
            if caller.user_id:
                organization_id = uow.repositories.profiles.organization_for_user(caller.user_id)
                if organization_id is None:
                    raise AuthError("Caller has no organisation")
                return organization_id
            if caller.trusted:
                account = uow.repositories.accounts.get(request.account_ids[0])
                if account is None:
                    raise AuthError("Unknown account; cannot determine organisation")
                return account.organization_id
        raise AuthError("Missing caller identity")

    async def sync(self, request: SyncRequest, caller: CallerIdentity) -> SyncResult:
        try:
            date_from, date_to = TimeWindow(
                start=request.date_from,
                end=request.date_to,
                lookback=self.config.default_lookback,
            ).resolve(clock=self.clock)
        except ValueError as exc:
            raise ValidationError(f"Invalid date range: {exc}") from exc
        organization_id = self.resolve_organization(caller, request)
        log.info(
            f"Claims sync for organization {organization_id}: "
            f"accounts={len(request.account_ids)}, from={date_from.isoformat()}, "
            f"to={date_to.isoformat()}, force={request.force_refresh}"
        )

        if request.force_refresh:
            self._invalidate(organization_id, request.account_ids)
        else:
            hit = self._cache_lookup(organization_id, request.account_ids, date_from, date_to)
            if hit is not None:
                return hit

        try:
            async with asyncio.timeout(self.config.timeout_seconds):
                return await self._sync_live(organization_id, request, date_from, date_to)
        except TimeoutError as exc:
            log.warning(
                f"Claims sync for organization {organization_id} timed out after "
                f"{self.config.timeout_seconds}s"
            )
            raise SyncTimeoutError(self.config.timeout_seconds) from exc

    def _cache_lookup(
        self,
        organization_id: str,
        account_ids: Sequence[str],
        date_from: datetime,
        date_to: datetime,
    ) -> SyncResult | None:
        try:
            hit = self.cache.get(organization_id, account_ids, date_from, date_to)
        except PersistenceError:
            log.exception("Claim cache read failed; falling back to a live fetch")
            return None
        if hit is None:
            return None
        return SyncResult(
            claims=hit.claims,
            source=ClaimSource.CACHE,
            cached_at=hit.cached_at,
            expires_at=hit.expires_at,
        )

    def _invalidate(self, organization_id: str, account_ids: Sequence[str]) -> None:
        try:
            self.cache.invalidate(organization_id, account_ids)
        except PersistenceError:
            log.exception("Claim cache invalidation failed")

    async def _sync_live(
        self,
        organization_id: str,
        request: SyncRequest,
        date_from: datetime,
        date_to: datetime,
    ) -> SyncResult:
        started_at = self.clock()
        claims: list[Claim] = []
        warnings: list[AccountWarning] = []
        stats: dict[str, AccountStats] = {}

        for account_id in request.account_ids:
            try:
                outcome = await self._sync_account(organization_id, account_id, date_from, date_to)
            except ClaimSyncError as exc:
                log.warning(f"Account {account_id} failed: {exc}")
                warnings.append(AccountWarning(account_id=account_id, error=str(exc)))
                continue
            claims.extend(outcome.claims)
            stats[account_id] = outcome.stats

        log.info(
            f"Claims sync for organization {organization_id} finished: "
            f"claims={len(claims)}, warnings={len(warnings)}"
        )
        return SyncResult(
            claims=claims,
            source=ClaimSource.LIVE,
            cached_at=started_at,
            expires_at=started_at + self.config.cache_ttl,
            warnings=warnings,
            stats=stats,
        )

    async def _sync_account(
        self,
        organization_id: str,
        account_id: str,
        date_from: datetime,
        date_to: datetime,
    ) -> _AccountOutcome:
        credentials = await self.credentials.resolve(account_id)
        if credentials.organization_id not in (None, organization_id):
            raise CredentialError(
                f"Account {account_id} does not belong to this organisation",
                account_id=account_id,
            )

        raw_claims = await self.lister.list_claims(
            credentials.seller_id, credentials.access_token, date_from, date_to
        )
        enriched = await self.enricher.enrich(raw_claims, credentials)
        stats = AccountStats(listed=len(raw_claims), retained=len(enriched))
        log.info(
            f"Account {account_id}: listed={stats.listed}, retained={stats.retained}, "
            f"filtered={stats.filtered}"
        )

        claims = [
            self.mapper(
                bundle,
                account_id,
                credentials.account_name,
                _reason_id(bundle.claim),
                organization_id=organization_id,
                thresholds=self.config.thresholds,
            )
            for bundle in enriched
        ]
        self._persist(organization_id, account_id, claims)
        return _AccountOutcome(claims=claims, stats=stats)

    def _persist(self, organization_id: str, account_id: str, claims: list[Claim]) -> None:
        try:
            self.cache.put(organization_id, account_id, claims)
        except PersistenceError:
            log.exception(f"Caching claims for account {account_id} failed")
        self.durable.upsert(claims)


def _reason_id(claim: Payload) -> str | None:
    value = claim.get("reason_id")
    return str(value) if value else None


__all__ = [
    "ACCOUNT_ID_PATTERN",
    "AccountStats",
    "AccountWarning",
    "CallerIdentity",
    "ClaimSyncService",
    "SyncRequest",
    "SyncResult",
]
