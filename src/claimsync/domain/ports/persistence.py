"""Ports for reading account data and persisting claims."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from claimsync.domain.model import CacheEntry, Claim, IntegrationAccount, StoredSecret


@runtime_checkable
class AccountRepository(Protocol):
    """Read access to connected marketplace accounts."""

    def get(self, account_id: str) -> IntegrationAccount | None: ...


@runtime_checkable
class SecretRepository(Protocol):
    """Read access to stored account secrets."""

    def get(self, account_id: str, provider: str) -> StoredSecret | None: ...


@runtime_checkable
class ProfileRepository(Protocol):
    def organization_for_user(self, user_id: str) -> str | None: ...


@runtime_checkable
class ClaimCacheRepository(Protocol):
    """TTL-stamped claim rows keyed by ``(organization, account, claim)``."""

    def entries(self, organization_id: str, account_ids: Sequence[str]) -> list[CacheEntry]: ...

    def put(
        self,
        organization_id: str,
        account_id: str,
        claims: Sequence[Claim],
        *,
        cached_at: datetime,
        expires_at: datetime,
    ) -> None: ...

    def invalidate(self, organization_id: str, account_ids: Sequence[str]) -> int: ...


@runtime_checkable
class ClaimRepository(Protocol):
    """Durable, non-expiring claim records."""

    def upsert(self, claims: Sequence[Claim], *, synced_at: datetime) -> int: ...

    def get(self, organization_id: str, account_id: str, claim_id: str) -> Claim | None: ...
