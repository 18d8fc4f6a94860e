"""Ports for listing, enriching and mapping marketplace claims."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from claimsync.config.sync import HeuristicThresholds
    from claimsync.domain.model import AccountCredentials, Claim, EnrichedClaim, Payload


@runtime_checkable
class ClaimsLister(Protocol):
    async def list_claims(
        self,
        seller_id: str,
        token: str,
        date_from: datetime,
        date_to: datetime,
    ) -> list[Payload]: ...


@runtime_checkable
class ClaimEnricher(Protocol):
    async def enrich(
        self,
        raw_claims: Sequence[Payload],
        credentials: AccountCredentials,
    ) -> list[EnrichedClaim]: ...


@runtime_checkable
class ClaimMapper(Protocol):
    def __call__(
        self,
        enriched: EnrichedClaim,
        account_id: str,
        account_name: str | None,
        reason_id: str | None,
        *,
        organization_id: str,
        thresholds: HeuristicThresholds,
    ) -> Claim: ...
