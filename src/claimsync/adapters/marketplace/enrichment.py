"""Two-stage enrichment of listed claims.

Stage one fetches each claim's return details and keeps only claims whose return
actually started. Stage two fetches order and messages per surviving claim, then the
product once the order names an item, and finally a secondary pass attaches shipment
history to each order in the batch. Both stages run in sequential batches so at most
``batch_size`` claims have calls in flight.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from claimsync.config.marketplace import DEFAULT_BATCH_SIZE
from claimsync.domain.concurrency import gather_bounded, run_batched
from claimsync.domain.model import EnrichedClaim
from claimsync.domain.time_windows import Clock, utcnow

from .mapping.extract import as_str, dig, first_present
from .mapping.tracking import SHIPMENT_HISTORY_KEY

if TYPE_CHECKING:
    from collections.abc import Sequence

    from claimsync.domain.model import AccountCredentials, Payload

    from .client import MarketplaceClient
    from .schema import ReturnDetails

log = getLogger(__name__)


def claim_order_id(claim: Payload) -> str | None:
    return as_str(first_present((claim, ("resource_id",)), (claim, ("order_id",))))


def order_item_id(order: Payload | None) -> str | None:
    return as_str(dig(order, ("order_items", 0, "item", "id")))


def order_shipment_id(order: Payload | None) -> str | None:
    return as_str(first_present((order, ("shipping", "id")), (order, ("shipping_id",))))


@dataclass(slots=True)
class EnrichmentOrchestrator:
    client: MarketplaceClient
    batch_size: int = DEFAULT_BATCH_SIZE
    clock: Clock = field(default=utcnow)

    async def enrich(
        self,
        raw_claims: Sequence[Payload],
        credentials: AccountCredentials,
    ) -> list[EnrichedClaim]:
        token = credentials.access_token
        fetched_at = self.clock()

        active = await self._filter_active(raw_claims, token)
        log.info(
            f"Account {credentials.account_id}: {len(active)} of {len(raw_claims)} claims "
            f"have an active return ({len(raw_claims) - len(active)} dropped)"
        )
        if not active:
            return []

        seller, reasons = await asyncio.gather(
            self.client.user(credentials.seller_id, token),
            self._fetch_reasons(active, token),
        )

        for offset in range(0, len(active), self.batch_size):
            batch = active[offset : offset + self.batch_size]
            await gather_bounded(
                lambda bundle: self._enrich_claim(bundle, token),
                batch,
                max_concurrency=self.batch_size,
            )
            await self._attach_shipment_history(batch, token)

        for bundle in active:
            reason_id = as_str(bundle.claim.get("reason_id"))
            bundle.reason = reasons.get(reason_id) if reason_id else None
            bundle.seller = seller
            bundle.fetched_at = fetched_at
        return active

    async def _filter_active(
        self, raw_claims: Sequence[Payload], token: str
    ) -> list[EnrichedClaim]:
        async def fetch_return(claim: Payload) -> tuple[ReturnDetails, dict[str, Any]] | None:
            claim_id = as_str(claim.get("id"))
            if claim_id is None:
                return None
            return await self.client.return_details(claim_id, token)

        details = await run_batched(fetch_return, raw_claims, batch_size=self.batch_size)
        return [
            EnrichedClaim(claim=claim, return_details=detail[1])
            for claim, detail in zip(raw_claims, details, strict=True)
            if detail is not None and detail[0].is_active
        ]

    async def _fetch_reasons(
        self, bundles: Sequence[EnrichedClaim], token: str
    ) -> dict[str, dict[str, Any]]:
        reason_ids = sorted(
            {
                reason_id
                for bundle in bundles
                if (reason_id := as_str(bundle.claim.get("reason_id")))
            }
        )

        async def fetch_reason(reason_id: str) -> dict[str, Any] | None:
            return await self.client.reason(reason_id, token)

        payloads = await gather_bounded(fetch_reason, reason_ids, max_concurrency=self.batch_size)
        return {
            reason_id: payload
            for reason_id, payload in zip(reason_ids, payloads, strict=True)
            if payload is not None
        }

    async def _enrich_claim(self, bundle: EnrichedClaim, token: str) -> None:
        order_id = claim_order_id(bundle.claim)

        async def no_order() -> None:
            return None

        order, messages = await asyncio.gather(
            self.client.order(order_id, token) if order_id else no_order(),
            self.client.messages(bundle.claim_id, token),
        )
        bundle.order = dict(order) if order is not None else None
        bundle.messages = messages

        item_id = order_item_id(bundle.order)
        if item_id:
            bundle.product = await self.client.item(item_id, token)

    async def _attach_shipment_history(self, batch: Sequence[EnrichedClaim], token: str) -> None:
        with_shipment = [
            (bundle, shipment_id)
            for bundle in batch
            if bundle.order is not None and (shipment_id := order_shipment_id(bundle.order))
        ]

        async def fetch_history(pair: tuple[EnrichedClaim, str]) -> list[dict[str, Any]] | None:
            return await self.client.shipment_history(pair[1], token)

        histories = await gather_bounded(
            fetch_history, with_shipment, max_concurrency=self.batch_size
        )
        for (bundle, _), history in zip(with_shipment, histories, strict=True):
            if history is not None and bundle.order is not None:
                bundle.order[SHIPMENT_HISTORY_KEY] = history


__all__ = [
    "SHIPMENT_HISTORY_KEY",
    "EnrichmentOrchestrator",
    "claim_order_id",
    "order_item_id",
    "order_shipment_id",
]
