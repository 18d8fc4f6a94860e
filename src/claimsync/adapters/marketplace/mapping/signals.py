"""Readers shared by several mapping groups.

Each function reads the enriched bundle directly, so groups never depend on each
other's output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .extract import as_datetime, as_float, as_objects, as_str, dig, find_player, pick

if TYPE_CHECKING:
    from datetime import datetime

    from claimsync.config.sync import HeuristicThresholds
    from claimsync.domain.model import EnrichedClaim


@dataclass(slots=True, frozen=True)
class MappingContext:
    organization_id: str
    account_id: str
    account_name: str | None
    reason_id: str | None
    thresholds: HeuristicThresholds


def messages(bundle: EnrichedClaim) -> list[dict[str, Any]]:
    return as_objects(bundle.messages)


def message_date(message: dict[str, Any]) -> datetime | None:
    return pick(
        as_datetime,
        (message, ("date_created",)),
        (message, ("date",)),
        (message, ("message_date", "created")),
    )


def message_sender(message: dict[str, Any]) -> str | None:
    return pick(
        as_str,
        (message, ("sender_role",)),
        (message, ("from", "role")),
        (message, ("role",)),
    )


def is_moderated(message: dict[str, Any]) -> bool:
    status = pick(
        as_str,
        (message, ("message_moderation", "status")),
        (message, ("moderation", "status")),
        (message, ("status",)),
    )
    return status is not None and status.lower() in {"moderated", "rejected"}


def is_mediation(bundle: EnrichedClaim) -> bool:
    claim = bundle.claim
    if as_str(claim.get("type")) == "mediations" or as_str(claim.get("stage")) == "dispute":
        return True
    return find_player(claim, "mediator") is not None


def is_exchange(bundle: EnrichedClaim) -> bool:
    subtype = as_str(dig(bundle.return_details, ("subtype",)))
    if subtype is not None and "change" in subtype.lower():
        return True
    related = dig(bundle.claim, ("related_entities",))
    return isinstance(related, list) and "change" in related


def claimed_amount(bundle: EnrichedClaim) -> float | None:
    return pick(
        as_float,
        (bundle.claim, ("seller_amount",)),
        (bundle.claim, ("claimed_amount",)),
        (bundle.claim, ("amount", "value")),
        (bundle.order, ("total_amount",)),
        (bundle.order, ("paid_amount",)),
    )


def created_at(bundle: EnrichedClaim) -> datetime | None:
    return as_datetime(bundle.claim.get("date_created"))


def closed_at(bundle: EnrichedClaim) -> datetime | None:
    return pick(
        as_datetime,
        (bundle.claim, ("resolution", "date_created")),
        (bundle.claim, ("date_closed",)),
        (bundle.return_details, ("date_closed",)),
        (bundle.return_details, ("closed_at",)),
    )


def first_order_item(bundle: EnrichedClaim) -> dict[str, Any] | None:
    items = as_objects(dig(bundle.order, ("order_items",)))
    return items[0] if items else None


def first_payment(bundle: EnrichedClaim) -> dict[str, Any] | None:
    payments = as_objects(dig(bundle.order, ("payments",)))
    return payments[0] if payments else None


def first_return_shipment(bundle: EnrichedClaim) -> dict[str, Any] | None:
    shipments = as_objects(dig(bundle.return_details, ("shipments",)))
    return shipments[0] if shipments else None
