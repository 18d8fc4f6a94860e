"""Mediation, exchange and buyer context."""

from __future__ import annotations

from typing import TYPE_CHECKING

from claimsync.domain.model import ContextualFields

from . import signals
from .extract import as_str, find_player, pick

if TYPE_CHECKING:
    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext


def _buyer_name(first: str | None, last: str | None) -> str | None:
    joined = " ".join(part for part in (first, last) if part)
    return joined or None


def map_contextual(bundle: EnrichedClaim, context: MappingContext) -> ContextualFields:
    _ = context
    claim = bundle.claim
    order = bundle.order
    returns = bundle.return_details
    mediator = find_player(claim, "mediator")
    claimant = find_player(claim, "claimant") or find_player(claim, "complainant")
    respondent = find_player(claim, "respondent")
    in_mediation = signals.is_mediation(bundle)
    is_exchange = signals.is_exchange(bundle)

    return ContextualFields(
        in_mediation=in_mediation,
        mediator_id=pick(as_str, (mediator, ("user_id",)), (mediator, ("id",))),
        mediation_result=pick(
            as_str,
            (claim, ("resolution", "reason")),
            (claim, ("resolution", "status")),
        )
        if in_mediation
        else None,
        is_exchange=is_exchange,
        exchange_order_id=pick(
            as_str,
            (returns, ("change", "new_order_id")),
            (returns, ("exchange", "order_id")),
            (claim, ("change", "new_order_id")),
        )
        if is_exchange
        else None,
        exchange_shipment_id=pick(
            as_str,
            (returns, ("change", "new_shipment_id")),
            (returns, ("exchange", "shipment_id")),
            (claim, ("change", "new_shipment_id")),
        )
        if is_exchange
        else None,
        buyer_id=pick(as_str, (claimant, ("user_id",)), (order, ("buyer", "id"))),
        buyer_nickname=pick(as_str, (order, ("buyer", "nickname")), (claimant, ("nickname",))),
        buyer_name=_buyer_name(
            pick(as_str, (order, ("buyer", "first_name"))),
            pick(as_str, (order, ("buyer", "last_name"))),
        ),
        seller_id=pick(as_str, (respondent, ("user_id",)), (order, ("seller", "id"))),
    )
