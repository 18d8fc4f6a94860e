"""Identity and classification fields."""

from __future__ import annotations

from typing import TYPE_CHECKING

from claimsync.domain.model import ComplexityLevel, IdentityFields

from . import signals
from .extract import as_datetime, as_int, as_str, dig, pick
from .reasons import classify_reason_id

if TYPE_CHECKING:
    from claimsync.config.sync import HeuristicThresholds
    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext


def complexity_score(bundle: EnrichedClaim, thresholds: HeuristicThresholds) -> int:
    score = 0
    if len(signals.messages(bundle)) > thresholds.complex_message_count:
        score += 1
    amount = signals.claimed_amount(bundle)
    if amount is not None and amount > thresholds.complex_claimed_amount:
        score += 1
    if signals.is_mediation(bundle):
        score += 1
    if signals.is_exchange(bundle):
        score += 1
    return score


def complexity_level(score: int, thresholds: HeuristicThresholds) -> ComplexityLevel:
    if score >= thresholds.complexity_high_score:
        return ComplexityLevel.HIGH
    if score >= thresholds.complexity_medium_score:
        return ComplexityLevel.MEDIUM
    return ComplexityLevel.LOW


def map_identity(bundle: EnrichedClaim, context: MappingContext) -> IdentityFields:
    claim = bundle.claim
    order = bundle.order
    returns = bundle.return_details
    reason = bundle.reason
    item = signals.first_order_item(bundle)

    reason_id = context.reason_id or as_str(claim.get("reason_id"))
    fallback = classify_reason_id(reason_id)
    score = complexity_score(bundle, context.thresholds)

    return IdentityFields(
        order_id=pick(as_str, (claim, ("resource_id",)), (claim, ("order_id",)), (order, ("id",))),
        return_id=as_str(dig(returns, ("id",))),
        account_name=context.account_name,
        claim_type=as_str(claim.get("type")),
        status=as_str(claim.get("status")),
        stage=as_str(claim.get("stage")),
        return_status=as_str(dig(returns, ("status",))),
        return_subtype=as_str(dig(returns, ("subtype",))),
        date_created=signals.created_at(bundle),
        last_updated=pick(as_datetime, (claim, ("last_updated",)), (claim, ("date_last_updated",))),
        date_closed=signals.closed_at(bundle),
        reason_id=reason_id,
        reason_category=pick(as_str, (reason, ("category",)), (reason, ("reason_category",)))
        or fallback.category,
        reason_name=pick(as_str, (reason, ("name",)), (reason, ("reason_name",))) or fallback.label,
        reason_detail=pick(as_str, (reason, ("detail",)), (reason, ("reason_detail",))),
        reason_priority=fallback.priority,
        complexity_score=score,
        complexity_level=complexity_level(score, context.thresholds),
        problem_category=pick(as_str, (reason, ("flow",)), (reason, ("reason_flow",))),
        item_id=pick(as_str, (item, ("item", "id")), (bundle.product, ("id",))),
        product_title=pick(as_str, (bundle.product, ("title",)), (item, ("item", "title"))),
        sku=pick(
            as_str,
            (bundle.product, ("seller_custom_field",)),
            (bundle.product, ("seller_sku",)),
            (item, ("item", "seller_sku")),
            (item, ("item", "seller_custom_field")),
        ),
        quantity=pick(
            as_int,
            (returns, ("quantity",)),
            (item, ("quantity",)),
            (claim, ("quantity",)),
        ),
    )
