"""Tags, SLA timings, heuristic classifications and the seller reputation snapshot."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from claimsync.domain.model import CommunicationQuality, QualityFields, ResolutionEfficiency

from . import signals
from .extract import as_datetime, as_object, as_str, as_str_tuple, dig, find_player, pick

if TYPE_CHECKING:
    from claimsync.config.sync import HeuristicThresholds
    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext


def communication_quality(
    bundle: EnrichedClaim, thresholds: HeuristicThresholds
) -> CommunicationQuality | None:
    """Share of messages that passed moderation; ``None`` for an empty thread."""

    messages = signals.messages(bundle)
    if not messages:
        return None
    clean = sum(1 for message in messages if not signals.is_moderated(message))
    percentage = clean / len(messages) * 100
    if percentage >= thresholds.quality_excellent_pct:
        return CommunicationQuality.EXCELLENT
    if percentage >= thresholds.quality_good_pct:
        return CommunicationQuality.GOOD
    if percentage >= thresholds.quality_moderate_pct:
        return CommunicationQuality.MODERATE
    return CommunicationQuality.POOR


def resolution_efficiency(
    hours: float | None, thresholds: HeuristicThresholds
) -> ResolutionEfficiency:
    if hours is None:
        return ResolutionEfficiency.PENDING
    if hours <= thresholds.fast_resolution_hours:
        return ResolutionEfficiency.FAST
    if hours <= thresholds.normal_resolution_hours:
        return ResolutionEfficiency.NORMAL
    return ResolutionEfficiency.SLOW


def map_quality(bundle: EnrichedClaim, context: MappingContext) -> QualityFields:
    claim = bundle.claim
    order = bundle.order
    seller = bundle.seller
    respondent = find_player(claim, "respondent")

    created = signals.created_at(bundle)
    closed = signals.closed_at(bundle)
    hours: float | None = None
    days: int | None = None
    if created is not None and closed is not None and closed >= created:
        elapsed = (closed - created).total_seconds()
        hours = round(elapsed / 3600, 2)
        days = math.ceil(elapsed / 86400)

    reputation = as_object(dig(seller, ("seller_reputation",)))
    return QualityFields(
        internal_tags=as_str_tuple(dig(order, ("internal_tags",))),
        order_tags=as_str_tuple(dig(order, ("tags",))),
        respondent_action=pick(as_str, (respondent, ("available_actions", 0, "action"))),
        respondent_due_at=pick(as_datetime, (respondent, ("available_actions", 0, "due_date"))),
        days_to_resolution=days,
        hours_to_resolution=hours,
        communication_quality=communication_quality(bundle, context.thresholds),
        resolution_efficiency=resolution_efficiency(hours, context.thresholds),
        seller_reputation_level=pick(as_str, (reputation, ("level_id",))),
        seller_power_status=pick(as_str, (reputation, ("power_seller_status",))),
        seller_reputation=reputation,
        reputation_fetched_at=bundle.fetched_at if seller is not None else None,
    )
