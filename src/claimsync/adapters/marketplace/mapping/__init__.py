"""Field mapping from an enriched bundle to the canonical :class:`Claim`.

The mapper is a pure function of its inputs: the same bundle always yields the
same record, so re-syncing a claim never produces spurious changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from claimsync.domain.model import Claim

from .communication import map_communication
from .contextual import map_contextual
from .financial import map_financial
from .identity import map_identity
from .lifecycle import map_lifecycle
from .quality import map_quality
from .raw import map_raw
from .signals import MappingContext
from .tracking import SHIPMENT_HISTORY_KEY, map_tracking

if TYPE_CHECKING:
    from claimsync.config.sync import HeuristicThresholds
    from claimsync.domain.model import EnrichedClaim


def map_claim(
    enriched: EnrichedClaim,
    account_id: str,
    account_name: str | None,
    reason_id: str | None,
    *,
    organization_id: str,
    thresholds: HeuristicThresholds,
) -> Claim:
    context = MappingContext(
        organization_id=organization_id,
        account_id=account_id,
        account_name=account_name,
        reason_id=reason_id,
        thresholds=thresholds,
    )
    return Claim(
        organization_id=organization_id,
        integration_account_id=account_id,
        claim_id=enriched.claim_id,
        identity=map_identity(enriched, context),
        financial=map_financial(enriched, context),
        communication=map_communication(enriched, context),
        tracking=map_tracking(enriched, context),
        contextual=map_contextual(enriched, context),
        quality=map_quality(enriched, context),
        lifecycle=map_lifecycle(enriched, context),
        raw=map_raw(enriched, context),
    )


__all__ = ["SHIPMENT_HISTORY_KEY", "MappingContext", "map_claim"]
