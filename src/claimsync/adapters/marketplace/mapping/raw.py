"""Raw payload passthrough."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from claimsync.domain.model import RawPayloads

from .extract import as_object, as_objects
from .tracking import SHIPMENT_HISTORY_KEY

if TYPE_CHECKING:
    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext


def map_raw(bundle: EnrichedClaim, context: MappingContext) -> RawPayloads:
    """Deep copies of the payloads as the API sent them (enrichment additions removed)."""

    _ = context
    order = as_object(bundle.order)
    if order is not None:
        order.pop(SHIPMENT_HISTORY_KEY, None)
    messages = as_objects(bundle.messages) if bundle.messages is not None else None
    return RawPayloads(
        order=copy.deepcopy(order),
        claim=copy.deepcopy(as_object(bundle.claim)),
        messages=copy.deepcopy(messages),
        return_details=copy.deepcopy(as_object(bundle.return_details)),
    )
