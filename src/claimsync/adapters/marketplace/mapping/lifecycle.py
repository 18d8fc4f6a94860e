"""Pack membership, cancellation details and custom fields."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from claimsync.domain.model import LifecycleFields

from .extract import as_datetime, as_str, first_present, pick

if TYPE_CHECKING:
    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext

CUSTOM_FIELD_PATHS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("site_id", ("site_id",)),
    ("resource", ("resource",)),
    ("fulfilled", ("fulfilled",)),
    ("quantity_type", ("quantity_type",)),
    ("parent_id", ("parent_id",)),
)


def map_lifecycle(bundle: EnrichedClaim, context: MappingContext) -> LifecycleFields:
    _ = context
    claim = bundle.claim
    order = bundle.order

    pack_id = pick(as_str, (order, ("pack_id",)), (claim, ("pack_id",)))
    custom: dict[str, Any] = {}
    for name, path in CUSTOM_FIELD_PATHS:
        value = first_present((claim, path))
        if value is not None:
            custom[name] = value
    channel = pick(as_str, (order, ("context", "channel")))
    if channel is not None:
        custom["order_channel"] = channel

    return LifecycleFields(
        pack_id=pack_id,
        is_pack=pack_id is not None if order is not None else None,
        cancellation_code=pick(as_str, (order, ("cancel_detail", "code"))),
        cancellation_reason=pick(
            as_str,
            (order, ("cancel_detail", "description")),
            (order, ("cancel_detail", "reason")),
        ),
        cancellation_requested_by=pick(as_str, (order, ("cancel_detail", "requested_by"))),
        cancelled_at=pick(as_datetime, (order, ("cancel_detail", "date"))),
        custom_fields=custom or None,
    )
