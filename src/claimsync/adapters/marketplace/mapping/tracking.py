"""Shipment and tracking fields."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from claimsync.domain.model import TrackingEvent, TrackingFields

from . import signals
from .extract import as_datetime, as_objects, as_str, dig, pick

if TYPE_CHECKING:
    from datetime import datetime

    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext

SHIPMENT_HISTORY_KEY = "shipping_history"
DELAY_MARKERS = ("delay", "delayed", "late")


def tracking_event(entry: dict[str, Any]) -> TrackingEvent:
    return TrackingEvent(
        at=pick(
            as_datetime,
            (entry, ("date",)),
            (entry, ("checkpoint_date",)),
            (entry, ("date_created",)),
        ),
        status=pick(as_str, (entry, ("status",)), (entry, ("checkpoint_status",))),
        substatus=pick(as_str, (entry, ("substatus",)), (entry, ("checkpoint_substatus",))),
        location=pick(
            as_str,
            (entry, ("location",)),
            (entry, ("checkpoint_description",)),
            (entry, ("tracking", "location")),
        ),
        description=pick(
            as_str,
            (entry, ("description",)),
            (entry, ("tracking", "description")),
            (entry, ("checkpoint_description",)),
        ),
    )


def history_events(bundle: EnrichedClaim) -> tuple[TrackingEvent, ...]:
    """Shipment history oldest first; undated entries keep their place at the front."""

    entries = as_objects(dig(bundle.order, (SHIPMENT_HISTORY_KEY,)))
    events = [tracking_event(entry) for entry in entries]
    undated = [event for event in events if event.at is None]
    dated = [(moment, event) for event in events if (moment := event.at) is not None]
    dated.sort(key=lambda pair: pair[0])
    return (*undated, *(event for _, event in dated))


def _is_delay(event: TrackingEvent, estimated: datetime | None) -> bool:
    markers = " ".join(filter(None, (event.status, event.substatus))).lower()
    if any(marker in markers for marker in DELAY_MARKERS):
        return True
    return estimated is not None and event.at is not None and event.at > estimated


def transit_days(events: tuple[TrackingEvent, ...]) -> int | None:
    dated = [event.at for event in events if event.at is not None]
    if len(dated) < 2:
        return None
    return math.ceil((dated[-1] - dated[0]).total_seconds() / 86400)


def map_tracking(bundle: EnrichedClaim, context: MappingContext) -> TrackingFields:
    _ = context
    order = bundle.order
    returns = bundle.return_details
    return_shipment = signals.first_return_shipment(bundle)

    events = history_events(bundle)
    latest = events[-1] if events else None
    estimated = pick(
        as_datetime,
        (returns, ("estimated_delivery_date",)),
        (returns, ("estimated_delivery_limit", "date")),
        (order, ("shipping", "estimated_delivery_time", "date")),
    )
    delays = tuple(event for event in events if _is_delay(event, estimated))
    last_movement = latest.at if latest is not None else None

    has_delay: bool | None
    if delays:
        has_delay = True
    elif estimated is not None and last_movement is not None:
        has_delay = last_movement > estimated
    else:
        has_delay = None

    return TrackingFields(
        shipment_id=pick(as_str, (order, ("shipping", "id")), (order, ("shipping_id",))),
        return_shipment_id=pick(
            as_str, (return_shipment, ("shipment_id",)), (return_shipment, ("id",))
        ),
        tracking_number=pick(
            as_str,
            (returns, ("tracking_number",)),
            (return_shipment, ("tracking_number",)),
            (order, ("shipping", "tracking_number")),
        ),
        carrier=pick(
            as_str,
            (return_shipment, ("carrier",)),
            (returns, ("tracking_method",)),
            (order, ("shipping", "tracking_method")),
        ),
        shipment_status=pick(
            as_str, (return_shipment, ("status",)), (order, ("shipping", "status"))
        ),
        logistic_type=pick(
            as_str,
            (order, ("shipping", "logistic_type")),
            (bundle.claim, ("shipping", "logistic_type")),
        ),
        transit_status=(latest.status if latest is not None else None)
        or as_str(dig(returns, ("status",))),
        current_location=latest.location if latest is not None else None,
        last_movement_at=last_movement,
        estimated_delivery_at=estimated,
        transit_days=transit_days(events),
        has_delay=has_delay,
        location_history=events,
        delay_events=delays,
    )
