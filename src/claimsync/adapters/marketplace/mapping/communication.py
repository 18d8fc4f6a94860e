"""Message-thread statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from claimsync.domain.model import CommunicationFields

from . import signals
from .extract import as_objects, as_str, pick

if TYPE_CHECKING:
    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext

BUYER_ROLES = frozenset({"claimant", "complainant", "buyer"})
SELLER_ROLES = frozenset({"respondent", "seller"})


def _chronological(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Order by date, undated messages first; the sort is stable so ties keep API order."""

    undated = [message for message in messages if signals.message_date(message) is None]
    dated = [
        (moment, message)
        for message in messages
        if (moment := signals.message_date(message)) is not None
    ]
    dated.sort(key=lambda pair: pair[0])
    return undated + [message for _, message in dated]


def _is_unread(message: dict[str, Any]) -> bool:
    if "date_read" in message:
        return message.get("date_read") is None
    return message.get("read") is False


def _text(message: dict[str, Any]) -> str | None:
    return pick(as_str, (message, ("message",)), (message, ("text",)), (message, ("content",)))


def map_communication(bundle: EnrichedClaim, context: MappingContext) -> CommunicationFields:
    _ = context
    if bundle.messages is None:
        return CommunicationFields()

    ordered = _chronological(signals.messages(bundle))
    if not ordered:
        return CommunicationFields(
            message_count=0,
            unread_count=0,
            attachment_count=0,
            buyer_attachment_count=0,
            seller_attachment_count=0,
            moderated_count=0,
        )

    buyer_attachments = 0
    seller_attachments = 0
    total_attachments = 0
    last_buyer: str | None = None
    last_seller: str | None = None
    for message in ordered:
        attachments = len(as_objects(message.get("attachments")))
        total_attachments += attachments
        role = (signals.message_sender(message) or "").lower()
        if role in BUYER_ROLES:
            buyer_attachments += attachments
            last_buyer = _text(message) or last_buyer
        elif role in SELLER_ROLES:
            seller_attachments += attachments
            last_seller = _text(message) or last_seller

    last = ordered[-1]
    return CommunicationFields(
        message_count=len(ordered),
        last_message_at=signals.message_date(last),
        last_message_sender=signals.message_sender(last),
        unread_count=sum(1 for message in ordered if _is_unread(message)),
        attachment_count=total_attachments,
        buyer_attachment_count=buyer_attachments,
        seller_attachment_count=seller_attachments,
        last_buyer_message=last_buyer,
        last_seller_message=last_seller,
        moderated_count=sum(1 for message in ordered if signals.is_moderated(message)),
    )
