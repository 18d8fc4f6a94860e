"""Fallback classification of claim reasons by id prefix."""

from __future__ import annotations

from dataclasses import dataclass

from claimsync.domain.model import ReasonPriority


@dataclass(slots=True, frozen=True)
class ReasonClass:
    category: str
    label: str
    priority: ReasonPriority


NOT_RECEIVED = ReasonClass("not_received", "Product not received", ReasonPriority.HIGH)
DEFECTIVE_OR_DIFFERENT = ReasonClass(
    "defective_or_different", "Product defective or different", ReasonPriority.HIGH
)
CANCELLATION = ReasonClass("cancellation", "Purchase cancellation", ReasonPriority.MEDIUM)
OTHER = ReasonClass("other", "Other", ReasonPriority.MEDIUM)

PREFIX_TABLE: tuple[tuple[str, ReasonClass], ...] = (
    ("PNR", NOT_RECEIVED),
    ("PDD", DEFECTIVE_OR_DIFFERENT),
    ("CS", CANCELLATION),
)


def classify_reason_id(reason_id: str | None) -> ReasonClass:
    if reason_id:
        normalized = reason_id.strip().upper()
        for prefix, reason_class in PREFIX_TABLE:
            if normalized.startswith(prefix):
                return reason_class
    return OTHER
