"""Canonical claim record and the intermediate shapes that feed it.

Every mapping group is its own frozen dataclass whose fields all default to ``None``
(or an empty tuple for sequences), so a mapped claim always carries the full set of
attributes even when the source payloads are sparse.
"""

from __future__ import annotations

from collections.abc import Mapping  # noqa: TC003
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from enum import StrEnum
from typing import Any

type Payload = Mapping[str, Any]


class ClaimSource(StrEnum):
    CACHE = "cache"
    LIVE = "live"


class ReasonPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"


class ComplexityLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CommunicationQuality(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"


class ResolutionEfficiency(StrEnum):
    FAST = "fast"
    NORMAL = "normal"
    SLOW = "slow"
    PENDING = "pending"


@dataclass(slots=True, frozen=True)
class IntegrationAccount:
    """A marketplace seller account connected by an organisation."""

    id: str
    seller_id: str
    name: str | None
    is_active: bool
    organization_id: str


@dataclass(slots=True, frozen=True)
class AccountCredentials:
    account_id: str
    access_token: str
    seller_id: str
    account_name: str | None = None
    organization_id: str | None = None

    def __repr__(self) -> str:
        return f"AccountCredentials(account_id={self.account_id!r}, seller_id={self.seller_id!r})"


@dataclass(slots=True)
class EnrichedClaim:
    """A listed claim plus every sub-resource fetched for it.

    Sub-resources are ``None`` when the lookup was skipped or failed softly.
    """

    claim: Payload
    return_details: Payload | None = None
    order: dict[str, Any] | None = None
    messages: list[Payload] | None = None
    product: Payload | None = None
    reason: Payload | None = None
    seller: Payload | None = None
    fetched_at: datetime | None = None

    @property
    def claim_id(self) -> str:
        return str(self.claim.get("id"))


@dataclass(slots=True, frozen=True, kw_only=True)
class IdentityFields:
    order_id: str | None = None
    return_id: str | None = None
    account_name: str | None = None
    claim_type: str | None = None
    status: str | None = None
    stage: str | None = None
    return_status: str | None = None
    return_subtype: str | None = None
    date_created: datetime | None = None
    last_updated: datetime | None = None
    date_closed: datetime | None = None
    reason_id: str | None = None
    reason_category: str | None = None
    reason_name: str | None = None
    reason_detail: str | None = None
    reason_priority: ReasonPriority | None = None
    complexity_score: int | None = None
    complexity_level: ComplexityLevel | None = None
    problem_category: str | None = None
    item_id: str | None = None
    product_title: str | None = None
    sku: str | None = None
    quantity: int | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class FinancialFields:
    currency_id: str | None = None
    claimed_amount: float | None = None
    refunded_amount: float | None = None
    unit_price: float | None = None
    shipping_cost: float | None = None
    marketplace_fee: float | None = None
    return_shipping_cost: float | None = None
    total_cost: float | None = None
    refund_percentage: float | None = None
    payment_method: str | None = None
    refund_at: datetime | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class CommunicationFields:
    message_count: int | None = None
    last_message_at: datetime | None = None
    last_message_sender: str | None = None
    unread_count: int | None = None
    attachment_count: int | None = None
    buyer_attachment_count: int | None = None
    seller_attachment_count: int | None = None
    last_buyer_message: str | None = None
    last_seller_message: str | None = None
    moderated_count: int | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class TrackingEvent:
    at: datetime | None = None
    status: str | None = None
    substatus: str | None = None
    location: str | None = None
    description: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class TrackingFields:
    shipment_id: str | None = None
    return_shipment_id: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    shipment_status: str | None = None
    logistic_type: str | None = None
    transit_status: str | None = None
    current_location: str | None = None
    last_movement_at: datetime | None = None
    estimated_delivery_at: datetime | None = None
    transit_days: int | None = None
    has_delay: bool | None = None
    location_history: tuple[TrackingEvent, ...] = ()
    delay_events: tuple[TrackingEvent, ...] = ()


@dataclass(slots=True, frozen=True, kw_only=True)
class ContextualFields:
    in_mediation: bool | None = None
    mediator_id: str | None = None
    mediation_result: str | None = None
    is_exchange: bool | None = None
    exchange_order_id: str | None = None
    exchange_shipment_id: str | None = None
    buyer_id: str | None = None
    buyer_nickname: str | None = None
    buyer_name: str | None = None
    seller_id: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class QualityFields:
    internal_tags: tuple[str, ...] = ()
    order_tags: tuple[str, ...] = ()
    respondent_action: str | None = None
    respondent_due_at: datetime | None = None
    days_to_resolution: int | None = None
    hours_to_resolution: float | None = None
    communication_quality: CommunicationQuality | None = None
    resolution_efficiency: ResolutionEfficiency | None = None
    seller_reputation_level: str | None = None
    seller_power_status: str | None = None
    seller_reputation: dict[str, Any] | None = None
    reputation_fetched_at: datetime | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class LifecycleFields:
    """Pack membership, cancellation and free-form custom fields."""

    pack_id: str | None = None
    is_pack: bool | None = None
    cancellation_code: str | None = None
    cancellation_reason: str | None = None
    cancellation_requested_by: str | None = None
    cancelled_at: datetime | None = None
    custom_fields: dict[str, Any] | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class RawPayloads:
    """Unmodified source payloads, kept for audit only."""

    order: dict[str, Any] | None = None
    claim: dict[str, Any] | None = None
    messages: list[dict[str, Any]] | None = None
    return_details: dict[str, Any] | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class Claim:
    """Canonical claim record, unique per ``(organization, account, claim)``."""

    organization_id: str
    integration_account_id: str
    claim_id: str
    identity: IdentityFields = field(default_factory=IdentityFields)
    financial: FinancialFields = field(default_factory=FinancialFields)
    communication: CommunicationFields = field(default_factory=CommunicationFields)
    tracking: TrackingFields = field(default_factory=TrackingFields)
    contextual: ContextualFields = field(default_factory=ContextualFields)
    quality: QualityFields = field(default_factory=QualityFields)
    lifecycle: LifecycleFields = field(default_factory=LifecycleFields)
    raw: RawPayloads = field(default_factory=RawPayloads)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.organization_id, self.integration_account_id, self.claim_id)

    @property
    def date_created(self) -> datetime | None:
        return self.identity.date_created


@dataclass(slots=True, frozen=True)
class StoredSecret:
    """Secret material persisted for an account, as the store holds it (still encoded)."""

    access_token: str | None = None
    simple_tokens: str | None = None
    use_simple: bool = False

    def __repr__(self) -> str:
        return f"StoredSecret(use_simple={self.use_simple!r})"


@dataclass(slots=True, frozen=True)
class CacheEntry:
    claim: Claim
    cached_at: datetime
    ttl_expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return self.ttl_expires_at > now
