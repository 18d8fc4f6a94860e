"""Payload builders, fakes and seeding helpers for claim pipeline tests."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
from sqlalchemy import insert

from claimsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from claimsync.adapters.sqlalchemy.mappings import (
    integration_account_table,
    integration_secret_table,
    profile_table,
)
from claimsync.config.http_resilience import RetryPolicy
from claimsync.config.marketplace import (
    MarketplaceConfig,
    build_api_resilience,
    build_reference_resilience,
)
from claimsync.config.sync import HeuristicThresholds
from claimsync.domain.model import AccountCredentials, Claim, EnrichedClaim, IdentityFields

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.engine import Engine

    from claimsync.domain.model import Payload

ORG_ID = "0b6f3c1e-5d1a-4c59-8a2e-2f7f1b9d0a11"
OTHER_ORG_ID = "9e1d2c3b-4a5f-4e6d-8c7b-1a2b3c4d5e6f"
ACCOUNT_A = "5f0c7a2e-1b3d-4e8f-9a6b-0c1d2e3f4a5b"
ACCOUNT_B = "7a8b9c0d-1e2f-4a3b-8c5d-6e7f8a9b0c1d"
USER_ID = "3c4d5e6f-7a8b-4c9d-8e0f-1a2b3c4d5e6f"
SELLER_A = "111222333"
SELLER_B = "444555666"

# Declared as JSON, but the bytes are not valid UTF-8.
UNDECODABLE_JSON = b'{"id": "\xff"}'
JSON_HEADERS = {"Content-Type": "application/json"}

THRESHOLDS = HeuristicThresholds()

type Handler = Callable[[httpx.Request], httpx.Response]


def make_claim_payload(
    claim_id: str | int,
    *,
    order_id: str | int | None = 2000000000,
    reason_id: str | None = "PDD9939",
    date_created: str = "2025-01-10T12:00:00.000-03:00",
    status: str = "opened",
    stage: str = "claim",
    claim_type: str = "returns",
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": claim_id,
        "resource": "order",
        "resource_id": order_id,
        "reason_id": reason_id,
        "status": status,
        "stage": stage,
        "type": claim_type,
        "date_created": date_created,
        "last_updated": date_created,
        "site_id": "MLB",
        "players": [
            {"role": "complainant", "type": "buyer", "user_id": 987654},
            {
                "role": "respondent",
                "type": "seller",
                "user_id": int(SELLER_A),
                "available_actions": [
                    {"action": "refund", "mandatory": True, "due_date": "2025-01-13T12:00:00Z"}
                ],
            },
        ],
    }
    payload.update(extra)
    return payload


def make_return_payload(
    return_id: str | int | None = 55501,
    *,
    status: str = "shipped",
    subtype: str = "return_partial",
    shipments: Sequence[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": return_id,
        "status": status,
        "subtype": subtype,
        "shipments": list(shipments)
        if shipments is not None
        else [
            {
                "shipment_id": 44001,
                "status": "shipped",
                "tracking_number": "BR123456789",
                "type": "return",
            }
        ],
    }
    payload.update(extra)
    return payload


def make_order_payload(
    order_id: str | int = 2000000000, *, item_id: str = "MLB123", **extra: Any
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": order_id,
        "currency_id": "BRL",
        "total_amount": 199.9,
        "paid_amount": 214.9,
        "tags": ["paid", "delivered"],
        "internal_tags": ["return_in_progress"],
        "pack_id": None,
        "shipping": {"id": 43001},
        "buyer": {
            "id": 987654,
            "nickname": "COMPRADOR01",
            "first_name": "Ana",
            "last_name": "Souza",
        },
        "seller": {"id": int(SELLER_A)},
        "order_items": [
            {
                "item": {"id": item_id, "title": "Fone Bluetooth", "seller_sku": "FONE-01"},
                "quantity": 1,
                "unit_price": 199.9,
                "sale_fee": 22.5,
            }
        ],
        "payments": [
            {
                "id": 1,
                "payment_method_id": "pix",
                "transaction_amount": 199.9,
                "shipping_cost": 15.0,
                "transaction_amount_refunded": 0,
            }
        ],
    }
    payload.update(extra)
    return payload


def make_message(
    sender_role: str,
    text: str,
    date_created: str,
    *,
    read: bool = True,
    attachments: int = 0,
    moderation: str = "clean",
) -> dict[str, Any]:
    return {
        "sender_role": sender_role,
        "message": text,
        "date_created": date_created,
        "date_read": date_created if read else None,
        "attachments": [{"filename": f"file-{index}.jpg"} for index in range(attachments)],
        "message_moderation": {"status": moderation},
    }


def make_enriched_claim(
    claim_id: str | int = 5001,
    *,
    claim: dict[str, Any] | None = None,
    return_details: dict[str, Any] | None = None,
    order: dict[str, Any] | None = None,
    messages: list[Payload] | None = None,
    product: dict[str, Any] | None = None,
    reason: dict[str, Any] | None = None,
    seller: dict[str, Any] | None = None,
    fetched_at: datetime | None = None,
) -> EnrichedClaim:
    return EnrichedClaim(
        claim=claim if claim is not None else make_claim_payload(claim_id),
        return_details=return_details,
        order=order,
        messages=messages,
        product=product,
        reason=reason,
        seller=seller,
        fetched_at=fetched_at or datetime(2025, 1, 20, 12, tzinfo=UTC),
    )


def make_claim(
    claim_id: str = "5001",
    *,
    account_id: str = ACCOUNT_A,
    organization_id: str = ORG_ID,
    date_created: datetime | None = None,
    status: str = "opened",
) -> Claim:
    return Claim(
        organization_id=organization_id,
        integration_account_id=account_id,
        claim_id=claim_id,
        identity=IdentityFields(
            order_id="2000000000",
            status=status,
            date_created=date_created or datetime(2025, 1, 10, 15, tzinfo=UTC),
        ),
    )


def make_credentials(
    account_id: str = ACCOUNT_A, *, seller_id: str = SELLER_A, organization_id: str = ORG_ID
) -> AccountCredentials:
    return AccountCredentials(
        account_id=account_id,
        access_token=f"APP_USR-{account_id[:8]}",
        seller_id=seller_id,
        account_name="Loja Principal",
        organization_id=organization_id,
    )


def encode_simple_tokens(access_token: str, **extra: str) -> str:
    document = json.dumps({"access_token": access_token, **extra})
    return "SALT2024::" + base64.b64encode(document.encode("utf-8")).decode("ascii")


def seed_account(
    engine: Engine,
    account_id: str = ACCOUNT_A,
    *,
    seller_id: str = SELLER_A,
    organization_id: str = ORG_ID,
    is_active: bool = True,
    access_token: str | None = "APP_USR-stored",
    use_simple: bool = False,
    simple_tokens: str | None = None,
) -> None:
    with engine.begin() as connection:
        connection.execute(
            insert(integration_account_table).values(
                id=account_id,
                account_identifier=seller_id,
                name=f"Conta {seller_id}",
                is_active=is_active,
                organization_id=organization_id,
            )
        )
        if access_token is not None or simple_tokens is not None:
            connection.execute(
                insert(integration_secret_table).values(
                    integration_account_id=account_id,
                    provider="mercadolivre",
                    access_token=access_token,
                    use_simple=use_simple,
                    simple_tokens=simple_tokens,
                )
            )


def seed_profile(engine: Engine, user_id: str = USER_ID, organization_id: str = ORG_ID) -> None:
    with engine.begin() as connection:
        connection.execute(
            insert(profile_table).values(id=user_id, organization_id=organization_id)
        )


def fast_retry() -> RetryPolicy:
    return RetryPolicy.from_attempts(3, base_delay_seconds=0.0, jitter=0.0)


def make_marketplace_config(*, page_size: int = 50, batch_size: int = 10) -> MarketplaceConfig:
    return MarketplaceConfig(
        base_url="https://marketplace.test",
        page_size=page_size,
        batch_size=batch_size,
        api=build_api_resilience(base_url="https://marketplace.test", retry=fast_retry()),
        reference=build_reference_resilience(
            base_url="https://marketplace.test", retry=fast_retry()
        ),
    )


def make_client_factory(handler: Handler) -> Callable[[ResilienceConfig], ResilientClient]:
    """Build ``ResilientClient`` instances whose wire traffic goes to ``handler``."""

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    return factory


@dataclass
class FakeMarketplaceApi:
    """Routes marketplace paths to canned payloads and records every request."""

    claims: list[dict[str, Any]] = field(default_factory=list)
    returns: dict[str, dict[str, Any] | None] = field(default_factory=dict)
    orders: dict[str, dict[str, Any]] = field(default_factory=dict)
    messages: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    items: dict[str, dict[str, Any]] = field(default_factory=dict)
    shipment_histories: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    reasons: dict[str, dict[str, Any]] = field(default_factory=dict)
    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    failing_paths: set[str] = field(default_factory=set)
    undecodable_paths: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failing_paths:
            return httpx.Response(500, json={"message": "internal_error"})
        if path in self.undecodable_paths:
            return httpx.Response(200, content=UNDECODABLE_JSON, headers=JSON_HEADERS)

        parts = path.strip("/").split("/")
        if path == "/post-purchase/v1/claims/search":
            offset = int(request.url.params.get("offset", "0"))
            limit = int(request.url.params.get("limit", "50"))
            page = self.claims[offset : offset + limit]
            return httpx.Response(
                200,
                json={
                    "paging": {"total": len(self.claims), "offset": offset, "limit": limit},
                    "data": page,
                },
            )
        if parts[:3] == ["post-purchase", "v2", "claims"] and parts[-1] == "returns":
            return self._lookup(self.returns, parts[3])
        if parts[:4] == ["post-purchase", "v1", "claims", "reasons"]:
            return self._lookup(self.reasons, parts[4])
        if parts[:3] == ["post-purchase", "v1", "claims"] and parts[-1] == "messages":
            return self._lookup(self.messages, parts[3])
        if parts[0] == "orders":
            return self._lookup(self.orders, parts[1])
        if parts[0] == "items":
            return self._lookup(self.items, parts[1])
        if parts[0] == "shipments" and parts[-1] == "history":
            return self._lookup(self.shipment_histories, parts[1])
        if parts[0] == "users":
            return self._lookup(self.users, parts[1])
        return httpx.Response(404, json={"message": "not_found"})

    @staticmethod
    def _lookup(table: dict[str, Any], key: str) -> httpx.Response:
        payload = table.get(key)
        if payload is None:
            return httpx.Response(404, json={"message": "not_found"})
        return httpx.Response(200, json=payload)
