"""HTTP client for the marketplace claims API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from pydantic import ValidationError as PydanticValidationError

from claimsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from claimsync.config.marketplace import MarketplaceConfig
from claimsync.domain.errors import TransientFetchError

from .schema import ClaimSearchPage, ReturnDetails

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

log = getLogger(__name__)

CLAIMS_SEARCH_PATH = "/post-purchase/v1/claims/search"
CLAIM_RETURNS_PATH = "/post-purchase/v2/claims/{claim_id}/returns"
CLAIM_MESSAGES_PATH = "/post-purchase/v1/claims/{claim_id}/messages"
CLAIM_REASON_PATH = "/post-purchase/v1/claims/reasons/{reason_id}"
ORDER_PATH = "/orders/{order_id}"
ITEM_PATH = "/items/{item_id}"
SHIPMENT_HISTORY_PATH = "/shipments/{shipment_id}/history"
USER_PATH = "/users/{user_id}"

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


def format_api_datetime(value: datetime) -> str:
    """Render a timestamp the way the search endpoint's date filters expect it."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    rendered = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _as_list(payload: Any, *keys: str) -> list[dict[str, Any]] | None:
    """Normalise list endpoints that answer either a bare array or a wrapped one."""

    if payload is None:
        return None
    if isinstance(payload, dict):
        wrapped = cast(dict[str, Any], payload)
        for key in keys:
            if isinstance(wrapped.get(key), list):
                payload = wrapped[key]
                break
        else:
            return None
    if not isinstance(payload, list):
        return None
    return [row for row in cast(list[Any], payload) if isinstance(row, dict)]


def _as_object(payload: Any) -> dict[str, Any] | None:
    return cast(dict[str, Any], payload) if isinstance(payload, dict) else None


def _first_object(payload: Any, *keys: str) -> dict[str, Any] | None:
    """Unwrap single-resource endpoints that sometimes answer with a collection."""

    if isinstance(payload, dict) and "id" not in payload:
        rows = _as_list(payload, *keys)
        if rows is not None:
            return rows[0] if rows else None
    if isinstance(payload, list):
        rows = _as_list(payload)
        return rows[0] if rows else None
    return _as_object(payload)


@dataclass(slots=True)
class MarketplaceClient:
    """Typed access to the claim, order, message, item, shipment and reason endpoints.

    Listing calls are hard fetches with the long timeout; every enrichment lookup is a
    soft fetch with the short timeout and returns ``None`` instead of raising. Reason
    and seller lookups go through a separate client so they can be cached.
    """

    config: MarketplaceConfig = field(default_factory=MarketplaceConfig)
    client_factory: ClientFactory = field(default=_default_client_factory)
    _api: ResilientClient | None = field(default=None, init=False)
    _reference: ResilientClient | None = field(default=None, init=False)

    async def __aenter__(self) -> MarketplaceClient:
        self._api = self.client_factory(self.config.api)
        self._reference = self.client_factory(self.config.reference)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in (self._api, self._reference):
            if client is not None:
                await client.aclose()
        self._api = None
        self._reference = None

    @property
    def api(self) -> ResilientClient:
        if self._api is None:
            raise RuntimeError("MarketplaceClient used outside of its async context")
        return self._api

    @property
    def reference(self) -> ResilientClient:
        if self._reference is None:
            raise RuntimeError("MarketplaceClient used outside of its async context")
        return self._reference

    async def search_claims(
        self,
        *,
        seller_id: str,
        token: str,
        offset: int,
        limit: int,
        date_from: datetime,
        date_to: datetime,
    ) -> ClaimSearchPage:
        params: dict[str, str | int] = {
            "player_role": "respondent",
            "player_user_id": seller_id,
            "limit": limit,
            "offset": offset,
            "sort": "date_created:desc",
            "date_created.from": format_api_datetime(date_from),
            "date_created.to": format_api_datetime(date_to),
        }
        payload = await self.api.get_json(
            CLAIMS_SEARCH_PATH,
            params=params,
            headers=_bearer(token),
            timeout=self.config.listing_timeout_seconds,
        )
        if payload is None:
            return ClaimSearchPage()
        try:
            return ClaimSearchPage.model_validate(payload)
        except PydanticValidationError as exc:
            raise TransientFetchError(
                f"Unexpected claims search payload at offset {offset}", url=CLAIMS_SEARCH_PATH
            ) from exc

    async def return_details(
        self, claim_id: str, token: str
    ) -> tuple[ReturnDetails, dict[str, Any]] | None:
        """Return the validated view and the raw payload of a claim's return."""

        payload = await self._soft(self.api, CLAIM_RETURNS_PATH.format(claim_id=claim_id), token)
        raw = _first_object(payload, "data", "results")
        if raw is None:
            return None
        try:
            return ReturnDetails.model_validate(raw), raw
        except PydanticValidationError:
            log.debug(f"Discarding malformed return details for claim {claim_id}")
            return None

    async def order(self, order_id: str, token: str) -> dict[str, Any] | None:
        payload = await self._soft(self.api, ORDER_PATH.format(order_id=order_id), token)
        return _as_object(payload)

    async def messages(self, claim_id: str, token: str) -> list[dict[str, Any]] | None:
        payload = await self._soft(self.api, CLAIM_MESSAGES_PATH.format(claim_id=claim_id), token)
        return _as_list(payload, "messages", "data", "results")

    async def item(self, item_id: str, token: str) -> dict[str, Any] | None:
        payload = await self._soft(self.api, ITEM_PATH.format(item_id=item_id), token)
        return _as_object(payload)

    async def shipment_history(self, shipment_id: str, token: str) -> list[dict[str, Any]] | None:
        payload = await self._soft(
            self.api, SHIPMENT_HISTORY_PATH.format(shipment_id=shipment_id), token
        )
        return _as_list(payload, "data", "history", "results")

    async def reason(self, reason_id: str, token: str) -> dict[str, Any] | None:
        payload = await self._soft(
            self.reference, CLAIM_REASON_PATH.format(reason_id=reason_id), token
        )
        return _as_object(payload)

    async def user(self, user_id: str, token: str) -> dict[str, Any] | None:
        payload = await self._soft(self.reference, USER_PATH.format(user_id=user_id), token)
        return _as_object(payload)

    async def _soft(self, client: ResilientClient, path: str, token: str) -> Any | None:
        return await client.get_json_soft(
            path,
            headers=_bearer(token),
            timeout=self.config.enrichment_timeout_seconds,
        )


__all__ = ["MarketplaceClient", "format_api_datetime"]
