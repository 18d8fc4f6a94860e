"""FastAPI surface: ``POST /claims/sync``.

Serve with any ASGI server, e.g. ``uvicorn --factory claimsync.ui.http:create_app``.
"""

from __future__ import annotations

import hmac
import json
from contextlib import AbstractAsyncContextManager
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

import jwt
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from claimsync.adapters.serialization import sync_result_to_payload
from claimsync.adapters.sqlalchemy.unit_of_work import is_started, startup
from claimsync.app import open_claim_sync_service
from claimsync.config import SecurityConfig, get_security_config
from claimsync.domain.errors import AuthError, SyncTimeoutError, ValidationError
from claimsync.domain.sync import CallerIdentity, SyncRequest

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.domain.sync import SyncResult

log = getLogger(__name__)

SYNC_PATH = "/claims/sync"
INTERNAL_TOKEN_HEADER = "x-internal-token"


class ClaimSyncRunner(Protocol):
    async def sync(self, request: SyncRequest, caller: CallerIdentity) -> SyncResult: ...


type ServiceProvider = Callable[[], AbstractAsyncContextManager[ClaimSyncRunner]]


class SyncClaimsBody(BaseModel):
    """Request body; legacy snake_case account keys are accepted as aliases."""

    model_config = ConfigDict(extra="ignore")

    account_ids: list[Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("accountIds", "integration_account_ids"),
    )
    account_id: Any | None = Field(
        default=None,
        validation_alias=AliasChoices("accountId", "integration_account_id"),
    )
    date_from: str | None = Field(default=None, validation_alias=AliasChoices("dateFrom"))
    date_to: str | None = Field(default=None, validation_alias=AliasChoices("dateTo"))
    force_refresh: bool = Field(default=False, validation_alias=AliasChoices("forceRefresh"))

    def to_request(self) -> SyncRequest:
        account_ids = self.account_ids
        if not account_ids and self.account_id is not None:
            account_ids = [self.account_id]
        return SyncRequest.from_input(
            account_ids,
            date_from=self.date_from,
            date_to=self.date_to,
            force_refresh=self.force_refresh,
        )


def _error(status_code: int, message: str, **extra: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": message, **extra}
    )


def resolve_caller(headers: dict[str, str], security: SecurityConfig) -> CallerIdentity:
    """Identify the caller from an internal token or a session JWT; raises ``AuthError``."""

    internal = headers.get(INTERNAL_TOKEN_HEADER)
    if internal is not None:
        if security.internal_token and hmac.compare_digest(internal, security.internal_token):
            return CallerIdentity(trusted=True)
        raise AuthError("Invalid internal token")

    authorization = headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Missing bearer token")
    if not security.jwt_secret:
        raise AuthError("Session authentication is not configured")
    try:
        claims = jwt.decode(
            token.strip(), security.jwt_secret, algorithms=[security.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("Session token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthError("Invalid session token") from exc

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthError("Session token has no subject")
    return CallerIdentity(user_id=subject)


def _default_service_provider() -> AbstractAsyncContextManager[ClaimSyncRunner]:
    if not is_started():
        startup()
    return open_claim_sync_service()


def create_app(
    *,
    service_provider: ServiceProvider | None = None,
    security: SecurityConfig | None = None,
) -> FastAPI:
    provider = service_provider or _default_service_provider
    security_config = security or get_security_config()
    app = FastAPI(title="claimsync")

    @app.post(SYNC_PATH)
    async def sync_claims(request: Request) -> JSONResponse:
        try:
            raw = await request.json()
            sync_request = SyncClaimsBody.model_validate(raw).to_request()
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            return _error(status.HTTP_400_BAD_REQUEST, f"Malformed request body: {exc}")
        except ValidationError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))

        try:
            caller = resolve_caller(dict(request.headers), security_config)
            async with provider() as service:
                result = await service.sync(sync_request, caller)
        except AuthError as exc:
            return _error(status.HTTP_401_UNAUTHORIZED, str(exc))
        except ValidationError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except SyncTimeoutError as exc:
            return _error(
                status.HTTP_504_GATEWAY_TIMEOUT,
                str(exc),
                code="SYNC_TIMEOUT",
                hint=exc.hint,
            )
        except Exception:  # noqa: BLE001
            log.exception("Claims sync failed unexpectedly")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error")

        return JSONResponse(status_code=status.HTTP_200_OK, content=sync_result_to_payload(result))

    return app


__all__ = ["SYNC_PATH", "SyncClaimsBody", "create_app", "resolve_caller"]
