"""Credential resolvers: stored secrets in the database, or a remote secret service."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

import httpx

from claimsync.config.marketplace import MARKETPLACE_PROVIDER
from claimsync.domain.errors import CredentialError, TransientFetchError
from claimsync.domain.model import AccountCredentials

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.adapters.http_resilience import ResilientClient
    from claimsync.domain.model import IntegrationAccount, StoredSecret
    from claimsync.domain.ports.unit_of_work import ClaimUnitOfWork

log = getLogger(__name__)

SIMPLE_TOKENS_PREFIX = "SALT2024::"


def decode_simple_tokens(encoded: str) -> str | None:
    """Return the ``access_token`` held in a ``SALT2024::<base64 json>`` blob."""

    if not encoded.startswith(SIMPLE_TOKENS_PREFIX):
        return None
    try:
        decoded = base64.b64decode(encoded.removeprefix(SIMPLE_TOKENS_PREFIX), validate=True)
        document = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(document, dict):
        return None
    token = cast(dict[str, Any], document).get("access_token")
    return token if isinstance(token, str) and token else None


def _access_token(secret: StoredSecret) -> str | None:
    if secret.use_simple and secret.simple_tokens:
        token = decode_simple_tokens(secret.simple_tokens)
        if token is not None:
            return token
        log.warning("Stored simple tokens could not be decoded; trying the plain token")
    return secret.access_token or None


def _active_account(uow: ClaimUnitOfWork, account_id: str) -> IntegrationAccount:
    account = uow.repositories.accounts.get(account_id)
    if account is None:
        raise CredentialError(f"Unknown account {account_id}", account_id=account_id)
    if not account.is_active:
        raise CredentialError(f"Account {account_id} is inactive", account_id=account_id)
    return account


def _credentials(account: IntegrationAccount, token: str) -> AccountCredentials:
    return AccountCredentials(
        account_id=account.id,
        access_token=token,
        seller_id=account.seller_id,
        account_name=account.name,
        organization_id=account.organization_id,
    )


@dataclass(slots=True)
class StoredSecretCredentialResolver:
    """Read the account and its secret row through the unit of work."""

    unit_of_work_factory: Callable[[], ClaimUnitOfWork]
    provider: str = MARKETPLACE_PROVIDER

    async def resolve(self, account_id: str) -> AccountCredentials:
        with self.unit_of_work_factory() as uow:
            account = _active_account(uow, account_id)
            secret = uow.repositories.secrets.get(account_id, self.provider)
        if secret is None:
            raise CredentialError(
                f"No {self.provider} secret stored for account {account_id}",
                account_id=account_id,
            )
        token = _access_token(secret)
        if token is None:
            raise CredentialError(
                f"Stored secret for account {account_id} has no usable access token",
                account_id=account_id,
            )
        return _credentials(account, token)


@dataclass(slots=True)
class SecretServiceCredentialResolver:
    """Fetch the access token from the internal secret service.

    The account directory still supplies the seller identity and organisation.
    """

    unit_of_work_factory: Callable[[], ClaimUnitOfWork]
    client: ResilientClient
    url: str
    internal_token: str | None = None
    provider: str = MARKETPLACE_PROVIDER

    async def resolve(self, account_id: str) -> AccountCredentials:
        with self.unit_of_work_factory() as uow:
            account = _active_account(uow, account_id)

        headers = {"x-internal-call": "true"}
        if self.internal_token:
            headers["x-internal-token"] = self.internal_token
        try:
            response = await self.client.post(
                self.url,
                json={"integration_account_id": account_id, "provider": self.provider},
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise TransientFetchError(
                f"Secret service unreachable for account {account_id}: {exc!r}", url=self.url
            ) from exc

        if not response.is_success:
            raise CredentialError(
                f"Secret service answered HTTP {response.status_code} for account {account_id}",
                account_id=account_id,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise CredentialError(
                f"Secret service returned a non-JSON body for account {account_id}",
                account_id=account_id,
            ) from exc

        secret = payload.get("secret") if isinstance(payload, dict) else None
        token = secret.get("access_token") if isinstance(secret, dict) else None
        if not isinstance(token, str) or not token:
            raise CredentialError(
                f"Secret service has no access token for account {account_id}",
                account_id=account_id,
            )
        return _credentials(account, token)


__all__ = [
    "SIMPLE_TOKENS_PREFIX",
    "SecretServiceCredentialResolver",
    "StoredSecretCredentialResolver",
    "decode_simple_tokens",
]
