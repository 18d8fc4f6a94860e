from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import httpx
import pytest

from claimsync.adapters.credentials import (
    SecretServiceCredentialResolver,
    StoredSecretCredentialResolver,
    decode_simple_tokens,
)
from claimsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from claimsync.domain.errors import CredentialError, TransientFetchError
from tests.helpers.claims import (
    ACCOUNT_A,
    ORG_ID,
    SELLER_A,
    encode_simple_tokens,
    fast_retry,
    seed_account,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

    from claimsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyClaimUnitOfWork
    from claimsync.domain.model import AccountCredentials

    type UnitOfWorkFactory = Callable[[], SqlAlchemyClaimUnitOfWork]

SECRET_URL = "https://secrets.test/internal/get-secret"


def _resolve(
    resolver: StoredSecretCredentialResolver, account_id: str = ACCOUNT_A
) -> AccountCredentials:
    return asyncio.run(resolver.resolve(account_id))


def test_decode_simple_tokens() -> None:
    assert decode_simple_tokens(encode_simple_tokens("APP_USR-simple")) == "APP_USR-simple"
    assert decode_simple_tokens("APP_USR-plain") is None
    assert decode_simple_tokens("SALT2024::not base64!") is None
    assert decode_simple_tokens("SALT2024::" + "WzFd") is None


def test_stored_secret_prefers_simple_tokens(
    sqlite_engine: Engine, sqlite_unit_of_work: UnitOfWorkFactory
) -> None:
    seed_account(
        sqlite_engine,
        access_token="APP_USR-plain",
        use_simple=True,
        simple_tokens=encode_simple_tokens("APP_USR-simple", refresh_token="TG-1"),
    )

    credentials = _resolve(StoredSecretCredentialResolver(sqlite_unit_of_work))

    assert credentials.access_token == "APP_USR-simple"
    assert credentials.seller_id == SELLER_A
    assert credentials.organization_id == ORG_ID
    assert credentials.account_name == f"Conta {SELLER_A}"
    assert "APP_USR" not in repr(credentials)


def test_stored_secret_falls_back_to_plain_token(
    sqlite_engine: Engine, sqlite_unit_of_work: UnitOfWorkFactory
) -> None:
    seed_account(
        sqlite_engine,
        access_token="APP_USR-plain",
        use_simple=True,
        simple_tokens="SALT2024::%%%",
    )

    credentials = _resolve(StoredSecretCredentialResolver(sqlite_unit_of_work))

    assert credentials.access_token == "APP_USR-plain"


@pytest.mark.parametrize(
    ("seed", "message"),
    [
        ({"is_active": False}, "inactive"),
        ({"access_token": None, "simple_tokens": None}, "No mercadolivre secret"),
        ({"access_token": "", "simple_tokens": "garbage", "use_simple": True}, "no usable"),
    ],
)
def test_stored_secret_errors(
    sqlite_engine: Engine,
    sqlite_unit_of_work: UnitOfWorkFactory,
    seed: dict[str, object],
    message: str,
) -> None:
    seed_account(sqlite_engine, **seed)  # pyright: ignore[reportArgumentType]

    with pytest.raises(CredentialError, match=message) as exc:
        _resolve(StoredSecretCredentialResolver(sqlite_unit_of_work))

    assert exc.value.account_id == ACCOUNT_A


def test_unknown_account_is_a_credential_error(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    with pytest.raises(CredentialError, match="Unknown account"):
        _resolve(StoredSecretCredentialResolver(sqlite_unit_of_work))


def _secret_service(
    factory: UnitOfWorkFactory,
    handler: Callable[[httpx.Request], httpx.Response],
) -> AccountCredentials:
    async def run() -> AccountCredentials:
        client = ResilientClient(
            ResilienceConfig(name="secret-service", retry=fast_retry()),
            transport=httpx.MockTransport(handler),
        )
        async with client:
            resolver = SecretServiceCredentialResolver(
                factory, client, SECRET_URL, internal_token="internal-secret"
            )
            return await resolver.resolve(ACCOUNT_A)

    return asyncio.run(run())


def test_secret_service_returns_remote_token(
    sqlite_engine: Engine, sqlite_unit_of_work: UnitOfWorkFactory
) -> None:
    seed_account(sqlite_engine, access_token=None)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"secret": {"access_token": "APP_USR-remote"}})

    credentials = _secret_service(sqlite_unit_of_work, handler)

    assert credentials.access_token == "APP_USR-remote"
    assert credentials.seller_id == SELLER_A
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == SECRET_URL
    assert request.headers["x-internal-call"] == "true"
    assert request.headers["x-internal-token"] == "internal-secret"
    assert json.loads(request.content) == {
        "integration_account_id": ACCOUNT_A,
        "provider": "mercadolivre",
    }


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(403, json={"error": "forbidden"}),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json={"secret": {}}),
    ],
)
def test_secret_service_failures_are_credential_errors(
    sqlite_engine: Engine, sqlite_unit_of_work: UnitOfWorkFactory, response: httpx.Response
) -> None:
    seed_account(sqlite_engine)

    with pytest.raises(CredentialError):
        _secret_service(sqlite_unit_of_work, lambda _request: response)


def test_unreachable_secret_service_is_transient(
    sqlite_engine: Engine, sqlite_unit_of_work: UnitOfWorkFactory
) -> None:
    seed_account(sqlite_engine)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientFetchError):
        _secret_service(sqlite_unit_of_work, handler)


def test_secret_service_still_checks_the_account(
    sqlite_engine: Engine, sqlite_unit_of_work: UnitOfWorkFactory
) -> None:
    seed_account(sqlite_engine, is_active=False)
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"secret": {"access_token": "APP_USR-remote"}})

    with pytest.raises(CredentialError, match="inactive"):
        _secret_service(sqlite_unit_of_work, handler)

    assert calls == []
