"""Application wiring: build the claim sync service from configuration."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from claimsync.adapters.credentials import (
    SecretServiceCredentialResolver,
    StoredSecretCredentialResolver,
)
from claimsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from claimsync.adapters.marketplace import (
    EnrichmentOrchestrator,
    MarketplaceClaimsLister,
    MarketplaceClient,
    map_claim,
)
from claimsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClaimUnitOfWork,
    is_started,
    startup,
)
from claimsync.config import (
    MarketplaceConfig,
    RetryPolicy,
    SecurityConfig,
    SyncConfig,
    get_marketplace_config,
    get_security_config,
    get_sync_config,
)
from claimsync.domain.ports.unit_of_work import ClaimUnitOfWork
from claimsync.domain.sync import ClaimSyncService

if TYPE_CHECKING:
    from claimsync.adapters.marketplace.client import ClientFactory
    from claimsync.domain.ports.credentials import CredentialResolver
    from claimsync.domain.sync import CallerIdentity, SyncRequest, SyncResult

UnitOfWorkFactory = Callable[[], ClaimUnitOfWork]

SECRET_SERVICE_TIMEOUT_SECONDS = 10.0

log = getLogger(__name__)


def build_secret_service_resilience() -> ResilienceConfig:
    """Secret-service client settings: one attempt per request, no retries."""

    return ResilienceConfig(
        name="secret-service",
        timeout_seconds=SECRET_SERVICE_TIMEOUT_SECONDS,
        retry=RetryPolicy.from_attempts(1),
    )


@asynccontextmanager
async def open_claim_sync_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    marketplace: MarketplaceConfig | None = None,
    sync: SyncConfig | None = None,
    security: SecurityConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> AsyncIterator[ClaimSyncService]:
    """Yield a ready service; outbound HTTP clients are closed on exit."""

    effective_uow = unit_of_work_factory or SqlAlchemyClaimUnitOfWork
    marketplace_config = marketplace or get_marketplace_config()
    sync_config = sync or get_sync_config()
    security_config = security or get_security_config()

    async with AsyncExitStack() as stack:
        client = MarketplaceClient(config=marketplace_config)
        if client_factory is not None:
            client.client_factory = client_factory
        await stack.enter_async_context(client)

        credentials: CredentialResolver
        if security_config.secret_service_url:
            secret_client = (client_factory or ResilientClient)(build_secret_service_resilience())
            await stack.enter_async_context(secret_client)
            credentials = SecretServiceCredentialResolver(
                unit_of_work_factory=effective_uow,
                client=secret_client,
                url=security_config.secret_service_url,
                internal_token=security_config.internal_token,
            )
        else:
            credentials = StoredSecretCredentialResolver(unit_of_work_factory=effective_uow)

        yield ClaimSyncService(
            unit_of_work_factory=effective_uow,
            credentials=credentials,
            lister=MarketplaceClaimsLister(client, page_size=marketplace_config.page_size),
            enricher=EnrichmentOrchestrator(client, batch_size=marketplace_config.batch_size),
            mapper=map_claim,
            config=sync_config,
        )


def sync_claims(
    request: SyncRequest,
    caller: CallerIdentity,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    marketplace: MarketplaceConfig | None = None,
    sync: SyncConfig | None = None,
) -> SyncResult:
    """Run one claims sync with the configured adapters."""

    if unit_of_work_factory is None and not is_started():
        startup()

    async def run() -> SyncResult:
        async with open_claim_sync_service(
            unit_of_work_factory=unit_of_work_factory, marketplace=marketplace, sync=sync
        ) as service:
            return await service.sync(request, caller)

    log.info(f"Starting claims sync for {len(request.account_ids)} account(s)")
    result = asyncio.run(run())
    log.info(
        f"Finished claims sync: source={result.source}, total={result.total}, "
        f"warnings={len(result.warnings)}"
    )
    return result
