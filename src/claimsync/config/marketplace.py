"""Marketplace API configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .env import float_env_var, optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

MARKETPLACE_BASE_URL = "https://api.mercadolibre.com"
MARKETPLACE_PROVIDER = "mercadolivre"
LISTING_TIMEOUT_SECONDS = 30.0
ENRICHMENT_TIMEOUT_SECONDS = 5.0
DEFAULT_PAGE_SIZE = 50
DEFAULT_BATCH_SIZE = 10
DEFAULT_MAX_CALLS_PER_SECOND = 100.0
REFERENCE_CACHE_TTL_SECONDS = 24 * 60 * 60.0
MAX_ATTEMPTS = 3


def _reference_payload_is_cacheable(payload: object) -> bool:
    return isinstance(payload, dict) and payload.get("id") is not None


def build_api_resilience(
    *,
    base_url: str = MARKETPLACE_BASE_URL,
    ratelimit: RateLimit | None = None,
    retry: RetryPolicy | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="marketplace",
        base_url=base_url,
        timeout_seconds=LISTING_TIMEOUT_SECONDS,
        retry=retry or RetryPolicy.from_attempts(MAX_ATTEMPTS),
        ratelimit=ratelimit,
        cache=None,
        default_headers={"Accept": "application/json"},
    )


def build_reference_resilience(
    *,
    base_url: str = MARKETPLACE_BASE_URL,
    ratelimit: RateLimit | None = None,
    retry: RetryPolicy | None = None,
    cache: CacheConfig | None = None,
) -> ResilienceConfig:
    """Resilience settings for slowly changing lookups (claim reasons, seller profiles)."""

    return ResilienceConfig(
        name="marketplace-reference",
        base_url=base_url,
        timeout_seconds=ENRICHMENT_TIMEOUT_SECONDS,
        retry=retry or RetryPolicy.from_attempts(MAX_ATTEMPTS),
        ratelimit=ratelimit,
        cache=cache,
        default_headers={"Accept": "application/json"},
    )


@dataclass(frozen=True, slots=True)
class MarketplaceConfig:
    """Holds marketplace API configuration values."""

    base_url: str = MARKETPLACE_BASE_URL
    provider: str = MARKETPLACE_PROVIDER
    listing_timeout_seconds: float = LISTING_TIMEOUT_SECONDS
    enrichment_timeout_seconds: float = ENRICHMENT_TIMEOUT_SECONDS
    page_size: int = DEFAULT_PAGE_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    api: ResilienceConfig = field(default_factory=build_api_resilience)
    reference: ResilienceConfig = field(default_factory=build_reference_resilience)


def get_marketplace_config() -> MarketplaceConfig:
    base_url = optional_env_var("MARKETPLACE_BASE_URL") or MARKETPLACE_BASE_URL
    calls_per_second = float_env_var(
        "MARKETPLACE_MAX_CALLS_PER_SECOND", DEFAULT_MAX_CALLS_PER_SECOND
    )
    ratelimit = RateLimit(max_calls=max(1, round(calls_per_second)), per_seconds=1.0)
    reference_cache = CacheConfig(
        backend="memory" if os.getenv("CLAIMSYNC_HTTP_CACHE") == "memory" else "sqlite",
        default_ttl_seconds=REFERENCE_CACHE_TTL_SECONDS,
        should_cache=_reference_payload_is_cacheable,
    )
    return MarketplaceConfig(
        base_url=base_url,
        api=build_api_resilience(base_url=base_url, ratelimit=ratelimit),
        reference=build_reference_resilience(
            base_url=base_url, ratelimit=ratelimit, cache=reference_cache
        ),
    )
