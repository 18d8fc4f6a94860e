"""Mercado Livre adapter: HTTP client, claims lister, enrichment and field mapping."""

from __future__ import annotations

from .client import MarketplaceClient
from .enrichment import EnrichmentOrchestrator
from .lister import MarketplaceClaimsLister
from .mapping import map_claim

__all__ = [
    "EnrichmentOrchestrator",
    "MarketplaceClaimsLister",
    "MarketplaceClient",
    "map_claim",
]
