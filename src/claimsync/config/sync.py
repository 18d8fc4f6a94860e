"""Synchronisation defaults for the claims pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from .env import float_env_var

DEFAULT_CACHE_TTL = timedelta(minutes=5)
DEFAULT_LOOKBACK = timedelta(days=60)
DEFAULT_SYNC_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True, slots=True)
class HeuristicThresholds:
    """Cut-offs behind the derived quality classifications of a claim."""

    complex_message_count: int = 10
    complex_claimed_amount: float = 500.0
    complexity_medium_score: int = 2
    complexity_high_score: int = 3
    quality_excellent_pct: float = 90.0
    quality_good_pct: float = 70.0
    quality_moderate_pct: float = 50.0
    fast_resolution_hours: float = 72.0
    normal_resolution_hours: float = 240.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    cache_ttl: timedelta = DEFAULT_CACHE_TTL
    default_lookback: timedelta = DEFAULT_LOOKBACK
    timeout_seconds: float = DEFAULT_SYNC_TIMEOUT_SECONDS
    thresholds: HeuristicThresholds = field(default_factory=HeuristicThresholds)


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        timeout_seconds=float_env_var(
            "CLAIMSYNC_SYNC_TIMEOUT_SECONDS", DEFAULT_SYNC_TIMEOUT_SECONDS
        ),
    )
