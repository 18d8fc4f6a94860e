"""SQLAlchemy adapter package for claimsync."""

from __future__ import annotations

from .mappings import mapper_registry
from .repositories import (
    SqlAlchemyAccountRepository,
    SqlAlchemyClaimCacheRepository,
    SqlAlchemyClaimRepository,
    SqlAlchemyProfileRepository,
    SqlAlchemySecretRepository,
)

__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemyClaimCacheRepository",
    "SqlAlchemyClaimRepository",
    "SqlAlchemyProfileRepository",
    "SqlAlchemySecretRepository",
    "mapper_registry",
]
