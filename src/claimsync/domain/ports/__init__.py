"""Domain port definitions for adapters."""

from __future__ import annotations

from .credentials import CredentialResolver
from .fetching import ClaimEnricher, ClaimMapper, ClaimsLister
from .persistence import (
    AccountRepository,
    ClaimCacheRepository,
    ClaimRepository,
    ProfileRepository,
    SecretRepository,
)
from .unit_of_work import ClaimRepositories, ClaimUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "AccountRepository",
    "ClaimCacheRepository",
    "ClaimEnricher",
    "ClaimMapper",
    "ClaimRepositories",
    "ClaimRepository",
    "ClaimUnitOfWork",
    "ClaimsLister",
    "CredentialResolver",
    "ProfileRepository",
    "RepositoryCollection",
    "SecretRepository",
    "UnitOfWork",
]
