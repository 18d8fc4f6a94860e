"""Port for turning an account identifier into usable API credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from claimsync.domain.model import AccountCredentials


@runtime_checkable
class CredentialResolver(Protocol):
    """Resolve an account's access token and seller identity.

    Raises ``CredentialError`` when the account is unknown or inactive, or when its
    secret is absent or cannot be decoded.
    """

    async def resolve(self, account_id: str) -> AccountCredentials: ...
